"""
GeoPulse Database Layer

Usage:
    from geopulse.database import (
        # Session management
        init_db, get_db_context,

        # Store (reads consumed by scoring, writes by tracking)
        DataStore, SQLAlchemyDataStore, InMemoryDataStore,

        # Repository (write operations)
        record_citation, roll_weekly_citations,
    )
"""

from .models import (
    Base,
    Site,
    SourceListing,
    Citation,
    GeoAnalysis,
    MarketShareSnapshot,
    GeneratedPage,
    Competitor,
    VisibilitySnapshotRecord,
    VisibilityCheckRecord,
    ListingStatus,
)
from .session import (
    create_db_engine,
    create_session_factory,
    get_engine,
    get_session_factory,
    get_db_context,
    init_db,
    check_db_connection,
)
from .store import (
    DataStore,
    SQLAlchemyDataStore,
    SiteRecord,
    SourceListingRecord,
    AnalysisRecord,
    MarketShareRecord,
    COMPARISON_PATTERNS,
    is_comparison_query,
)
from .fakes import InMemoryDataStore
from .repository import (
    create_site,
    upsert_source_listing,
    record_citation,
    roll_weekly_citations,
)

__all__ = [
    # Models
    "Base",
    "Site",
    "SourceListing",
    "Citation",
    "GeoAnalysis",
    "MarketShareSnapshot",
    "GeneratedPage",
    "Competitor",
    "VisibilitySnapshotRecord",
    "VisibilityCheckRecord",
    "ListingStatus",
    # Session
    "create_db_engine",
    "create_session_factory",
    "get_engine",
    "get_session_factory",
    "get_db_context",
    "init_db",
    "check_db_connection",
    # Store
    "DataStore",
    "SQLAlchemyDataStore",
    "InMemoryDataStore",
    "SiteRecord",
    "SourceListingRecord",
    "AnalysisRecord",
    "MarketShareRecord",
    "COMPARISON_PATTERNS",
    "is_comparison_query",
    # Repository
    "create_site",
    "upsert_source_listing",
    "record_citation",
    "roll_weekly_citations",
]
