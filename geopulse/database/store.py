"""
Data Store Abstraction

Read access to sites, source listings, citations, GEO analyses, market-share
snapshots, generated pages and competitors, plus write access for visibility
snapshots. Absent rows come back as None, 0 or [] - never as errors.

All methods are coroutines so independent reads can be gathered:

    site, listings = await asyncio.gather(
        store.get_site(site_id),
        store.get_source_listings(site_id, KEY_TRUST_DOMAINS),
    )
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, sessionmaker, selectinload

from geopulse.tracking.models import (
    AIPlatform,
    CitationType,
    VisibilityCheck,
    VisibilitySnapshot,
)

from .models import (
    Citation,
    Competitor,
    GeneratedPage,
    GeoAnalysis,
    ListingStatus,
    MarketShareSnapshot,
    Site,
    SourceListing,
    VisibilityCheckRecord,
    VisibilitySnapshotRecord,
)
from .session import get_db_context, get_session_factory

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Case-insensitive substrings marking "X vs Y" / "alternatives to X" queries
COMPARISON_PATTERNS = ("vs ", " vs", "alternative")


def is_comparison_query(query: str) -> bool:
    """True when the query is comparison-style ("notion vs asana", "asana alternatives")."""
    lowered = query.lower()
    return any(p in lowered for p in COMPARISON_PATTERNS)


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class SiteRecord:
    id: str
    domain: str
    category: Optional[str] = None
    total_citations: int = 0
    citations_this_week: int = 0
    citations_last_week: int = 0
    geo_score_avg: Optional[int] = None


@dataclass
class SourceListingRecord:
    source_domain: str
    status: ListingStatus = ListingStatus.PENDING

    @property
    def is_verified(self) -> bool:
        return self.status == ListingStatus.VERIFIED


@dataclass
class AnalysisRecord:
    """Latest GEO analysis: readability score plus the queries it tracked."""
    score: Optional[float] = None
    queries: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class MarketShareRecord:
    total_queries: int = 0
    queries_won: int = 0
    queries_lost: int = 0
    snapshot_date: Optional[datetime] = None


def overall_from_score(score: Any) -> Optional[float]:
    """Pull the overall number out of a stored analysis score ({"overall": 62} or 62)."""
    if isinstance(score, dict):
        score = score.get("overall")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return None
    return float(score)


# =============================================================================
# INTERFACE
# =============================================================================

class DataStore(ABC):
    """Read/write collaborator consumed by the scorer, selector and tracker."""

    @abstractmethod
    async def get_site(self, site_id: str) -> Optional[SiteRecord]:
        ...

    @abstractmethod
    async def get_source_listings(
        self, site_id: str, domains: Optional[Sequence[str]] = None
    ) -> List[SourceListingRecord]:
        """Listings for a site, optionally restricted to the given source domains."""

    @abstractmethod
    async def has_verified_listing(self, site_id: str, source_domain: str) -> bool:
        ...

    @abstractmethod
    async def count_citations(self, site_id: str) -> int:
        ...

    @abstractmethod
    async def count_comparison_citations(self, site_id: str) -> int:
        """Citations whose query is comparison-style (see is_comparison_query)."""

    @abstractmethod
    async def get_latest_analysis(self, site_id: str) -> Optional[AnalysisRecord]:
        ...

    @abstractmethod
    async def get_latest_market_share(self, site_id: str) -> Optional[MarketShareRecord]:
        ...

    @abstractmethod
    async def count_generated_pages(self, site_id: str) -> int:
        ...

    @abstractmethod
    async def get_top_competitor_domain(self, site_id: str) -> Optional[str]:
        ...

    @abstractmethod
    async def save_visibility_snapshot(self, snapshot: VisibilitySnapshot) -> None:
        ...

    @abstractmethod
    async def list_visibility_snapshots(
        self, site_id: str, since: Optional[datetime] = None
    ) -> List[VisibilitySnapshot]:
        """Snapshots for a site, oldest first."""


# =============================================================================
# SQLALCHEMY IMPLEMENTATION
# =============================================================================

class SQLAlchemyDataStore(DataStore):
    """
    DataStore backed by the SQLAlchemy models.

    Every call opens its own session and runs in a worker thread, so
    concurrent reads never share a session.
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self._session_factory = session_factory

    async def _run(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, fn)

    def _run_sync(self, fn: Callable[[Session], T]) -> T:
        factory = self._session_factory or get_session_factory()
        with get_db_context(factory) as db:
            return fn(db)

    async def get_site(self, site_id: str) -> Optional[SiteRecord]:
        def query(db: Session) -> Optional[SiteRecord]:
            site = db.query(Site).filter(Site.id == site_id).first()
            if not site:
                return None
            return SiteRecord(
                id=site.id,
                domain=site.domain,
                category=site.category,
                total_citations=site.total_citations or 0,
                citations_this_week=site.citations_this_week or 0,
                citations_last_week=site.citations_last_week or 0,
                geo_score_avg=site.geo_score_avg,
            )

        return await self._run(query)

    async def get_source_listings(
        self, site_id: str, domains: Optional[Sequence[str]] = None
    ) -> List[SourceListingRecord]:
        def query(db: Session) -> List[SourceListingRecord]:
            q = db.query(SourceListing).filter(SourceListing.site_id == site_id)
            if domains is not None:
                q = q.filter(SourceListing.source_domain.in_(list(domains)))
            return [
                SourceListingRecord(source_domain=l.source_domain, status=l.status)
                for l in q.all()
            ]

        return await self._run(query)

    async def has_verified_listing(self, site_id: str, source_domain: str) -> bool:
        def query(db: Session) -> bool:
            row = (
                db.query(SourceListing.id)
                .filter(
                    SourceListing.site_id == site_id,
                    SourceListing.source_domain == source_domain,
                    SourceListing.status == ListingStatus.VERIFIED,
                )
                .first()
            )
            return row is not None

        return await self._run(query)

    async def count_citations(self, site_id: str) -> int:
        def query(db: Session) -> int:
            return (
                db.query(func.count(Citation.id))
                .filter(Citation.site_id == site_id)
                .scalar()
            ) or 0

        return await self._run(query)

    async def count_comparison_citations(self, site_id: str) -> int:
        def query(db: Session) -> int:
            return (
                db.query(func.count(Citation.id))
                .filter(
                    Citation.site_id == site_id,
                    or_(*[Citation.query.ilike(f"%{p}%") for p in COMPARISON_PATTERNS]),
                )
                .scalar()
            ) or 0

        return await self._run(query)

    async def get_latest_analysis(self, site_id: str) -> Optional[AnalysisRecord]:
        def query(db: Session) -> Optional[AnalysisRecord]:
            analysis = (
                db.query(GeoAnalysis)
                .filter(GeoAnalysis.site_id == site_id)
                .order_by(GeoAnalysis.created_at.desc())
                .first()
            )
            if not analysis:
                return None
            queries = analysis.queries if isinstance(analysis.queries, list) else []
            return AnalysisRecord(
                score=overall_from_score(analysis.score),
                queries=[str(q) for q in queries],
                created_at=analysis.created_at,
            )

        return await self._run(query)

    async def get_latest_market_share(self, site_id: str) -> Optional[MarketShareRecord]:
        def query(db: Session) -> Optional[MarketShareRecord]:
            snap = (
                db.query(MarketShareSnapshot)
                .filter(MarketShareSnapshot.site_id == site_id)
                .order_by(MarketShareSnapshot.snapshot_date.desc())
                .first()
            )
            if not snap:
                return None
            return MarketShareRecord(
                total_queries=snap.total_queries or 0,
                queries_won=snap.queries_won or 0,
                queries_lost=snap.queries_lost or 0,
                snapshot_date=snap.snapshot_date,
            )

        return await self._run(query)

    async def count_generated_pages(self, site_id: str) -> int:
        def query(db: Session) -> int:
            return (
                db.query(func.count(GeneratedPage.id))
                .filter(GeneratedPage.site_id == site_id)
                .scalar()
            ) or 0

        return await self._run(query)

    async def get_top_competitor_domain(self, site_id: str) -> Optional[str]:
        def query(db: Session) -> Optional[str]:
            row = (
                db.query(Competitor.domain)
                .filter(Competitor.site_id == site_id)
                .order_by(Competitor.total_citations.desc())
                .first()
            )
            return row[0] if row else None

        return await self._run(query)

    async def save_visibility_snapshot(self, snapshot: VisibilitySnapshot) -> None:
        def write(db: Session) -> None:
            record = VisibilitySnapshotRecord(
                id=snapshot.id,
                site_id=snapshot.site_id,
                page_url=snapshot.page_url,
                checked_at=snapshot.checked_at,
                chatgpt_score=snapshot.chatgpt_score,
                perplexity_score=snapshot.perplexity_score,
                google_ai_score=snapshot.google_ai_score,
                overall_score=snapshot.overall_score,
                total_citations=snapshot.total_citations,
                direct_citations=snapshot.direct_citations,
                paraphrase_citations=snapshot.paraphrase_citations,
            )
            for position, check in enumerate(snapshot.checks):
                record.checks.append(_check_to_record(check, position))
            db.add(record)

        await self._run(write)
        logger.info(
            f"Saved visibility snapshot {snapshot.id} for {snapshot.page_url} "
            f"({len(snapshot.checks)} checks, overall {snapshot.overall_score})"
        )

    async def list_visibility_snapshots(
        self, site_id: str, since: Optional[datetime] = None
    ) -> List[VisibilitySnapshot]:
        def query(db: Session) -> List[VisibilitySnapshot]:
            q = (
                db.query(VisibilitySnapshotRecord)
                .options(selectinload(VisibilitySnapshotRecord.checks))
                .filter(VisibilitySnapshotRecord.site_id == site_id)
            )
            if since is not None:
                q = q.filter(VisibilitySnapshotRecord.checked_at >= since)
            q = q.order_by(VisibilitySnapshotRecord.checked_at.asc())
            return [_record_to_snapshot(r) for r in q.all()]

        return await self._run(query)


def _check_to_record(check: VisibilityCheck, position: int) -> VisibilityCheckRecord:
    return VisibilityCheckRecord(
        id=check.id,
        position=position,
        site_id=check.site_id,
        page_url=check.page_url,
        platform=check.platform.value,
        query=check.query,
        is_cited=check.is_cited,
        citation_position=check.citation_position,
        citation_type=check.citation_type.value if check.citation_type else None,
        snippet_cited=check.snippet_cited,
        confidence=check.confidence,
        visibility_score=check.visibility_score,
        content_quality_score=check.content_quality_score,
        checked_at=check.checked_at,
    )


def _record_to_snapshot(record: VisibilitySnapshotRecord) -> VisibilitySnapshot:
    checks = [
        VisibilityCheck(
            id=c.id,
            site_id=c.site_id,
            page_url=c.page_url,
            platform=AIPlatform(c.platform),
            query=c.query,
            is_cited=bool(c.is_cited),
            confidence=c.confidence or 0.0,
            visibility_score=c.visibility_score or 0,
            content_quality_score=c.content_quality_score or 0,
            checked_at=c.checked_at,
            citation_position=c.citation_position,
            citation_type=CitationType(c.citation_type) if c.citation_type else None,
            snippet_cited=c.snippet_cited,
        )
        for c in record.checks
    ]
    return VisibilitySnapshot(
        id=record.id,
        site_id=record.site_id,
        page_url=record.page_url,
        checked_at=record.checked_at,
        chatgpt_score=record.chatgpt_score or 0,
        perplexity_score=record.perplexity_score or 0,
        google_ai_score=record.google_ai_score or 0,
        overall_score=record.overall_score or 0,
        total_citations=record.total_citations or 0,
        direct_citations=record.direct_citations or 0,
        paraphrase_citations=record.paraphrase_citations or 0,
        checks=checks,
    )
