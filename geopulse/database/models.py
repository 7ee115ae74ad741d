"""
SQLAlchemy Models for GeoPulse

Read side (owned by citation-check and analysis jobs, read-only to scoring):
sites, source listings, citations, GEO analyses, market-share snapshots,
generated fix pages, competitors.

Write side (owned by the visibility tracker):
visibility snapshots and the checks aggregated into them.

Portable column types only (String ids, JSON) so the same schema runs on
PostgreSQL in production and SQLite locally and in tests.
"""

import enum
from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Column, String, Integer, Float, Boolean, DateTime, Text,
    ForeignKey, Enum, Index, UniqueConstraint, JSON,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class ListingStatus(enum.Enum):
    """Verification status of a trust-source listing"""
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"


# =============================================================================
# CORE TABLES
# =============================================================================

class Site(Base):
    """Tracked website with aggregate citation counters"""
    __tablename__ = "sites"

    id = Column(String(36), primary_key=True, default=_uuid)
    organization_id = Column(String(36), nullable=True)

    domain = Column(String(255), nullable=False)
    name = Column(String(255))
    category = Column(String(100))  # e.g. "saas", "ecommerce", "local business"

    # Citation counters (rolled weekly: this_week -> last_week)
    total_citations = Column(Integer, default=0, nullable=False)
    citations_this_week = Column(Integer, default=0, nullable=False)
    citations_last_week = Column(Integer, default=0, nullable=False)
    last_checked_at = Column(DateTime)

    # Externally computed readability/GEO score (0-100)
    geo_score_avg = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    source_listings = relationship("SourceListing", back_populates="site", cascade="all, delete-orphan")
    citations = relationship("Citation", back_populates="site", cascade="all, delete-orphan")


class SourceListing(Base):
    """Presence of a site on a third-party trust source"""
    __tablename__ = "source_listings"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    source_domain = Column(String(255), nullable=False)  # g2.com, capterra.com, ...
    source_name = Column(String(255))
    profile_url = Column(String(2000))

    status = Column(Enum(ListingStatus), default=ListingStatus.PENDING, nullable=False)

    listed_at = Column(DateTime, default=datetime.utcnow)
    verified_at = Column(DateTime)

    site = relationship("Site", back_populates="source_listings")

    __table_args__ = (
        UniqueConstraint("site_id", "source_domain", name="uq_source_listing_site_domain"),
        Index("idx_source_listings_site", "site_id"),
    )


class Citation(Base):
    """Observed mention of a site by an AI platform for a query (append-only)"""
    __tablename__ = "citations"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    platform = Column(String(50), nullable=False)  # chatgpt, perplexity, google_ai
    query = Column(Text, nullable=False)
    snippet = Column(Text)
    confidence = Column(String(20), default="medium")  # high, medium, low
    source_domain = Column(String(255))  # trust source that led to it, if known

    cited_at = Column(DateTime, default=datetime.utcnow)

    site = relationship("Site", back_populates="citations")

    __table_args__ = (
        Index("idx_citations_site", "site_id"),
    )


class GeoAnalysis(Base):
    """Point-in-time readability/GEO analysis of a site"""
    __tablename__ = "geo_analyses"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    score = Column(JSON, default=dict)    # {"overall": 62, "grade": "C", ...}
    queries = Column(JSON, default=list)  # queries tracked by this analysis

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_geo_analyses_site_created", "site_id", "created_at"),
    )


class MarketShareSnapshot(Base):
    """Share of tracked queries won/lost at a point in time"""
    __tablename__ = "market_share_snapshots"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    market_share = Column(Integer, default=0, nullable=False)  # 0-100
    total_queries = Column(Integer, default=0)
    queries_won = Column(Integer, default=0)
    queries_lost = Column(Integer, default=0)

    snapshot_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_market_share_site_date", "site_id", "snapshot_date"),
    )


class GeneratedPage(Base):
    """Fix page generated for a lost query"""
    __tablename__ = "generated_pages"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    query = Column(Text, nullable=False)
    title = Column(String(500), nullable=False)
    body = Column(Text)
    status = Column(String(20), default="draft")

    created_at = Column(DateTime, default=datetime.utcnow)


class Competitor(Base):
    """Competing domain cited for the site's queries"""
    __tablename__ = "competitors"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    domain = Column(String(255), nullable=False)
    total_citations = Column(Integer, default=0)


# =============================================================================
# VISIBILITY TRACKING
# =============================================================================

class VisibilitySnapshotRecord(Base):
    """Aggregated visibility checks for one page at one time (immutable)"""
    __tablename__ = "visibility_snapshots"

    id = Column(String(36), primary_key=True, default=_uuid)
    site_id = Column(String(36), ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)
    page_url = Column(String(2000), nullable=False)
    checked_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Platform scores (0-100)
    chatgpt_score = Column(Integer, default=0)
    perplexity_score = Column(Integer, default=0)
    google_ai_score = Column(Integer, default=0)
    overall_score = Column(Integer, default=0)

    # Citation counts
    total_citations = Column(Integer, default=0)
    direct_citations = Column(Integer, default=0)
    paraphrase_citations = Column(Integer, default=0)

    checks = relationship(
        "VisibilityCheckRecord",
        back_populates="snapshot",
        cascade="all, delete-orphan",
        order_by="VisibilityCheckRecord.position",
    )

    __table_args__ = (
        Index("idx_visibility_snapshots_site_checked", "site_id", "checked_at"),
    )


class VisibilityCheckRecord(Base):
    """One platform/query measurement inside a snapshot"""
    __tablename__ = "visibility_checks"

    id = Column(String(36), primary_key=True, default=_uuid)
    snapshot_id = Column(String(36), ForeignKey("visibility_snapshots.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, default=0)  # order within the snapshot

    site_id = Column(String(36), nullable=False)
    page_url = Column(String(2000), nullable=False)
    platform = Column(String(50), nullable=False)
    query = Column(Text, nullable=False)

    is_cited = Column(Boolean, default=False)
    citation_position = Column(Integer)
    citation_type = Column(String(20))  # direct, paraphrase, mention
    snippet_cited = Column(Text)
    confidence = Column(Float, default=0.0)

    visibility_score = Column(Integer, default=0)
    content_quality_score = Column(Integer, default=0)

    checked_at = Column(DateTime, default=datetime.utcnow)

    snapshot = relationship("VisibilitySnapshotRecord", back_populates="checks")
