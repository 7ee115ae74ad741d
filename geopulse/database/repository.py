"""
Repository Layer - Write Operations

Simple functions to record citation activity and maintain the weekly
counters the momentum score reads. Handles SQLAlchemy sessions internally.

Weekly rollover contract:
    citations_this_week counts citations recorded since the last rollover.
    roll_weekly_citations() runs once a week (Sunday 00:00 UTC), copying
    citations_this_week into citations_last_week and zeroing this week.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from .models import Citation, ListingStatus, Site, SourceListing
from .session import get_db_context

logger = logging.getLogger(__name__)


# =============================================================================
# SITES & LISTINGS
# =============================================================================

def create_site(
    domain: str,
    category: Optional[str] = None,
    name: Optional[str] = None,
    organization_id: Optional[str] = None,
    session_factory: Optional[sessionmaker] = None,
) -> str:
    """
    Create a tracked site.

    Returns:
        ID of the created site
    """
    with get_db_context(session_factory) as db:
        site = Site(
            domain=domain,
            name=name or domain,
            category=category,
            organization_id=organization_id,
        )
        db.add(site)
        db.flush()
        site_id = site.id
        logger.info(f"Created site {site_id} for {domain}")
        return site_id


def upsert_source_listing(
    site_id: str,
    source_domain: str,
    status: ListingStatus,
    source_name: Optional[str] = None,
    profile_url: Optional[str] = None,
    session_factory: Optional[sessionmaker] = None,
) -> None:
    """Create or update the listing of a site on a trust source."""
    with get_db_context(session_factory) as db:
        listing = (
            db.query(SourceListing)
            .filter(
                SourceListing.site_id == site_id,
                SourceListing.source_domain == source_domain,
            )
            .first()
        )
        if not listing:
            listing = SourceListing(
                site_id=site_id,
                source_domain=source_domain,
                source_name=source_name or source_domain,
            )
            db.add(listing)

        listing.status = status
        if profile_url:
            listing.profile_url = profile_url
        if status == ListingStatus.VERIFIED and not listing.verified_at:
            listing.verified_at = datetime.utcnow()


# =============================================================================
# CITATIONS
# =============================================================================

def record_citation(
    site_id: str,
    platform: str,
    query: str,
    snippet: Optional[str] = None,
    confidence: str = "medium",
    source_domain: Optional[str] = None,
    session_factory: Optional[sessionmaker] = None,
) -> Optional[str]:
    """
    Append a citation and bump the site's counters.

    Returns:
        Citation ID, or None if the site does not exist
    """
    with get_db_context(session_factory) as db:
        site = db.query(Site).filter(Site.id == site_id).first()
        if not site:
            logger.warning(f"Cannot record citation: site {site_id} not found")
            return None

        citation = Citation(
            site_id=site_id,
            platform=platform,
            query=query,
            snippet=snippet,
            confidence=confidence,
            source_domain=source_domain,
        )
        db.add(citation)

        site.total_citations = (site.total_citations or 0) + 1
        site.citations_this_week = (site.citations_this_week or 0) + 1
        site.last_checked_at = datetime.utcnow()

        db.flush()
        return citation.id


def roll_weekly_citations(session_factory: Optional[sessionmaker] = None) -> int:
    """
    Move this week's citation count into last week and start a new week.

    Returns:
        Number of sites rolled over
    """
    with get_db_context(session_factory) as db:
        result = db.execute(
            update(Site).values(
                citations_last_week=Site.citations_this_week,
                citations_this_week=0,
            )
        )
        count = result.rowcount or 0

    logger.info(f"Rolled weekly citation counts for {count} sites")
    return count
