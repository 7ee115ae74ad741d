"""In-memory data store.

Dict-backed DataStore for unit tests and local experiments.
No SQLAlchemy, no I/O.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from geopulse.tracking.models import VisibilitySnapshot

from .models import ListingStatus
from .store import (
    AnalysisRecord,
    DataStore,
    MarketShareRecord,
    SiteRecord,
    SourceListingRecord,
    is_comparison_query,
)


class InMemoryDataStore(DataStore):
    """Dict-backed DataStore."""

    def __init__(self) -> None:
        self.sites: Dict[str, SiteRecord] = {}
        self.listings: Dict[str, List[SourceListingRecord]] = defaultdict(list)
        self.citation_queries: Dict[str, List[str]] = defaultdict(list)
        self.analyses: Dict[str, List[AnalysisRecord]] = defaultdict(list)
        self.market_share: Dict[str, List[MarketShareRecord]] = defaultdict(list)
        self.generated_pages: Dict[str, int] = defaultdict(int)
        self.competitors: Dict[str, Dict[str, int]] = defaultdict(dict)
        self.snapshots: Dict[str, List[VisibilitySnapshot]] = defaultdict(list)

    # -- seeding helpers ------------------------------------------------------

    def add_site(self, site: SiteRecord) -> SiteRecord:
        self.sites[site.id] = site
        return site

    def add_listing(
        self, site_id: str, source_domain: str, status: ListingStatus = ListingStatus.VERIFIED
    ) -> None:
        self.listings[site_id] = [
            l for l in self.listings[site_id] if l.source_domain != source_domain
        ]
        self.listings[site_id].append(SourceListingRecord(source_domain, status))

    def add_citation(self, site_id: str, query: str) -> None:
        self.citation_queries[site_id].append(query)

    def add_analysis(self, site_id: str, analysis: AnalysisRecord) -> None:
        self.analyses[site_id].append(analysis)

    def add_market_share(self, site_id: str, snapshot: MarketShareRecord) -> None:
        self.market_share[site_id].append(snapshot)

    def add_competitor(self, site_id: str, domain: str, total_citations: int = 0) -> None:
        self.competitors[site_id][domain] = total_citations

    # -- DataStore ------------------------------------------------------------

    async def get_site(self, site_id: str) -> Optional[SiteRecord]:
        return self.sites.get(site_id)

    async def get_source_listings(
        self, site_id: str, domains: Optional[Sequence[str]] = None
    ) -> List[SourceListingRecord]:
        listings = list(self.listings.get(site_id, []))
        if domains is not None:
            wanted = set(domains)
            listings = [l for l in listings if l.source_domain in wanted]
        return listings

    async def has_verified_listing(self, site_id: str, source_domain: str) -> bool:
        return any(
            l.source_domain == source_domain and l.is_verified
            for l in self.listings.get(site_id, [])
        )

    async def count_citations(self, site_id: str) -> int:
        return len(self.citation_queries.get(site_id, []))

    async def count_comparison_citations(self, site_id: str) -> int:
        return sum(1 for q in self.citation_queries.get(site_id, []) if is_comparison_query(q))

    async def get_latest_analysis(self, site_id: str) -> Optional[AnalysisRecord]:
        analyses = self.analyses.get(site_id)
        if not analyses:
            return None
        return max(analyses, key=lambda a: a.created_at or datetime.min)

    async def get_latest_market_share(self, site_id: str) -> Optional[MarketShareRecord]:
        snapshots = self.market_share.get(site_id)
        if not snapshots:
            return None
        return max(snapshots, key=lambda s: s.snapshot_date or datetime.min)

    async def count_generated_pages(self, site_id: str) -> int:
        return self.generated_pages.get(site_id, 0)

    async def get_top_competitor_domain(self, site_id: str) -> Optional[str]:
        competitors = self.competitors.get(site_id)
        if not competitors:
            return None
        return max(competitors.items(), key=lambda kv: kv[1])[0]

    async def save_visibility_snapshot(self, snapshot: VisibilitySnapshot) -> None:
        self.snapshots[snapshot.site_id].append(snapshot)

    async def list_visibility_snapshots(
        self, site_id: str, since: Optional[datetime] = None
    ) -> List[VisibilitySnapshot]:
        snapshots = self.snapshots.get(site_id, [])
        if since is not None:
            snapshots = [s for s in snapshots if s.checked_at >= since]
        return sorted(snapshots, key=lambda s: s.checked_at)
