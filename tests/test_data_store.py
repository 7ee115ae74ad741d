"""
Tests for the SQLAlchemy data store and repository helpers.

Runs against a temporary SQLite file; the in-memory store is checked
against the same expectations for the read paths both serve.
"""

from dataclasses import replace
from datetime import datetime, timedelta

import pytest

from geopulse.database import (
    Competitor,
    GeneratedPage,
    GeoAnalysis,
    ListingStatus,
    MarketShareSnapshot,
    Site,
    SQLAlchemyDataStore,
    create_db_engine,
    create_session_factory,
    create_site,
    get_db_context,
    init_db,
    is_comparison_query,
    record_citation,
    roll_weekly_citations,
    upsert_source_listing,
)
from geopulse.tracking import AIPlatform, CitationType

from conftest import make_check, make_snapshot


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'geopulse_test.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return SQLAlchemyDataStore(session_factory)


@pytest.fixture
def site_id(session_factory):
    return create_site("acme.io", category="B2B SaaS", session_factory=session_factory)


class TestComparisonQueries:
    """Comparison-style query matching."""

    @pytest.mark.parametrize("query,expected", [
        ("notion vs asana", True),
        ("Notion VS Asana", True),
        ("best asana alternatives", True),
        ("alternative to notion", True),
        ("best project management tool", False),
        ("canvas pricing", False),
    ])
    def test_is_comparison_query(self, query, expected):
        assert is_comparison_query(query) is expected


@pytest.mark.integration
class TestSQLAlchemyReads:
    """Read paths."""

    @pytest.mark.asyncio
    async def test_missing_rows(self, store):
        assert await store.get_site("missing") is None
        assert await store.count_citations("missing") == 0
        assert await store.get_latest_analysis("missing") is None
        assert await store.get_latest_market_share("missing") is None
        assert await store.get_top_competitor_domain("missing") is None
        assert await store.list_visibility_snapshots("missing") == []

    @pytest.mark.asyncio
    async def test_site_and_listings(self, store, site_id, session_factory):
        upsert_source_listing(site_id, "g2.com", ListingStatus.VERIFIED, session_factory=session_factory)
        upsert_source_listing(site_id, "capterra.com", ListingStatus.PENDING, session_factory=session_factory)
        upsert_source_listing(site_id, "capterra.com", ListingStatus.UNVERIFIED, session_factory=session_factory)

        site = await store.get_site(site_id)
        listings = await store.get_source_listings(site_id, ["g2.com", "capterra.com", "reddit.com"])

        assert site.domain == "acme.io"
        assert site.category == "B2B SaaS"
        assert site.total_citations == 0
        assert sorted(l.source_domain for l in listings) == ["capterra.com", "g2.com"]
        assert await store.has_verified_listing(site_id, "g2.com") is True
        assert await store.has_verified_listing(site_id, "capterra.com") is False

    @pytest.mark.asyncio
    async def test_citation_counts(self, store, site_id, session_factory):
        for query in ("notion vs asana", "asana alternatives", "best crm", "what is crm"):
            record_citation(site_id, "chatgpt", query, session_factory=session_factory)

        assert await store.count_citations(site_id) == 4
        assert await store.count_comparison_citations(site_id) == 2

        site = await store.get_site(site_id)
        assert site.total_citations == 4
        assert site.citations_this_week == 4

    @pytest.mark.asyncio
    async def test_latest_rows_win(self, store, site_id, session_factory):
        old, new = datetime(2025, 1, 1), datetime(2025, 2, 1)
        with get_db_context(session_factory) as db:
            db.add(GeoAnalysis(site_id=site_id, score={"overall": 80}, queries=["a"], created_at=old))
            db.add(GeoAnalysis(site_id=site_id, score={"overall": 42}, queries=["a", "b"], created_at=new))
            db.add(MarketShareSnapshot(site_id=site_id, queries_lost=1, snapshot_date=old))
            db.add(MarketShareSnapshot(site_id=site_id, queries_lost=4, queries_won=6, snapshot_date=new))
            db.add(GeneratedPage(site_id=site_id, query="best crm", title="Best CRM"))
            db.add(Competitor(site_id=site_id, domain="small.example", total_citations=2))
            db.add(Competitor(site_id=site_id, domain="big.example", total_citations=30))

        analysis = await store.get_latest_analysis(site_id)
        market_share = await store.get_latest_market_share(site_id)

        assert analysis.score == 42
        assert analysis.queries == ["a", "b"]
        assert market_share.queries_lost == 4
        assert await store.count_generated_pages(site_id) == 1
        assert await store.get_top_competitor_domain(site_id) == "big.example"


@pytest.mark.integration
class TestSnapshotPersistence:
    """Snapshot write/read."""

    @pytest.mark.asyncio
    async def test_round_trip_keeps_check_order(self, store, site_id):
        checks = [
            make_check(AIPlatform.CHATGPT, "what is crm", is_cited=True, citation_type=CitationType.DIRECT, visibility_score=80),
            make_check(AIPlatform.PERPLEXITY, "what is crm", visibility_score=20),
            make_check(AIPlatform.GOOGLE_AI, "crm guide", is_cited=True, citation_type=CitationType.MENTION, visibility_score=50),
        ]
        checks = [replace(c, site_id=site_id) for c in checks]
        snapshot = make_snapshot(50, checks=checks, direct_citations=1)
        snapshot = replace(snapshot, site_id=site_id)

        await store.save_visibility_snapshot(snapshot)
        loaded = await store.list_visibility_snapshots(site_id)

        assert len(loaded) == 1
        assert loaded[0] == snapshot

    @pytest.mark.asyncio
    async def test_list_filters_by_since_and_sorts(self, store, site_id):
        now = datetime(2025, 3, 2)
        for days in (20, 1, 5):
            snap = make_snapshot(10 + days, checked_at=now - timedelta(days=days))
            await store.save_visibility_snapshot(replace(snap, site_id=site_id))

        recent = await store.list_visibility_snapshots(site_id, since=now - timedelta(days=7))

        assert [s.overall_score for s in recent] == [15, 11]


@pytest.mark.integration
class TestWeeklyRollover:
    """Weekly citation counters."""

    def test_roll_moves_this_week_to_last_week(self, site_id, session_factory):
        for query in ("a", "b", "c"):
            record_citation(site_id, "perplexity", query, session_factory=session_factory)

        rolled = roll_weekly_citations(session_factory)

        assert rolled == 1
        with get_db_context(session_factory) as db:
            site = db.query(Site).filter(Site.id == site_id).one()
            assert site.citations_last_week == 3
            assert site.citations_this_week == 0
            assert site.total_citations == 3

    def test_record_citation_unknown_site(self, session_factory):
        assert record_citation("missing", "chatgpt", "q", session_factory=session_factory) is None
