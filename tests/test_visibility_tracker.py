"""
Tests for the visibility tracker.

These tests verify:
- Query generation and the snapshot check plan
- Snapshot aggregation and persistence
- Degradation when the predictor fails or returns malformed data
- Improvements, proof reports and quick checks
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from geopulse.integrations import PredictionError, Predictor
from geopulse.tracking import (
    AIPlatform,
    CitationType,
    InsufficientDataError,
    VisibilityTracker,
    generate_queries,
    parse_check_payload,
    plan_checks,
)

from conftest import FIXED_NOW, cited_payload, days_ago, make_check, make_snapshot


# =============================================================================
# QUERY TESTS
# =============================================================================

class TestQueries:
    """Query templates."""

    def test_fifteen_queries(self):
        queries = generate_queries("crm software")
        assert len(queries) == 15
        assert queries[0] == "what is crm software"
        assert all("crm software" in q for q in queries)

    def test_plan_is_five_per_platform(self):
        plan = plan_checks("crm")
        assert len(plan) == 15
        for platform in AIPlatform:
            queries = [q for p, q in plan if p == platform]
            assert queries == generate_queries("crm")[:5]

    def test_plan_order_is_platform_then_query(self):
        plan = plan_checks("crm")
        assert [p for p, _ in plan[:5]] == [AIPlatform.CHATGPT] * 5
        assert plan[5] == (AIPlatform.PERPLEXITY, "what is crm")


# =============================================================================
# PAYLOAD TESTS
# =============================================================================

class TestParseCheckPayload:
    """Prediction validation."""

    def test_well_formed(self):
        fields = parse_check_payload(cited_payload())
        assert fields["is_cited"] is True
        assert fields["citation_type"] == CitationType.DIRECT
        assert fields["citation_position"] == 2
        assert fields["visibility_score"] == 70

    def test_scores_clamped(self):
        fields = parse_check_payload(cited_payload(visibilityScore=140, contentQualityScore=-3, confidence=1.7))
        assert fields["visibility_score"] == 100
        assert fields["content_quality_score"] == 0
        assert fields["confidence"] == 1.0

    def test_uncited_drops_citation_details(self):
        fields = parse_check_payload(cited_payload(isCited=False))
        assert fields["citation_type"] is None
        assert fields["citation_position"] is None
        assert fields["snippet_cited"] is None

    def test_unknown_citation_type_ignored(self):
        fields = parse_check_payload(cited_payload(citationType="footnote"))
        assert fields["citation_type"] is None

    @pytest.mark.parametrize("key", ["isCited", "confidence", "visibilityScore", "contentQualityScore"])
    def test_missing_required_field(self, key):
        payload = cited_payload()
        del payload[key]
        with pytest.raises(PredictionError):
            parse_check_payload(payload)

    def test_string_score_rejected(self):
        with pytest.raises(PredictionError):
            parse_check_payload(cited_payload(visibilityScore="high"))

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_score_rejected(self, value):
        with pytest.raises(PredictionError):
            parse_check_payload(cited_payload(visibilityScore=value))

    def test_non_finite_position_dropped(self):
        fields = parse_check_payload(cited_payload(citationPosition=float("nan")))
        assert fields["citation_position"] is None

    @pytest.mark.asyncio
    async def test_nan_prediction_degrades_to_zero(self):
        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(return_value=cited_payload(visibilityScore=float("nan")))
        tracker = VisibilityTracker(predictor)

        check = await tracker.check_visibility("s1", "https://acme.io", AIPlatform.CHATGPT, "what is crm")

        assert check.is_cited is False
        assert check.visibility_score == 0


# =============================================================================
# CHECK TESTS
# =============================================================================

class TestCheckVisibility:
    """Single checks."""

    @pytest.mark.asyncio
    async def test_cited_check(self, mock_predictor, fixed_clock):
        tracker = VisibilityTracker(mock_predictor, clock=fixed_clock)

        check = await tracker.check_visibility("s1", "https://acme.io/crm", AIPlatform.PERPLEXITY, "what is crm")

        assert check.is_cited is True
        assert check.platform == AIPlatform.PERPLEXITY
        assert check.snippet_cited == "Acme is a CRM for small teams."
        assert check.checked_at == FIXED_NOW

        prompt = mock_predictor.predict.call_args.args[0]
        assert "acme.io" in prompt
        assert "perplexity" in prompt
        assert '"what is crm"' in prompt

    @pytest.mark.asyncio
    async def test_predictor_failure_degrades(self, failing_predictor):
        tracker = VisibilityTracker(failing_predictor)

        check = await tracker.check_visibility("s1", "https://acme.io", AIPlatform.CHATGPT, "what is crm")

        assert check.is_cited is False
        assert check.confidence == 0
        assert check.visibility_score == 0
        assert check.content_quality_score == 0
        assert check.citation_type is None

    @pytest.mark.asyncio
    async def test_malformed_prediction_degrades(self):
        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(return_value={"answer": "probably"})
        tracker = VisibilityTracker(predictor)

        check = await tracker.check_visibility("s1", "https://acme.io", AIPlatform.GOOGLE_AI, "crm guide")

        assert check.is_cited is False
        assert check.visibility_score == 0


# =============================================================================
# SNAPSHOT TESTS
# =============================================================================

class TestTakeSnapshot:
    """Snapshot aggregation."""

    @pytest.mark.asyncio
    async def test_fifteen_checks_aggregated(self, mock_predictor, fixed_clock):
        tracker = VisibilityTracker(mock_predictor, clock=fixed_clock)

        snapshot = await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert mock_predictor.predict.await_count == 15
        assert len(snapshot.checks) == 15
        assert snapshot.chatgpt_score == 70
        assert snapshot.overall_score == 70
        assert snapshot.total_citations == 15
        assert snapshot.direct_citations == 15
        assert snapshot.paraphrase_citations == 0
        assert [c.platform for c in snapshot.checks[:5]] == [AIPlatform.CHATGPT] * 5

    @pytest.mark.asyncio
    async def test_per_platform_means(self):
        scores = {"chatgpt": 90, "perplexity": 45, "google_ai": 10}

        async def predict(prompt):
            for platform, score in scores.items():
                if f"Platform: {platform}\n" in prompt:
                    return cited_payload(visibilityScore=score, citationType="paraphrase")
            raise AssertionError("platform missing from prompt")

        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(side_effect=predict)
        tracker = VisibilityTracker(predictor)

        snapshot = await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert snapshot.chatgpt_score == 90
        assert snapshot.perplexity_score == 45
        assert snapshot.google_ai_score == 10
        assert snapshot.overall_score == 48
        assert snapshot.paraphrase_citations == 15

    @pytest.mark.asyncio
    async def test_partial_failures_do_not_abort(self):
        calls = {"n": 0}

        async def predict(prompt):
            calls["n"] += 1
            if calls["n"] % 3 == 0:
                raise PredictionError("rate limited")
            return cited_payload()

        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(side_effect=predict)
        tracker = VisibilityTracker(predictor, max_concurrency=1)

        snapshot = await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert len(snapshot.checks) == 15
        assert snapshot.total_citations == 10

    @pytest.mark.asyncio
    async def test_all_failures_give_zero_snapshot(self, failing_predictor):
        tracker = VisibilityTracker(failing_predictor)

        snapshot = await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert snapshot.overall_score == 0
        assert snapshot.total_citations == 0

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        state = {"active": 0, "peak": 0}

        async def predict(prompt):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return cited_payload()

        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(side_effect=predict)
        tracker = VisibilityTracker(predictor, max_concurrency=3)

        await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert state["peak"] <= 3

    @pytest.mark.asyncio
    async def test_snapshot_persisted_when_store_given(self, mock_predictor, memory_store):
        tracker = VisibilityTracker(mock_predictor, store=memory_store)

        snapshot = await tracker.take_snapshot("s1", "https://acme.io/crm", "crm")

        assert memory_store.snapshots["s1"] == [snapshot]


# =============================================================================
# IMPROVEMENT TESTS
# =============================================================================

class TestCalculateImprovement:
    """Before/after diffs."""

    def test_percent_change(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        improvement = tracker.calculate_improvement(
            make_snapshot(40, checked_at=days_ago(7)),
            make_snapshot(50),
        )
        assert improvement.improvement_percent == 25
        assert improvement.before_score == 40
        assert improvement.after_score == 50

    def test_zero_baseline_reports_after_score(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        improvement = tracker.calculate_improvement(make_snapshot(0), make_snapshot(37))
        assert improvement.improvement_percent == 37

    def test_half_percent_rounds_up(self, mock_predictor):
        """40 -> 41 is +2.5%."""
        tracker = VisibilityTracker(mock_predictor)
        improvement = tracker.calculate_improvement(
            make_snapshot(40, checked_at=days_ago(7)),
            make_snapshot(41),
        )
        assert improvement.improvement_percent == 3

    def test_half_percent_decline_rounds_toward_zero(self, mock_predictor):
        """40 -> 39 is -2.5%."""
        tracker = VisibilityTracker(mock_predictor)
        report = tracker.generate_proof_report("s1", "acme.io", [
            make_snapshot(40, checked_at=days_ago(7)),
            make_snapshot(39, checked_at=days_ago(1)),
        ])
        assert report.overall_improvement == -2

    def test_same_snapshot_is_no_change(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        snap = make_snapshot(
            55,
            checks=[make_check(is_cited=True, citation_type=CitationType.DIRECT, visibility_score=55)],
            direct_citations=1,
        )

        improvement = tracker.calculate_improvement(snap, snap)

        assert improvement.improvement_percent == 0
        assert improvement.new_citations == []
        assert improvement.improvement_drivers == []

    def test_new_citations_by_platform_and_query(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        before = make_snapshot(30, checks=[
            make_check(AIPlatform.CHATGPT, "what is crm", is_cited=True),
            make_check(AIPlatform.PERPLEXITY, "what is crm", is_cited=False),
        ])
        after = make_snapshot(45, checks=[
            make_check(AIPlatform.CHATGPT, "what is crm", is_cited=True),
            make_check(AIPlatform.PERPLEXITY, "what is crm", is_cited=True),
            make_check(AIPlatform.GOOGLE_AI, "crm guide", is_cited=False),
        ])

        improvement = tracker.calculate_improvement(before, after)

        assert [(c.platform, c.query) for c in improvement.new_citations] == [
            (AIPlatform.PERPLEXITY, "what is crm"),
        ]

    def test_drivers_for_improved_sub_scores(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        before = make_snapshot(30, platform_scores={
            AIPlatform.CHATGPT: 30, AIPlatform.PERPLEXITY: 30, AIPlatform.GOOGLE_AI: 30,
        })
        after = make_snapshot(40, platform_scores={
            AIPlatform.CHATGPT: 50, AIPlatform.PERPLEXITY: 30, AIPlatform.GOOGLE_AI: 40,
        }, direct_citations=2)

        improvement = tracker.calculate_improvement(before, after)

        assert improvement.improvement_drivers == [
            "More direct citations from structured content",
            "Improved ChatGPT visibility",
            "Higher Google AI Overview presence",
        ]
        changes = {p.platform: p.change for p in improvement.platforms}
        assert changes == {AIPlatform.CHATGPT: 20, AIPlatform.PERPLEXITY: 0, AIPlatform.GOOGLE_AI: 10}


# =============================================================================
# PROOF REPORT TESTS
# =============================================================================

class TestGenerateProofReport:
    """Proof reports."""

    def test_single_snapshot_is_insufficient(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        with pytest.raises(InsufficientDataError):
            tracker.generate_proof_report("s1", "acme.io", [make_snapshot(40)])

    def test_no_snapshots_is_insufficient(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        with pytest.raises(InsufficientDataError):
            tracker.generate_proof_report("s1", "acme.io", [])

    def test_first_vs_last_regardless_of_input_order(self, mock_predictor, fixed_clock):
        tracker = VisibilityTracker(mock_predictor, clock=fixed_clock)
        snapshots = [
            make_snapshot(60, checked_at=days_ago(0), total_citations=9),
            make_snapshot(40, checked_at=days_ago(6), total_citations=3),
            make_snapshot(50, checked_at=days_ago(3), total_citations=5),
        ]

        report = tracker.generate_proof_report("s1", "acme.io", snapshots, period_days=7)

        assert report.overall_improvement == 50
        assert report.new_citations == 6
        assert report.pages_analyzed == 1
        assert report.generated_at == FIXED_NOW
        assert [p.score for p in report.citation_timeline] == [40, 50, 60]
        assert report.platform_scores["googleAi"] == {"before": 40, "after": 60}

    def test_citation_drop_is_not_negative(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        report = tracker.generate_proof_report("s1", "acme.io", [
            make_snapshot(40, checked_at=days_ago(5), total_citations=8),
            make_snapshot(30, checked_at=days_ago(1), total_citations=2),
        ])
        assert report.new_citations == 0
        assert report.overall_improvement == -25

    def test_top_five_pages_by_improvement(self, mock_predictor):
        tracker = VisibilityTracker(mock_predictor)
        snapshots = []
        for i, after in enumerate([12, 30, 11, 25, 15, 20, 40]):
            url = f"https://acme.io/page-{i}"
            snapshots.append(make_snapshot(10, checked_at=days_ago(6), page_url=url))
            snapshots.append(make_snapshot(after, checked_at=days_ago(1), page_url=url))
        snapshots.append(make_snapshot(99, checked_at=days_ago(2), page_url="https://acme.io/once"))

        report = tracker.generate_proof_report("s1", "acme.io", snapshots)

        assert report.pages_analyzed == 8
        assert [i.improvement_percent for i in report.top_improvements] == [300, 200, 150, 100, 50]
        assert report.top_improvements[0].page_url == "https://acme.io/page-6"

    def test_deterministic(self, mock_predictor, fixed_clock):
        tracker = VisibilityTracker(mock_predictor, clock=fixed_clock)
        snapshots = [make_snapshot(20, checked_at=days_ago(4)), make_snapshot(35, checked_at=days_ago(1))]

        first = tracker.generate_proof_report("s1", "acme.io", snapshots).to_dict()
        second = tracker.generate_proof_report("s1", "acme.io", list(reversed(snapshots))).to_dict()

        assert first == second


# =============================================================================
# QUICK CHECK TESTS
# =============================================================================

class TestQuickCheck:
    """Single-call estimates."""

    @pytest.mark.asyncio
    async def test_quick_check(self):
        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(return_value={
            "chatgpt": 60,
            "perplexity": 71,
            "googleAi": 50,
            "recommendations": ["Add FAQ schema", "Lead with a direct answer", "Cite sources"],
        })
        tracker = VisibilityTracker(predictor)

        result = await tracker.quick_check("https://acme.io/crm")

        assert result.overall_score == 60
        assert result.per_platform[AIPlatform.PERPLEXITY] == 71
        assert len(result.recommendations) == 3
        assert result.to_dict()["perPlatform"] == {"chatgpt": 60, "perplexity": 71, "google_ai": 50}

    @pytest.mark.asyncio
    async def test_quick_check_degrades(self, failing_predictor):
        tracker = VisibilityTracker(failing_predictor)

        result = await tracker.quick_check("https://acme.io/crm")

        assert result.overall_score == 0
        assert set(result.per_platform.values()) == {0}
        assert result.recommendations == ["Unable to analyze - please try again"]

    @pytest.mark.asyncio
    async def test_quick_check_missing_field_degrades(self):
        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(return_value={"chatgpt": 60, "perplexity": 71})
        tracker = VisibilityTracker(predictor)

        result = await tracker.quick_check("https://acme.io/crm")

        assert result.overall_score == 0

    @pytest.mark.asyncio
    async def test_quick_check_nan_scores_degrade(self):
        predictor = MagicMock(spec=Predictor)
        predictor.predict = AsyncMock(return_value={
            "chatgpt": float("nan"),
            "perplexity": float("nan"),
            "googleAi": float("nan"),
            "recommendations": ["Add FAQ schema"],
        })
        tracker = VisibilityTracker(predictor)

        result = await tracker.quick_check("https://acme.io/crm")

        assert result.overall_score == 0
        assert set(result.per_platform.values()) == {0}
        assert result.recommendations == ["Unable to analyze - please try again"]
