"""
GEO Visibility Tracker

Tracks and proves AI visibility improvements across ChatGPT, Perplexity
and Google AI Overviews:

- Snapshots: 5 queries x 3 platforms, each estimated by the predictor
- Improvements: before/after diff of two snapshots of the same page
- Proof reports: first-vs-last summary, top page improvements, timeline

A failed prediction never aborts a snapshot: the check degrades to an
all-zero, uncited result and is logged.
"""

import asyncio
import logging
from collections import OrderedDict
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from urllib.parse import urlparse
from uuid import uuid4

from geopulse.integrations.predictor import PredictionError, Predictor
from geopulse.utils.config import get_settings
from geopulse.utils.numbers import is_finite_number, round_half_up

from .models import (
    AIPlatform,
    CitationType,
    GEOProofReport,
    InsufficientDataError,
    NewCitation,
    PLATFORMS,
    PlatformChange,
    QuickCheckResult,
    TimelinePoint,
    VisibilityCheck,
    VisibilityImprovement,
    VisibilitySnapshot,
)
from .queries import generate_queries, plan_checks

if TYPE_CHECKING:
    from geopulse.database.store import DataStore

logger = logging.getLogger(__name__)

TOP_IMPROVEMENTS = 5
QUICK_CHECK_FALLBACK = ["Unable to analyze - please try again"]

CHECK_PROMPT = """Analyze if this page would likely be cited by AI search engines.

Page URL: {page_url}
Domain: {domain}
Platform: {platform}
Query: "{query}"

Based on typical AI citation patterns, estimate:
1. Would this page likely be cited? (yes/no)
2. If cited, what position? (1-5, where 1 is most prominent)
3. Citation type? (direct quote, paraphrase, or mention)
4. Confidence score (0-1)
5. Visibility score (0-100)
6. Content quality score (0-100)

Consider:
- Is the domain authoritative for this topic?
- Would the page have a direct answer to this query?
- Is the content structured for AI extraction?

Return JSON: {{
  "isCited": boolean,
  "citationPosition": number|null,
  "citationType": "direct"|"paraphrase"|"mention"|null,
  "snippet": string|null,
  "confidence": number,
  "visibilityScore": number,
  "contentQualityScore": number,
  "reasoning": string
}}"""

QUICK_CHECK_PROMPT = """Analyze this URL for AI search engine visibility:
URL: {page_url}

Score each platform (0-100) based on how likely the content would be cited:
- ChatGPT: Does it have clear, quotable answers?
- Perplexity: Is it structured with facts and data?
- Google AI: Does it have schema markup potential?

Also provide 3 quick recommendations to improve visibility.

Return JSON: {{
  "chatgpt": number,
  "perplexity": number,
  "googleAi": number,
  "recommendations": ["tip1", "tip2", "tip3"]
}}"""

PLATFORM_DRIVERS: Dict[AIPlatform, str] = {
    AIPlatform.CHATGPT: "Improved ChatGPT visibility",
    AIPlatform.PERPLEXITY: "Better Perplexity citation rates",
    AIPlatform.GOOGLE_AI: "Higher Google AI Overview presence",
}

REPORT_PLATFORM_KEYS: Dict[AIPlatform, str] = {
    AIPlatform.CHATGPT: "chatgpt",
    AIPlatform.PERPLEXITY: "perplexity",
    AIPlatform.GOOGLE_AI: "googleAi",
}


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

def _number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if not is_finite_number(value):
        raise PredictionError(f"Prediction field '{key}' missing or not a finite number: {value!r}")
    return float(value)


def _score(data: Dict[str, Any], key: str) -> int:
    return round_half_up(max(0.0, min(100.0, _number(data, key))))


def parse_check_payload(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalise a citation prediction.

    Raises:
        PredictionError: Required fields missing or mistyped
    """
    is_cited = data.get("isCited")
    if not isinstance(is_cited, bool):
        raise PredictionError(f"Prediction field 'isCited' missing or not a boolean: {is_cited!r}")

    position = data.get("citationPosition")
    if not is_finite_number(position) or position < 1:
        position = None
    else:
        position = min(5, int(position))

    try:
        citation_type = CitationType(data.get("citationType")) if data.get("citationType") else None
    except ValueError:
        citation_type = None

    snippet = data.get("snippet")

    return {
        "is_cited": is_cited,
        "citation_position": position if is_cited else None,
        "citation_type": citation_type if is_cited else None,
        "snippet_cited": snippet if is_cited and isinstance(snippet, str) else None,
        "confidence": max(0.0, min(1.0, _number(data, "confidence"))),
        "visibility_score": _score(data, "visibilityScore"),
        "content_quality_score": _score(data, "contentQualityScore"),
    }


def _average(values: List[int]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def _improvement_percent(before: int, after: int) -> int:
    """Relative change in percent; the raw after-score when there is no baseline."""
    if before > 0:
        return round_half_up((after - before) / before * 100)
    return after


# =============================================================================
# TRACKER
# =============================================================================

class VisibilityTracker:
    """
    Visibility snapshots, improvements and proof reports.

    Usage:
        tracker = VisibilityTracker(ClaudePredictor(), store=store)

        before = await tracker.take_snapshot(site_id, "https://acme.io/crm", "crm software")
        ...
        after = await tracker.take_snapshot(site_id, "https://acme.io/crm", "crm software")
        improvement = tracker.calculate_improvement(before, after)
    """

    def __init__(
        self,
        predictor: Predictor,
        store: Optional["DataStore"] = None,
        max_concurrency: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        """
        Args:
            predictor: Citation-likelihood collaborator
            store: Optional data store; snapshots are persisted when given
            max_concurrency: In-flight predictions per snapshot (defaults to settings)
            clock: Source of timestamps
        """
        self.predictor = predictor
        self.store = store
        self.max_concurrency = max(1, max_concurrency or get_settings().SNAPSHOT_CONCURRENCY)
        self.clock = clock

    def generate_queries(self, topic: str) -> List[str]:
        return generate_queries(topic)

    async def take_snapshot(self, site_id: str, page_url: str, topic: str) -> VisibilitySnapshot:
        """
        Take a visibility snapshot for a page (baseline or checkpoint).

        Not idempotent: every call issues fresh predictions.
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(platform: AIPlatform, query: str) -> VisibilityCheck:
            async with semaphore:
                return await self.check_visibility(site_id, page_url, platform, query)

        plan = plan_checks(topic)
        checks = list(await asyncio.gather(*(bounded(p, q) for p, q in plan)))

        platform_scores = {
            platform: _average([c.visibility_score for c in checks if c.platform == platform])
            for platform in PLATFORMS
        }

        snapshot = VisibilitySnapshot(
            id=str(uuid4()),
            site_id=site_id,
            page_url=page_url,
            checked_at=self.clock(),
            chatgpt_score=platform_scores[AIPlatform.CHATGPT],
            perplexity_score=platform_scores[AIPlatform.PERPLEXITY],
            google_ai_score=platform_scores[AIPlatform.GOOGLE_AI],
            overall_score=round_half_up(sum(platform_scores.values()) / len(PLATFORMS)),
            total_citations=sum(1 for c in checks if c.is_cited),
            direct_citations=sum(1 for c in checks if c.citation_type == CitationType.DIRECT),
            paraphrase_citations=sum(1 for c in checks if c.citation_type == CitationType.PARAPHRASE),
            checks=checks,
        )

        logger.info(
            f"Snapshot for {page_url}: overall {snapshot.overall_score}, "
            f"{snapshot.total_citations}/{len(checks)} cited"
        )

        if self.store is not None:
            await self.store.save_visibility_snapshot(snapshot)

        return snapshot

    async def check_visibility(
        self,
        site_id: str,
        page_url: str,
        platform: AIPlatform,
        query: str,
    ) -> VisibilityCheck:
        """Estimate citation of a page on one platform for one query. Never raises."""
        prompt = CHECK_PROMPT.format(
            page_url=page_url,
            domain=urlparse(page_url).hostname or page_url,
            platform=platform.value,
            query=query,
        )

        try:
            fields = parse_check_payload(await self.predictor.predict(prompt))
        except Exception as e:
            logger.warning(f"Visibility check failed ({platform.value}, {query!r}): {e}")
            fields = {
                "is_cited": False,
                "confidence": 0.0,
                "visibility_score": 0,
                "content_quality_score": 0,
            }

        return VisibilityCheck(
            id=str(uuid4()),
            site_id=site_id,
            page_url=page_url,
            platform=platform,
            query=query,
            checked_at=self.clock(),
            **fields,
        )

    def calculate_improvement(
        self,
        before: VisibilitySnapshot,
        after: VisibilitySnapshot,
    ) -> VisibilityImprovement:
        """Compare two snapshots of the same page."""
        before_cited = {c.citation_key for c in before.checks if c.is_cited}
        new_citations = [
            NewCitation(
                platform=c.platform,
                query=c.query,
                snippet=c.snippet_cited or "",
                cited_at=c.checked_at,
            )
            for c in after.checks
            if c.is_cited and c.citation_key not in before_cited
        ]

        platforms = [
            PlatformChange(p, before.platform_score(p), after.platform_score(p))
            for p in PLATFORMS
        ]

        drivers: List[str] = []
        if after.direct_citations > before.direct_citations:
            drivers.append("More direct citations from structured content")
        for change in platforms:
            if change.change > 0:
                drivers.append(PLATFORM_DRIVERS[change.platform])
        before_quality = _average([c.content_quality_score for c in before.checks])
        after_quality = _average([c.content_quality_score for c in after.checks])
        if after_quality > before_quality:
            drivers.append("Higher content quality scores")

        return VisibilityImprovement(
            site_id=before.site_id,
            page_url=before.page_url,
            period_start=before.checked_at,
            period_end=after.checked_at,
            before_score=before.overall_score,
            after_score=after.overall_score,
            improvement_percent=_improvement_percent(before.overall_score, after.overall_score),
            platforms=platforms,
            new_citations=new_citations,
            improvement_drivers=drivers,
        )

    def generate_proof_report(
        self,
        site_id: str,
        site_domain: str,
        snapshots: List[VisibilitySnapshot],
        period_days: int = 7,
    ) -> GEOProofReport:
        """
        Build a customer proof report from a series of snapshots.

        Raises:
            InsufficientDataError: Fewer than 2 snapshots
        """
        if len(snapshots) < 2:
            raise InsufficientDataError(
                f"Need at least 2 snapshots for comparison, got {len(snapshots)}"
            )

        ordered = sorted(snapshots, key=lambda s: s.checked_at)
        first, last = ordered[0], ordered[-1]

        pages: "OrderedDict[str, List[VisibilitySnapshot]]" = OrderedDict()
        for snap in ordered:
            pages.setdefault(snap.page_url, []).append(snap)

        improvements = [
            self.calculate_improvement(page_snaps[0], page_snaps[-1])
            for page_snaps in pages.values()
            if len(page_snaps) >= 2
        ]
        improvements.sort(key=lambda i: i.improvement_percent, reverse=True)

        return GEOProofReport(
            site_id=site_id,
            site_domain=site_domain,
            generated_at=self.clock(),
            period_days=period_days,
            overall_improvement=_improvement_percent(first.overall_score, last.overall_score),
            pages_analyzed=len(pages),
            new_citations=max(0, last.total_citations - first.total_citations),
            platform_scores={
                REPORT_PLATFORM_KEYS[p]: {
                    "before": first.platform_score(p),
                    "after": last.platform_score(p),
                }
                for p in PLATFORMS
            },
            top_improvements=improvements[:TOP_IMPROVEMENTS],
            citation_timeline=[
                TimelinePoint(date=s.checked_at, citations=s.total_citations, score=s.overall_score)
                for s in ordered
            ],
        )

    async def quick_check(self, page_url: str) -> QuickCheckResult:
        """Fast single-call visibility estimate for a URL. Never raises."""
        try:
            data = await self.predictor.predict(QUICK_CHECK_PROMPT.format(page_url=page_url))
            per_platform = {
                AIPlatform.CHATGPT: _score(data, "chatgpt"),
                AIPlatform.PERPLEXITY: _score(data, "perplexity"),
                AIPlatform.GOOGLE_AI: _score(data, "googleAi"),
            }
            recommendations = data.get("recommendations")
            if not isinstance(recommendations, list):
                raise PredictionError("Prediction field 'recommendations' missing or not a list")
        except Exception as e:
            logger.warning(f"Quick check failed for {page_url}: {e}")
            return QuickCheckResult(
                overall_score=0,
                per_platform={p: 0 for p in PLATFORMS},
                recommendations=list(QUICK_CHECK_FALLBACK),
            )

        return QuickCheckResult(
            overall_score=round_half_up(sum(per_platform.values()) / len(PLATFORMS)),
            per_platform=per_platform,
            recommendations=[str(r) for r in recommendations],
        )
