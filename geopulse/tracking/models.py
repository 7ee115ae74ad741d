"""
Visibility Tracking Data Classes

Checks and snapshots are immutable measurements; improvements and proof
reports are derived on demand by diffing snapshots and are always
regenerable. `to_dict()` renders the camelCase shape served by the API.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class AIPlatform(Enum):
    """AI answer platforms checked for citations."""
    CHATGPT = "chatgpt"
    PERPLEXITY = "perplexity"
    GOOGLE_AI = "google_ai"


class CitationType(Enum):
    """How an AI answer used the page."""
    DIRECT = "direct"          # quoted
    PARAPHRASE = "paraphrase"
    MENTION = "mention"


PLATFORMS: List[AIPlatform] = [AIPlatform.CHATGPT, AIPlatform.PERPLEXITY, AIPlatform.GOOGLE_AI]


class InsufficientDataError(ValueError):
    """Raised when a proof report is requested from fewer than 2 snapshots."""


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class VisibilityCheck:
    """One platform/query measurement."""
    id: str
    site_id: str
    page_url: str
    platform: AIPlatform
    query: str

    is_cited: bool
    confidence: float            # 0-1
    visibility_score: int        # 0-100
    content_quality_score: int   # 0-100
    checked_at: datetime

    citation_position: Optional[int] = None   # 1-5, 1 most prominent
    citation_type: Optional[CitationType] = None
    snippet_cited: Optional[str] = None

    @property
    def citation_key(self) -> str:
        return f"{self.platform.value}:{self.query}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "siteId": self.site_id,
            "pageUrl": self.page_url,
            "platform": self.platform.value,
            "query": self.query,
            "isCited": self.is_cited,
            "citationPosition": self.citation_position,
            "citationType": self.citation_type.value if self.citation_type else None,
            "snippetCited": self.snippet_cited,
            "confidence": self.confidence,
            "visibilityScore": self.visibility_score,
            "contentQualityScore": self.content_quality_score,
            "checkedAt": _iso(self.checked_at),
        }


@dataclass(frozen=True)
class VisibilitySnapshot:
    """Aggregation of visibility checks for one page at one time."""
    id: str
    site_id: str
    page_url: str
    checked_at: datetime

    chatgpt_score: int
    perplexity_score: int
    google_ai_score: int
    overall_score: int

    total_citations: int
    direct_citations: int
    paraphrase_citations: int

    checks: List[VisibilityCheck] = field(default_factory=list)

    def platform_score(self, platform: AIPlatform) -> int:
        return {
            AIPlatform.CHATGPT: self.chatgpt_score,
            AIPlatform.PERPLEXITY: self.perplexity_score,
            AIPlatform.GOOGLE_AI: self.google_ai_score,
        }[platform]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "siteId": self.site_id,
            "pageUrl": self.page_url,
            "checkedAt": _iso(self.checked_at),
            "chatgptScore": self.chatgpt_score,
            "perplexityScore": self.perplexity_score,
            "googleAiScore": self.google_ai_score,
            "overallScore": self.overall_score,
            "totalCitations": self.total_citations,
            "directCitations": self.direct_citations,
            "paraphraseCitations": self.paraphrase_citations,
            "checks": [c.to_dict() for c in self.checks],
        }


@dataclass
class PlatformChange:
    platform: AIPlatform
    before: int
    after: int

    @property
    def change(self) -> int:
        return self.after - self.before

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "before": self.before,
            "after": self.after,
            "change": self.change,
        }


@dataclass
class NewCitation:
    """A (platform, query) cited after but not before."""
    platform: AIPlatform
    query: str
    snippet: str
    cited_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform.value,
            "query": self.query,
            "snippet": self.snippet,
            "citedAt": _iso(self.cited_at),
        }


@dataclass
class VisibilityImprovement:
    """Before/after diff of two snapshots of the same page."""
    site_id: str
    page_url: str
    period_start: datetime
    period_end: datetime

    before_score: int
    after_score: int
    improvement_percent: int

    platforms: List[PlatformChange] = field(default_factory=list)
    new_citations: List[NewCitation] = field(default_factory=list)
    improvement_drivers: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "siteId": self.site_id,
            "pageUrl": self.page_url,
            "period": {"start": _iso(self.period_start), "end": _iso(self.period_end)},
            "beforeScore": self.before_score,
            "afterScore": self.after_score,
            "improvementPercent": self.improvement_percent,
            "platforms": [p.to_dict() for p in self.platforms],
            "newCitations": [c.to_dict() for c in self.new_citations],
            "improvementDrivers": list(self.improvement_drivers),
        }


@dataclass
class TimelinePoint:
    date: datetime
    citations: int
    score: int

    def to_dict(self) -> Dict[str, Any]:
        return {"date": _iso(self.date), "citations": self.citations, "score": self.score}


@dataclass
class GEOProofReport:
    """Customer-facing proof that AI visibility moved over a period."""
    site_id: str
    site_domain: str
    generated_at: datetime
    period_days: int

    overall_improvement: int
    pages_analyzed: int
    new_citations: int

    # {"chatgpt": {"before": 40, "after": 55}, "perplexity": ..., "googleAi": ...}
    platform_scores: Dict[str, Dict[str, int]] = field(default_factory=dict)
    top_improvements: List[VisibilityImprovement] = field(default_factory=list)
    citation_timeline: List[TimelinePoint] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "siteId": self.site_id,
            "siteDomain": self.site_domain,
            "generatedAt": _iso(self.generated_at),
            "periodDays": self.period_days,
            "overallImprovement": self.overall_improvement,
            "pagesAnalyzed": self.pages_analyzed,
            "newCitations": self.new_citations,
            "platformScores": self.platform_scores,
            "topImprovements": [i.to_dict() for i in self.top_improvements],
            "citationTimeline": [p.to_dict() for p in self.citation_timeline],
        }


@dataclass
class QuickCheckResult:
    """Single-call visibility estimate for a URL."""
    overall_score: int
    per_platform: Dict[AIPlatform, int]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "perPlatform": {p.value: s for p, s in self.per_platform.items()},
            "recommendations": list(self.recommendations),
        }
