"""
Momentum Score Calculator

Dynamic 0-100 score answering "how visible are you in AI search?"

Formula:
    Momentum = clamp(Base + Source_Bonus + Momentum_Bonus, 0, 100)

    Base (0-50):            log_curve(total_citations, half_point=8, max=50)
    Source_Bonus (0-30):    sum of weights of verified catalog trust sources
    Momentum_Bonus (-20..20):
        last_week == 0  ->  log_curve(this_week, half_point=3, max=12)
        otherwise       ->  sigmoid((this_week - last_week) / last_week) * 20

Each component is rounded once; the composite is clamped, never re-rounded.
A missing site is scored as all-zero counters.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from geopulse.database.store import DataStore
from geopulse.utils.numbers import round_half_up

from .curves import clamp, log_curve, sigmoid
from .trust_sources import (
    KEY_TRUST_DOMAINS,
    KEY_TRUST_SOURCES,
    MAX_SOURCE_BONUS,
    get_trust_source,
    missing_sources,
    weighted_coverage,
)

logger = logging.getLogger(__name__)

BASE_HALF_POINT = 8
BASE_MAX = 50
NEW_MOMENTUM_HALF_POINT = 3
NEW_MOMENTUM_MAX = 12
MOMENTUM_SCALE = 20

TREND_GAINING = "gaining"
TREND_LOSING = "losing"
TREND_STABLE = "stable"

TIP_FIRST_CHECK = "Run an AI visibility check to discover your current citation count"
TIP_ALL_SOURCES = "All trust sources verified - focus on creating content that gets cited"


@dataclass
class MomentumInputs:
    """Everything the score needs, already fetched."""
    total_citations: int = 0
    citations_this_week: int = 0
    citations_last_week: int = 0
    verified_domains: List[str] = field(default_factory=list)
    queries_won: int = 0
    queries_tracked: int = 0


@dataclass
class MomentumBreakdown:
    base_score: int
    source_bonus: int
    momentum_bonus: int
    explanation: str
    tip: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "baseScore": self.base_score,
            "sourceBonus": self.source_bonus,
            "momentumBonus": self.momentum_bonus,
            "explanation": self.explanation,
            "tip": self.tip,
        }


@dataclass
class MomentumResult:
    score: int               # 0-100
    change: int              # week-over-week delta (can be negative)
    trend: str               # gaining | losing | stable
    citations_won: int
    citations_lost: int
    queries_won: int
    queries_total: int
    source_coverage: int     # 0-6 verified catalog sources
    breakdown: MomentumBreakdown

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "change": self.change,
            "trend": self.trend,
            "citationsWon": self.citations_won,
            "citationsLost": self.citations_lost,
            "queriesWon": self.queries_won,
            "queriesTotal": self.queries_total,
            "sourceCoverage": self.source_coverage,
            "breakdown": self.breakdown.to_dict(),
        }


# =============================================================================
# COMPONENTS
# =============================================================================

def calculate_base_score(total_citations: int) -> int:
    """0-50 from total citations. 1->4, 4->15, 8->25, 20->41, 24->44."""
    return round_half_up(log_curve(total_citations, BASE_HALF_POINT, BASE_MAX))


def calculate_source_bonus(verified_domains: List[str]) -> int:
    """0-30 weighted trust-source coverage; non-catalog domains add nothing."""
    return weighted_coverage(verified_domains)


def calculate_momentum_bonus(citations_this_week: int, citations_last_week: int) -> int:
    """
    Week-over-week bonus/penalty in [-20, 20].

    With no baseline week, new citations earn capped absolute credit (max 12)
    so one early week cannot read as infinite growth.
    """
    if citations_last_week <= 0:
        if citations_this_week > 0:
            return round_half_up(log_curve(citations_this_week, NEW_MOMENTUM_HALF_POINT, NEW_MOMENTUM_MAX))
        return 0

    change_rate = (citations_this_week - citations_last_week) / citations_last_week
    return round_half_up(sigmoid(change_rate) * MOMENTUM_SCALE)


def determine_trend(week_over_week_change: int) -> str:
    if week_over_week_change > 0:
        return TREND_GAINING
    if week_over_week_change < 0:
        return TREND_LOSING
    return TREND_STABLE


def generate_tip(
    verified_domains: List[str],
    total_citations: int,
    source_bonus: int,
) -> Optional[str]:
    """
    One actionable tip, by priority:
    no citations -> first check; missing source -> highest-weight one;
    full coverage -> content focus.
    """
    if total_citations == 0:
        return TIP_FIRST_CHECK

    missing = missing_sources(verified_domains)
    if missing:
        top = missing[0]
        return f"Get listed on {top.name} to gain up to {top.weight} more points"

    if source_bonus >= MAX_SOURCE_BONUS:
        return TIP_ALL_SOURCES

    return None


def build_breakdown(
    base_score: int,
    source_bonus: int,
    momentum_bonus: int,
    final_score: int,
    inputs: MomentumInputs,
) -> MomentumBreakdown:
    """Components plus a human-readable explanation and tip."""
    parts: List[str] = []

    total = inputs.total_citations
    if total == 0:
        parts.append(f"{base_score} pts from AI citations (none found yet)")
    else:
        plural = "s" if total != 1 else ""
        parts.append(f"{base_score} pts from {total} AI citation{plural}")

    verified = _catalog_verified(inputs.verified_domains)
    if verified:
        names = ", ".join(get_trust_source(d).name for d in verified)
        parts.append(
            f"+{source_bonus} pts from {names} ({len(verified)}/{len(KEY_TRUST_SOURCES)} trust sources)"
        )
    else:
        parts.append("+0 pts from trust sources (none verified yet)")

    this_week = inputs.citations_this_week
    last_week = inputs.citations_last_week
    if momentum_bonus > 0:
        if last_week == 0:
            parts.append(f"+{momentum_bonus} pts from new citations this week")
        else:
            pct = round_half_up((this_week - last_week) / last_week * 100)
            parts.append(f"+{momentum_bonus} pts from {pct}% week-over-week growth")
    elif momentum_bonus < 0:
        pct = abs(round_half_up((this_week - last_week) / (last_week or 1) * 100))
        parts.append(f"{momentum_bonus} pts from {pct}% week-over-week decline")
    else:
        parts.append("+0 pts momentum (stable week-over-week)")

    explanation = f"Score {final_score}: {', '.join(parts)}"
    tip = generate_tip(inputs.verified_domains, total, source_bonus)

    return MomentumBreakdown(
        base_score=base_score,
        source_bonus=source_bonus,
        momentum_bonus=momentum_bonus,
        explanation=explanation,
        tip=tip,
    )


def _catalog_verified(verified_domains: List[str]) -> List[str]:
    """Verified domains that are in the catalog, in catalog order."""
    verified = {d.lower() for d in verified_domains}
    return [d for d in KEY_TRUST_DOMAINS if d in verified]


# =============================================================================
# SCORE
# =============================================================================

def score_momentum(inputs: MomentumInputs) -> MomentumResult:
    """Compute the momentum result from already-fetched inputs."""
    this_week = max(0, inputs.citations_this_week)
    last_week = max(0, inputs.citations_last_week)
    week_over_week_change = this_week - last_week

    base_score = calculate_base_score(inputs.total_citations)
    source_bonus = calculate_source_bonus(inputs.verified_domains)
    momentum_bonus = calculate_momentum_bonus(this_week, last_week)

    score = int(clamp(base_score + source_bonus + momentum_bonus, 0, 100))

    breakdown = build_breakdown(base_score, source_bonus, momentum_bonus, score, inputs)

    return MomentumResult(
        score=score,
        change=week_over_week_change,
        trend=determine_trend(week_over_week_change),
        citations_won=max(0, week_over_week_change),
        citations_lost=max(0, -week_over_week_change),
        queries_won=inputs.queries_won,
        queries_total=max(inputs.queries_tracked, inputs.queries_won),
        source_coverage=len(_catalog_verified(inputs.verified_domains)),
        breakdown=breakdown,
    )


async def calculate_momentum(site_id: str, store: DataStore) -> MomentumResult:
    """
    Calculate the momentum score for a site.

    Args:
        site_id: Site to score
        store: Data store (reads only)

    Returns:
        MomentumResult; a missing site scores as all-zero counters
    """
    site, listings, citation_count, analysis = await asyncio.gather(
        store.get_site(site_id),
        store.get_source_listings(site_id, KEY_TRUST_DOMAINS),
        store.count_citations(site_id),
        store.get_latest_analysis(site_id),
    )

    if site is None:
        logger.info(f"No site record for {site_id}; scoring as zero counters")

    inputs = MomentumInputs(
        total_citations=site.total_citations if site else 0,
        citations_this_week=site.citations_this_week if site else 0,
        citations_last_week=site.citations_last_week if site else 0,
        verified_domains=[l.source_domain for l in listings if l.is_verified],
        queries_won=citation_count,
        queries_tracked=len(analysis.queries) if analysis else 0,
    )

    result = score_momentum(inputs)
    logger.debug(f"Momentum for {site_id}: {result.breakdown.explanation}")
    return result
