"""
Scoring Module for GeoPulse

1. **Curves** - log_curve (diminishing returns) and sigmoid (bounded change)
2. **Trust-Source Catalog** - the six weighted review/discussion platforms
3. **Momentum Score** (0-100) - citations + trust sources + weekly momentum

Example Usage:
    from geopulse.scoring import score_momentum, MomentumInputs

    result = score_momentum(MomentumInputs(
        total_citations=8,
        citations_this_week=5,
        citations_last_week=0,
    ))
    print(result.score, result.breakdown.explanation)
"""

from .curves import log_curve, sigmoid, clamp
from .trust_sources import (
    TrustSource,
    KEY_TRUST_SOURCES,
    KEY_TRUST_DOMAINS,
    SOURCE_WEIGHTS,
    MAX_SOURCE_BONUS,
    get_trust_source,
    weighted_coverage,
    missing_sources,
)
from .momentum import (
    MomentumInputs,
    MomentumBreakdown,
    MomentumResult,
    calculate_base_score,
    calculate_source_bonus,
    calculate_momentum_bonus,
    determine_trend,
    generate_tip,
    score_momentum,
    calculate_momentum,
)

__all__ = [
    # Curves
    "log_curve",
    "sigmoid",
    "clamp",
    # Catalog
    "TrustSource",
    "KEY_TRUST_SOURCES",
    "KEY_TRUST_DOMAINS",
    "SOURCE_WEIGHTS",
    "MAX_SOURCE_BONUS",
    "get_trust_source",
    "weighted_coverage",
    "missing_sources",
    # Momentum
    "MomentumInputs",
    "MomentumBreakdown",
    "MomentumResult",
    "calculate_base_score",
    "calculate_source_bonus",
    "calculate_momentum_bonus",
    "determine_trend",
    "generate_tip",
    "score_momentum",
    "calculate_momentum",
]
