"""
Trust-Source Catalog

The six third-party review/discussion platforms AI answer engines lean on
most when recommending products, weighted by importance. Only verified
listings on these domains feed the momentum source bonus.

G2(7) + Capterra(6) + Product Hunt(5) + Trustpilot(5) + TrustRadius(4) + Reddit(3) = 30
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class TrustSource:
    """A trust source with its signup metadata."""
    domain: str
    name: str
    weight: int
    signup_url: str


KEY_TRUST_SOURCES: Tuple[TrustSource, ...] = (
    TrustSource("g2.com", "G2", 7, "https://www.g2.com/products/new"),
    TrustSource("capterra.com", "Capterra", 6, "https://www.capterra.com/vendors/sign-up"),
    TrustSource("producthunt.com", "Product Hunt", 5, "https://www.producthunt.com/posts/new"),
    TrustSource("trustpilot.com", "Trustpilot", 5, "https://business.trustpilot.com/signup"),
    TrustSource("trustradius.com", "TrustRadius", 4, "https://www.trustradius.com/vendors"),
    TrustSource("reddit.com", "Reddit", 3, "https://www.reddit.com"),
)

SOURCE_WEIGHTS: Dict[str, int] = {s.domain: s.weight for s in KEY_TRUST_SOURCES}
KEY_TRUST_DOMAINS: List[str] = [s.domain for s in KEY_TRUST_SOURCES]

MAX_SOURCE_BONUS = sum(SOURCE_WEIGHTS.values())  # 30


def get_trust_source(domain: str) -> Optional[TrustSource]:
    """Look up a catalog source by domain."""
    domain = domain.lower()
    for source in KEY_TRUST_SOURCES:
        if source.domain == domain:
            return source
    return None


def weighted_coverage(verified_domains: Iterable[str]) -> int:
    """
    Sum of catalog weights for the verified domains, capped at MAX_SOURCE_BONUS.

    Domains outside the catalog contribute nothing; duplicates count once.
    """
    unique = {d.lower() for d in verified_domains}
    return min(MAX_SOURCE_BONUS, sum(SOURCE_WEIGHTS.get(d, 0) for d in unique))


def missing_sources(verified_domains: Iterable[str]) -> List[TrustSource]:
    """Catalog sources not yet verified, highest weight first (catalog order on ties)."""
    verified = {d.lower() for d in verified_domains}
    missing = [s for s in KEY_TRUST_SOURCES if s.domain not in verified]
    return sorted(missing, key=lambda s: s.weight, reverse=True)
