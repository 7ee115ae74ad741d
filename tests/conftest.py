"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import pytest
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from geopulse.database import InMemoryDataStore, SiteRecord
from geopulse.integrations import Predictor
from geopulse.tracking import (
    AIPlatform,
    CitationType,
    VisibilityCheck,
    VisibilitySnapshot,
)


FIXED_NOW = datetime(2025, 3, 2, 12, 0, 0)


# ============================================================================
# Store Fixtures
# ============================================================================

@pytest.fixture
def memory_store() -> InMemoryDataStore:
    """Empty in-memory data store."""
    return InMemoryDataStore()


@pytest.fixture
def saas_site(memory_store) -> SiteRecord:
    """A SaaS site with some citation history and nothing verified."""
    return memory_store.add_site(SiteRecord(
        id="site-saas",
        domain="acme.io",
        category="B2B SaaS",
        total_citations=8,
        citations_this_week=5,
        citations_last_week=0,
    ))


# ============================================================================
# Predictor Fixtures
# ============================================================================

def cited_payload(**overrides) -> Dict[str, Any]:
    """A well-formed citation prediction."""
    payload = {
        "isCited": True,
        "citationPosition": 2,
        "citationType": "direct",
        "snippet": "Acme is a CRM for small teams.",
        "confidence": 0.8,
        "visibilityScore": 70,
        "contentQualityScore": 65,
        "reasoning": "Authoritative domain with a direct answer.",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def mock_predictor() -> MagicMock:
    """Predictor returning the same well-formed citation prediction."""
    predictor = MagicMock(spec=Predictor)
    predictor.predict = AsyncMock(return_value=cited_payload())
    return predictor


@pytest.fixture
def failing_predictor() -> MagicMock:
    """Predictor whose every call raises."""
    predictor = MagicMock(spec=Predictor)
    predictor.predict = AsyncMock(side_effect=RuntimeError("upstream unavailable"))
    return predictor


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


# ============================================================================
# Snapshot Factories
# ============================================================================

def make_check(
    platform: AIPlatform = AIPlatform.CHATGPT,
    query: str = "what is crm",
    is_cited: bool = False,
    citation_type: Optional[CitationType] = None,
    visibility_score: int = 0,
    content_quality_score: int = 0,
    page_url: str = "https://acme.io/crm",
    checked_at: datetime = FIXED_NOW,
) -> VisibilityCheck:
    return VisibilityCheck(
        id=f"check-{platform.value}-{query}",
        site_id="site-saas",
        page_url=page_url,
        platform=platform,
        query=query,
        is_cited=is_cited,
        confidence=0.5 if is_cited else 0.0,
        visibility_score=visibility_score,
        content_quality_score=content_quality_score,
        checked_at=checked_at,
        citation_type=citation_type,
        snippet_cited="snippet" if is_cited else None,
    )


def make_snapshot(
    overall: int,
    checked_at: datetime = FIXED_NOW,
    page_url: str = "https://acme.io/crm",
    platform_scores: Optional[Dict[AIPlatform, int]] = None,
    checks: Optional[List[VisibilityCheck]] = None,
    total_citations: Optional[int] = None,
    direct_citations: int = 0,
) -> VisibilitySnapshot:
    scores = platform_scores or {p: overall for p in AIPlatform}
    checks = checks or []
    return VisibilitySnapshot(
        id=f"snap-{page_url}-{checked_at.isoformat()}",
        site_id="site-saas",
        page_url=page_url,
        checked_at=checked_at,
        chatgpt_score=scores[AIPlatform.CHATGPT],
        perplexity_score=scores[AIPlatform.PERPLEXITY],
        google_ai_score=scores[AIPlatform.GOOGLE_AI],
        overall_score=overall,
        total_citations=(
            total_citations if total_citations is not None
            else sum(1 for c in checks if c.is_cited)
        ),
        direct_citations=direct_citations,
        paraphrase_citations=0,
        checks=checks,
    )


def days_ago(n: int) -> datetime:
    return FIXED_NOW - timedelta(days=n)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
