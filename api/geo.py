"""
GEO API

Endpoints for citation momentum, next-best-action and AI visibility
tracking. Responses use the camelCase shapes rendered by each result's
`to_dict()`.

Endpoints:
- Momentum score for a site
- Single next action for a site
- Visibility snapshot / single check / quick check
- Proof report over the last N days
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from geopulse.database import DataStore, SQLAlchemyDataStore
from geopulse.integrations import ClaudePredictor, Predictor
from geopulse.recommendations import get_next_action
from geopulse.scoring import calculate_momentum
from geopulse.tracking import AIPlatform, InsufficientDataError, VisibilityTracker
from geopulse.utils.config import get_settings


logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/geo", tags=["GEO"])


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_data_store() -> DataStore:
    return SQLAlchemyDataStore()


def get_predictor() -> Predictor:
    return ClaudePredictor()


def get_tracker(
    store: DataStore = Depends(get_data_store),
    predictor: Predictor = Depends(get_predictor),
) -> VisibilityTracker:
    return VisibilityTracker(predictor, store=store)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SnapshotRequest(_CamelModel):
    """Take a visibility snapshot of one page."""
    site_id: str = Field(..., alias="siteId", min_length=1)
    page_url: str = Field(..., alias="pageUrl", min_length=1)
    topic: str = Field(..., min_length=1, description="Topic the queries are built from")


class CheckRequest(_CamelModel):
    """Check one page on one platform for one query."""
    site_id: str = Field(..., alias="siteId", min_length=1)
    page_url: str = Field(..., alias="pageUrl", min_length=1)
    platform: AIPlatform
    query: str = Field(..., min_length=1)


class QuickCheckRequest(_CamelModel):
    page_url: str = Field(..., alias="pageUrl", min_length=1)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/momentum")
async def momentum(
    site_id: str = Query(..., alias="siteId", min_length=1),
    store: DataStore = Depends(get_data_store),
) -> Dict[str, Any]:
    """Citation momentum score (0-100) with breakdown, trend and tip."""
    result = await calculate_momentum(site_id, store)
    return result.to_dict()


@router.get("/next-action")
async def next_action(
    site_id: str = Query(..., alias="siteId", min_length=1),
    store: DataStore = Depends(get_data_store),
) -> Dict[str, Any]:
    """The single highest-priority action for a site."""
    action = await get_next_action(site_id, store)
    return action.to_dict()


@router.post("/visibility/snapshot")
async def take_snapshot(
    request: SnapshotRequest,
    tracker: VisibilityTracker = Depends(get_tracker),
) -> Dict[str, Any]:
    """
    Snapshot a page across ChatGPT, Perplexity and Google AI.

    Issues 15 predictions; failed ones count as uncited zeros.
    """
    snapshot = await tracker.take_snapshot(request.site_id, request.page_url, request.topic)
    return snapshot.to_dict()


@router.post("/visibility/check")
async def check_visibility(
    request: CheckRequest,
    tracker: VisibilityTracker = Depends(get_tracker),
) -> Dict[str, Any]:
    check = await tracker.check_visibility(
        request.site_id, request.page_url, request.platform, request.query
    )
    return check.to_dict()


@router.post("/visibility/quick-check")
async def quick_check(
    request: QuickCheckRequest,
    tracker: VisibilityTracker = Depends(get_tracker),
) -> Dict[str, Any]:
    result = await tracker.quick_check(request.page_url)
    return result.to_dict()


@router.get("/report")
async def proof_report(
    site_id: str = Query(..., alias="siteId", min_length=1),
    days: Optional[int] = Query(default=None, ge=1, le=365),
    store: DataStore = Depends(get_data_store),
    tracker: VisibilityTracker = Depends(get_tracker),
) -> Dict[str, Any]:
    """
    Proof report from the snapshots taken in the last `days` days.

    422 when fewer than 2 snapshots exist in the window.
    """
    period_days = days or get_settings().REPORT_PERIOD_DAYS

    site = await store.get_site(site_id)
    if site is None:
        raise HTTPException(status_code=404, detail=f"Site {site_id} not found")

    since = datetime.utcnow() - timedelta(days=period_days)
    snapshots = await store.list_visibility_snapshots(site_id, since=since)

    try:
        report = tracker.generate_proof_report(site_id, site.domain, snapshots, period_days)
    except InsufficientDataError as e:
        logger.info(f"Proof report for {site_id} unavailable: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return report.to_dict()
