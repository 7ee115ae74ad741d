"""
Visibility Tracking Module

Snapshots of AI citation likelihood per page, before/after improvements
and customer proof reports.

Example Usage:
    from geopulse.integrations import ClaudePredictor
    from geopulse.tracking import VisibilityTracker

    tracker = VisibilityTracker(ClaudePredictor())
    snapshot = await tracker.take_snapshot(site_id, page_url, "crm software")
"""

from .models import (
    AIPlatform,
    CitationType,
    PLATFORMS,
    InsufficientDataError,
    VisibilityCheck,
    VisibilitySnapshot,
    PlatformChange,
    NewCitation,
    VisibilityImprovement,
    TimelinePoint,
    GEOProofReport,
    QuickCheckResult,
)
from .queries import VISIBILITY_QUERIES, QUERIES_PER_PLATFORM, generate_queries, plan_checks
from .tracker import VisibilityTracker, parse_check_payload

__all__ = [
    "AIPlatform",
    "CitationType",
    "PLATFORMS",
    "InsufficientDataError",
    "VisibilityCheck",
    "VisibilitySnapshot",
    "PlatformChange",
    "NewCitation",
    "VisibilityImprovement",
    "TimelinePoint",
    "GEOProofReport",
    "QuickCheckResult",
    "VISIBILITY_QUERIES",
    "QUERIES_PER_PLATFORM",
    "generate_queries",
    "plan_checks",
    "VisibilityTracker",
    "parse_check_payload",
]
