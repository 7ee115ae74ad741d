"""
Recommendations Module

Picks the single highest-leverage next action for a site.

Example Usage:
    from geopulse.recommendations import get_next_action

    action = await get_next_action(site_id, store)
    print(action.title, action.priority.value)
"""

from .models import ActionCategory, ActionId, NextAction, Priority
from .catalog import (
    BusinessType,
    CatalogSource,
    CATEGORY_KEYWORDS,
    SOURCE_CATALOG,
    classify_category,
    get_sources_for_category,
)
from .next_action import (
    ActionContext,
    READABILITY_THRESHOLD,
    select_next_action,
    gather_action_context,
    get_next_action,
)

__all__ = [
    "ActionCategory",
    "ActionId",
    "NextAction",
    "Priority",
    "BusinessType",
    "CatalogSource",
    "CATEGORY_KEYWORDS",
    "SOURCE_CATALOG",
    "classify_category",
    "get_sources_for_category",
    "ActionContext",
    "READABILITY_THRESHOLD",
    "select_next_action",
    "gather_action_context",
    "get_next_action",
]
