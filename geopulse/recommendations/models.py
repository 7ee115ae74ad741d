"""
Next-Action Types

A recommendation is exactly one of a closed set of actions, identified by
ActionId. Priority and category are enums so a new action has to pick
from the known values.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Priority(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ActionCategory(Enum):
    SOURCE = "source"
    CONTENT = "content"
    TECHNICAL = "technical"
    MONITORING = "monitoring"


class ActionId(Enum):
    """Every action the selector can emit, in decision order."""
    GENERATE_FIX_PAGES = "generate_fix_pages"
    RUN_FIRST_SCAN = "run_first_scan"
    GET_LISTED = "get_listed"            # suffixed with the source, e.g. get_listed_g2
    PUBLISH_COMPARISON_PAGE = "publish_comparison_page"
    BUILD_REDDIT_PRESENCE = "build_reddit_presence"
    IMPROVE_AI_READABILITY = "improve_ai_readability"
    RUN_ANOTHER_CHECK = "run_another_check"


@dataclass(frozen=True)
class NextAction:
    """The single recommended action."""
    action: ActionId
    title: str
    description: str
    priority: Priority
    estimated_minutes: int
    category: ActionCategory
    action_url: Optional[str] = None
    subject: Optional[str] = None  # source slug for GET_LISTED

    @property
    def id(self) -> str:
        if self.subject:
            return f"{self.action.value}_{self.subject}"
        return self.action.value

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "estimatedMinutes": self.estimated_minutes,
            "category": self.category.value,
        }
        if self.action_url:
            data["actionUrl"] = self.action_url
        return data
