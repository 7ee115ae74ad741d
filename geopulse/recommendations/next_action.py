"""
Next-Action Engine

Determines the SINGLE most impactful next action for a site. Conditions
are checked in strict priority order and the first match wins; there is
no weighted blending, and the final branch is unconditional so exactly
one action always comes back.

Priority order:
1. Lost queries without fix pages      -> generate fix pages (critical)
2. Zero citations anywhere             -> run first scan (critical)
3. Unlisted category trust source      -> get listed on <source>
4. No cited comparison queries         -> publish a comparison page (high)
5. No verified Reddit listing          -> build Reddit presence (medium)
6. Readability score below 50          -> improve AI-readability (medium)
7. Default                             -> run another check (low)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from geopulse.database.store import DataStore
from geopulse.utils.numbers import round_half_up

from .catalog import CatalogSource, get_sources_for_category
from .models import ActionCategory, ActionId, NextAction, Priority

logger = logging.getLogger(__name__)

READABILITY_THRESHOLD = 50
REDDIT_DOMAIN = "reddit.com"


@dataclass
class ActionContext:
    """Pre-fetched state the decision chain reads. Missing records are zero/absent."""
    queries_lost: int = 0
    pages_generated: int = 0
    total_citations: int = 0
    category_sources: List[CatalogSource] = field(default_factory=list)
    verified_sources: List[str] = field(default_factory=list)
    comparison_citations: int = 0
    has_reddit: bool = False
    readability_score: Optional[float] = None
    top_competitor: Optional[str] = None


# =============================================================================
# ACTIONS
# =============================================================================

def _fix_pages_action(gaps: int) -> NextAction:
    plural = "s" if gaps != 1 else ""
    return NextAction(
        action=ActionId.GENERATE_FIX_PAGES,
        title=f"Generate fix pages for {gaps} gap{plural}",
        description=(
            f"AI platforms answered {gaps} of your tracked quer{'ies' if gaps != 1 else 'y'} "
            "by citing someone else. A focused page per lost query gives them "
            "a reason to cite you instead."
        ),
        priority=Priority.CRITICAL,
        estimated_minutes=5,
        category=ActionCategory.CONTENT,
    )


def _first_scan_action() -> NextAction:
    return NextAction(
        action=ActionId.RUN_FIRST_SCAN,
        title="Run your first AI visibility scan",
        description=(
            "You haven't checked your AI visibility yet. Run a quick scan to see "
            "if ChatGPT, Perplexity, and Google AI are recommending you "
            "or sending users to competitors instead."
        ),
        priority=Priority.CRITICAL,
        estimated_minutes=1,
        category=ActionCategory.MONITORING,
    )


def _get_listed_action(source: CatalogSource) -> NextAction:
    return NextAction(
        action=ActionId.GET_LISTED,
        subject=source.slug,
        title=f"Get listed on {source.name}",
        description=source.rationale,
        priority=source.priority,
        estimated_minutes=120,
        action_url=source.signup_url,
        category=ActionCategory.SOURCE,
    )


def _comparison_action(top_competitor: Optional[str]) -> NextAction:
    label = top_competitor or "Top Competitor"
    return NextAction(
        action=ActionId.PUBLISH_COMPARISON_PAGE,
        title=f"Publish a comparison page: You vs {label}",
        description=(
            "AI models love structured comparison content. When someone asks "
            '"What is the best alternative to X?" AI looks for head-to-head '
            "comparisons. Publishing a comparison page puts you in the conversation."
        ),
        priority=Priority.HIGH,
        estimated_minutes=60,
        category=ActionCategory.CONTENT,
    )


def _reddit_action() -> NextAction:
    return NextAction(
        action=ActionId.BUILD_REDDIT_PRESENCE,
        title="Build community presence on Reddit",
        description=(
            "Reddit is one of the most-cited sources by AI platforms. "
            "Authentic posts and comments in relevant subreddits create "
            "citations that AI models trust and reference."
        ),
        priority=Priority.MEDIUM,
        estimated_minutes=30,
        action_url="https://www.reddit.com",
        category=ActionCategory.SOURCE,
    )


def _readability_action(score: float) -> NextAction:
    return NextAction(
        action=ActionId.IMPROVE_AI_READABILITY,
        title="Improve your website's AI-readability",
        description=(
            f"Your GEO score is {round_half_up(score)}, which means AI models struggle to "
            "understand and extract information from your website. Structured data "
            "(JSON-LD), clear headings, and concise descriptions make your content "
            "easier for AI to quote."
        ),
        priority=Priority.MEDIUM,
        estimated_minutes=120,
        category=ActionCategory.TECHNICAL,
    )


def _another_check_action() -> NextAction:
    return NextAction(
        action=ActionId.RUN_ANOTHER_CHECK,
        title="Run another check to track your progress",
        description=(
            "You're in good shape! Keep monitoring your AI visibility "
            "to catch changes early. Regular checks help you spot trends "
            "and react before competitors pull ahead."
        ),
        priority=Priority.LOW,
        estimated_minutes=1,
        category=ActionCategory.MONITORING,
    )


# =============================================================================
# SELECTION
# =============================================================================

def select_next_action(ctx: ActionContext) -> NextAction:
    """Walk the decision chain over pre-fetched state. Always returns one action."""
    if ctx.queries_lost > 0 and ctx.pages_generated < ctx.queries_lost:
        return _fix_pages_action(ctx.queries_lost - ctx.pages_generated)

    if ctx.total_citations == 0:
        return _first_scan_action()

    verified = set(ctx.verified_sources)
    for source in ctx.category_sources:
        if source.domain not in verified:
            return _get_listed_action(source)

    if ctx.comparison_citations == 0:
        return _comparison_action(ctx.top_competitor)

    if not ctx.has_reddit:
        return _reddit_action()

    if ctx.readability_score is not None and ctx.readability_score < READABILITY_THRESHOLD:
        return _readability_action(ctx.readability_score)

    return _another_check_action()


async def gather_action_context(site_id: str, store: DataStore) -> ActionContext:
    """Fetch every input of the decision chain in parallel."""
    (
        site,
        total_citations,
        comparison_citations,
        analysis,
        market_share,
        pages_generated,
        has_reddit,
        top_competitor,
    ) = await asyncio.gather(
        store.get_site(site_id),
        store.count_citations(site_id),
        store.count_comparison_citations(site_id),
        store.get_latest_analysis(site_id),
        store.get_latest_market_share(site_id),
        store.count_generated_pages(site_id),
        store.has_verified_listing(site_id, REDDIT_DOMAIN),
        store.get_top_competitor_domain(site_id),
    )

    # Source checks depend on the site's category
    category_sources = get_sources_for_category(site.category if site else None)
    source_presence = await asyncio.gather(
        *(store.has_verified_listing(site_id, source.domain) for source in category_sources)
    )

    readability = analysis.score if analysis and analysis.score is not None else None
    if readability is None and site is not None:
        readability = site.geo_score_avg

    return ActionContext(
        queries_lost=market_share.queries_lost if market_share else 0,
        pages_generated=pages_generated,
        total_citations=total_citations,
        category_sources=category_sources,
        verified_sources=[
            source.domain
            for source, present in zip(category_sources, source_presence)
            if present
        ],
        comparison_citations=comparison_citations,
        has_reddit=has_reddit,
        readability_score=readability,
        top_competitor=top_competitor,
    )


async def get_next_action(site_id: str, store: DataStore) -> NextAction:
    """
    Determine the single most impactful next action for a site.

    Args:
        site_id: Site to evaluate
        store: Data store (reads only)

    Returns:
        Exactly one NextAction
    """
    ctx = await gather_action_context(site_id, store)
    action = select_next_action(ctx)
    logger.info(f"Next action for {site_id}: {action.id} ({action.priority.value})")
    return action
