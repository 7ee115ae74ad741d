"""
Visibility Check Queries

Query templates used to probe AI platforms for a page's topic, grouped by
intent. Informational first: those are the ones answer engines cite most.
"""

from typing import Dict, List, Tuple

from .models import AIPlatform, PLATFORMS

VISIBILITY_QUERIES: Dict[str, Tuple[str, ...]] = {
    # Informational queries (ChatGPT/Perplexity love these)
    "informational": (
        "what is {topic}",
        "how does {topic} work",
        "explain {topic}",
        "{topic} guide",
        "best practices for {topic}",
    ),
    # Commercial queries (Google AI Overviews)
    "commercial": (
        "best {topic} tools",
        "{topic} comparison",
        "top {topic} solutions",
        "{topic} alternatives",
        "{topic} vs competitors",
    ),
    # Question-based (high citation potential)
    "questions": (
        "why is {topic} important",
        "when should you use {topic}",
        "how to improve {topic}",
        "what are the benefits of {topic}",
        "common {topic} mistakes",
    ),
}

QUERIES_PER_PLATFORM = 5


def generate_queries(topic: str) -> List[str]:
    """All 15 templates with the topic substituted, in intent order."""
    topic = topic.strip()
    return [
        template.format(topic=topic)
        for templates in VISIBILITY_QUERIES.values()
        for template in templates
    ]


def plan_checks(topic: str, per_platform: int = QUERIES_PER_PLATFORM) -> List[Tuple[AIPlatform, str]]:
    """(platform, query) pairs for one snapshot: the top queries on every platform."""
    queries = generate_queries(topic)[:per_platform]
    return [(platform, query) for platform in PLATFORMS for query in queries]
