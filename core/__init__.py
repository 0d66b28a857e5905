"""
Core search pipeline for Stack Exchange questions.

    Fan-out        Bounded-concurrency per-site requests, fail-fast
    Aggregation    Merging and ranking per-site results
    Markdown       Normalizing and parsing question/answer bodies
    Errors         One exception hierarchy for every failure kind

The query planner (``core.planner``) and the site directory
(``core.sites``) depend on the API clients and are imported directly.
"""

from core.aggregate import merge, sort_answers
from core.errors import (
    BlockedError,
    EmptyQuestionError,
    MalformedCacheError,
    MalformedResponseError,
    MissingHrefError,
    NoResultsError,
    OutsideNetworkError,
    ScrapingError,
    SearchError,
    SiteTaskError,
    TransportError,
    UnknownSiteError,
)
from core.fanout import CONCURRENT_REQUESTS_LIMIT, fan_out
from core.markdown import parse, parse_questions, preprocess, preprocess_questions

__all__ = [
    # Fan-out
    "CONCURRENT_REQUESTS_LIMIT",
    "fan_out",
    # Aggregation
    "merge",
    "sort_answers",
    # Markdown
    "preprocess",
    "parse",
    "preprocess_questions",
    "parse_questions",
    # Errors
    "SearchError",
    "TransportError",
    "MalformedResponseError",
    "ScrapingError",
    "MissingHrefError",
    "OutsideNetworkError",
    "BlockedError",
    "NoResultsError",
    "EmptyQuestionError",
    "SiteTaskError",
    "UnknownSiteError",
    "MalformedCacheError",
]
