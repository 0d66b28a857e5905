"""
Stack Exchange network integrations.

Async clients for the two remote services the search core talks to:

Available Sources:
─────────────────────────────────────────────────────────────────────────────
    stackexchange    Stack Exchange API v2.2 (questions, search, sites)
    duckduckgo       DuckDuckGo HTML results, used to discover question ids

Configuration:
─────────────────────────────────────────────────────────────────────────────
    STACKEXCHANGE_API_KEY https://stackapps.com (optional, higher limits)
"""

from api.duckduckgo import (
    discover,
    duckduckgo_url,
    parse_questions_from_html,
    question_url_to_id,
)
from api.stackexchange import (
    fetch_questions,
    fetch_sites,
    search_advanced,
    stackexchange_url,
)

__all__ = [
    # Stack Exchange
    "stackexchange_url",
    "fetch_questions",
    "search_advanced",
    "fetch_sites",
    # DuckDuckGo
    "duckduckgo_url",
    "question_url_to_id",
    "parse_questions_from_html",
    "discover",
]
