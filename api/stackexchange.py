"""
Stack Exchange API Integration.

Thin async client for the three endpoints the search core needs:
question lookup by id, advanced keyword search, and the site listing.

API: https://api.stackexchange.com/docs
Rate Limits: 300/day (anonymous), 10,000/day (with API key)
"""

import logging
from typing import Any, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from core.errors import MalformedResponseError, TransportError
from core.markdown import preprocess_questions
from models.questions import Question, ResponseWrapper, Site

__all__ = [
    "SE_API_URL",
    "SE_API_VERSION",
    "SE_FILTER",
    "stackexchange_url",
    "fetch_questions",
    "search_advanced",
    "fetch_sites",
]

# ══════════════════════════════════════════════════════════════════════════════
# Configuration
# ══════════════════════════════════════════════════════════════════════════════

SE_API_URL = "http://api.stackexchange.com"
SE_API_VERSION = "2.2"
API_TIMEOUT = 30.0

# Filter selecting only the fields modelled in models.questions.
# New filters: https://api.stackexchange.com/docs/create-filter
SE_FILTER = ".DND5X2VHHUH8HyJzpjo)5NvdHI3w6auG"

# Pagesize when fetching all sites
SE_SITES_PAGESIZE = 10000

logger = logging.getLogger(__name__)

# ══════════════════════════════════════════════════════════════════════════════
# URLs
# ══════════════════════════════════════════════════════════════════════════════


def stackexchange_url(path: str, base_url: str = SE_API_URL) -> str:
    """
    Build the versioned API URL for an endpoint.

    Example:
        >>> stackexchange_url("some/endpoint")
        'http://api.stackexchange.com/2.2/some/endpoint'
    """
    segments = [SE_API_VERSION] + [s for s in path.split("/") if s]
    return base_url.rstrip("/") + "/" + "/".join(quote(s, safe=";") for s in segments)


def _default_params(api_key: Optional[str]) -> dict[str, Any]:
    params: dict[str, Any] = {"filter": SE_FILTER}
    if api_key:
        params["key"] = api_key
    return params


# ══════════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════════


async def _get_items(
    client: httpx.AsyncClient,
    url: str,
    params: dict[str, Any],
    item_type: type,
) -> list:
    """GET an endpoint and decode the ``items`` of its response wrapper."""
    try:
        response = await client.get(
            url, params=params, headers={"Accept": "application/json"}
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(
            f"HTTP {e.response.status_code} from {e.request.url}: {e.response.text[:200]}"
        ) from e
    except httpx.HTTPError as e:
        raise TransportError(f"Request to {url} failed: {e}") from e

    try:
        data = ResponseWrapper[item_type].model_validate_json(response.content)
    except ValidationError as e:
        raise MalformedResponseError(f"Unexpected response from {url}: {e}") from e

    logger.debug(f"{url}: {len(data.items)} items")
    return data.items


async def fetch_questions(
    client: httpx.AsyncClient,
    site: str,
    ids: Sequence[str],
    *,
    api_key: Optional[str] = None,
    base_url: str = SE_API_URL,
) -> list[Question]:
    """
    Fetch specific questions (with answers) from one site.

    Args:
        client: Shared HTTP client
        site: Site code, e.g. 'stackoverflow'
        ids: Question ids, duplicates allowed
        api_key: Optional Stack Exchange key

    Returns:
        Preprocessed questions
    """
    endpoint = "questions/" + ";".join(ids)
    params = _default_params(api_key)
    params.update({"site": site, "pagesize": len(ids), "page": 1})

    items = await _get_items(
        client, stackexchange_url(endpoint, base_url), params, Question
    )
    return preprocess_questions(items)


async def search_advanced(
    client: httpx.AsyncClient,
    site: str,
    query: str,
    limit: int,
    *,
    api_key: Optional[str] = None,
    base_url: str = SE_API_URL,
) -> list[Question]:
    """
    Keyword search on one site.

    Only questions with at least one answer are returned, ordered by
    relevance.

    Example:
        >>> qs = await search_advanced(client, "unix", "exit vim", 10)
    """
    params = _default_params(api_key)
    params.update(
        {
            "q": query,
            "pagesize": limit,
            "site": site,
            "page": 1,
            "answers": 1,
            "order": "desc",
            "sort": "relevance",
        }
    )

    items = await _get_items(
        client, stackexchange_url("search/advanced", base_url), params, Question
    )
    return preprocess_questions(items)


async def fetch_sites(
    client: httpx.AsyncClient,
    *,
    pagesize: int = SE_SITES_PAGESIZE,
    base_url: str = SE_API_URL,
) -> list[Site]:
    """Fetch every Stack Exchange site, with the URL scheme stripped."""
    items = await _get_items(
        client,
        stackexchange_url("sites", base_url),
        {"pagesize": pagesize, "page": 1},
        Site,
    )
    sites = [
        site.model_copy(update={"url": _strip_scheme(site.url)}) for site in items
    ]
    logger.info(f"Fetched {len(sites)} Stack Exchange sites")
    return sites


def _strip_scheme(url: str) -> str:
    for prefix in ("https://", "http://"):
        if url.startswith(prefix):
            return url[len(prefix):]
    return url
