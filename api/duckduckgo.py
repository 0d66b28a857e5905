"""
DuckDuckGo question discovery.

Finds Stack Exchange question ids by running a site-restricted DuckDuckGo
search and scraping the organic result links. Uses HTML scraping since
DuckDuckGo has no public web-results API.

Site: https://duckduckgo.com
Params: https://duckduckgo.com/params
"""

import logging
from typing import Iterable, Mapping, Optional
from urllib.parse import unquote, urlencode

import httpx
from bs4 import BeautifulSoup

from core.errors import (
    BlockedError,
    MissingHrefError,
    OutsideNetworkError,
    TransportError,
)
from models.questions import CandidateSet
from utils import normalize_query

__all__ = [
    "DUCKDUCKGO_URL",
    "USER_AGENT",
    "duckduckgo_url",
    "question_url_to_id",
    "parse_questions_from_html",
    "discover",
]

# ══════════════════════════════════════════════════════════════════════════════
# Configuration
# ══════════════════════════════════════════════════════════════════════════════

DUCKDUCKGO_URL = "https://duckduckgo.com"
API_TIMEOUT = 30.0

# DuckDuckGo serves a blocking page to generic clients
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.7; rv:11.0) Gecko/20100101 Firefox/11.0"
)

# Organic result links
RESULT_SELECTOR = "a.result__a"

logger = logging.getLogger(__name__)

# ══════════════════════════════════════════════════════════════════════════════
# URLs
# ══════════════════════════════════════════════════════════════════════════════


def duckduckgo_url(
    query: str, site_urls: Iterable[str], base_url: str = DUCKDUCKGO_URL
) -> str:
    """
    Build the DuckDuckGo search URL restricted to the given sites.

    Example:
        >>> duckduckgo_url("exit vim?", ["stackoverflow.com"])
        'https://duckduckgo.com/?q=%28site%3Astackoverflow.com%29+exit+vim&kz=-1&kh=-1'
    """
    restrict = " OR ".join(f"site:{url}" for url in site_urls)
    terms = normalize_query(query.rstrip().rstrip("?"))
    params = {"q": f"({restrict}) {terms}", "kz": "-1", "kh": "-1"}
    return f"{base_url.rstrip('/')}/?{urlencode(params)}"


def question_url_to_id(site_url: str, url: str) -> Optional[str]:
    """
    Extract the question id from a link to one of ``site_url``'s questions.

    Example:
        >>> question_url_to_id(
        ...     "stackoverflow.com",
        ...     "/l/?uddg=https://stackoverflow.com/questions/11828270/how-do-i-exit",
        ... )
        '11828270'
    """
    fragment = site_url.rstrip("/") + "/questions/"
    start = url.find(fragment)
    if start < 0:
        return None
    rest = url[start + len(fragment):]
    end = rest.find("/")
    if end < 0:
        return None
    return rest[:end]


# ══════════════════════════════════════════════════════════════════════════════
# Parsing
# ══════════════════════════════════════════════════════════════════════════════


def parse_questions_from_html(
    html: str,
    sites: Mapping[str, str],
    limit: int,
    *,
    empty_is_blocked: bool = True,
) -> CandidateSet:
    """
    Parse (site, question id) candidates out of a DuckDuckGo results page.

    Args:
        html: Results page
        sites: Site code to canonical URL, e.g. {'unix': 'unix.stackexchange.com'}
        limit: Maximum number of candidates across all sites
        empty_is_blocked: Treat a page without matches as a blocked request

    Returns:
        Candidates grouped by site, in order of appearance

    Raises:
        MissingHrefError: A result anchor has no href
        OutsideNetworkError: A result links outside the configured sites
        BlockedError: No result matched and ``empty_is_blocked`` is set
    """
    soup = BeautifulSoup(html, "html.parser")
    candidates = CandidateSet()

    for anchor in soup.select(RESULT_SELECTOR):
        href = anchor.get("href")
        if href is None:
            raise MissingHrefError()
        url = unquote(href)

        for site_code, site_url in sites.items():
            question_id = question_url_to_id(site_url, url)
            if question_id is not None:
                candidates.add(site_code, question_id)
                break
        else:
            raise OutsideNetworkError(url)

        if len(candidates) >= limit:
            break

    # DuckDuckGo always returns something for a real query, so an empty
    # page means the request shape or user agent was rejected
    if not candidates and empty_is_blocked:
        raise BlockedError()

    logger.info(
        f"DuckDuckGo: {len(candidates)} candidates across {len(candidates.ids)} sites"
    )
    return candidates


# ══════════════════════════════════════════════════════════════════════════════
# Search Function
# ══════════════════════════════════════════════════════════════════════════════


async def discover(
    client: httpx.AsyncClient,
    query: str,
    sites: Mapping[str, str],
    limit: int,
    *,
    empty_is_blocked: bool = True,
    base_url: str = DUCKDUCKGO_URL,
) -> CandidateSet:
    """
    Search DuckDuckGo for questions on the given sites.

    Example:
        >>> candidates = await discover(client, "exit vim", {"unix": "unix.stackexchange.com"}, 5)
    """
    url = duckduckgo_url(query, sites.values(), base_url)
    logger.debug(f"DuckDuckGo request: {url}")

    try:
        response = await client.get(url, headers={"User-Agent": USER_AGENT})
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise TransportError(f"HTTP {e.response.status_code} from DuckDuckGo") from e
    except httpx.HTTPError as e:
        raise TransportError(f"DuckDuckGo request failed: {e}") from e

    try:
        return parse_questions_from_html(
            response.text, sites, limit, empty_is_blocked=empty_is_blocked
        )
    except BlockedError:
        logger.warning("DuckDuckGo returned no results; request was likely blocked")
        raise
