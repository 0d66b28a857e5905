"""
Error hierarchy for Stack Exchange searches.

Every failure the search core can report derives from ``SearchError`` so a
caller can catch one type and still inspect the specific kind.
"""

from typing import Optional

__all__ = [
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


class SearchError(Exception):
    """Base class for all search failures."""


# ══════════════════════════════════════════════════════════════════════════════
# Network & Wire
# ══════════════════════════════════════════════════════════════════════════════


class TransportError(SearchError):
    """The HTTP request failed or returned an error status."""


class MalformedResponseError(SearchError):
    """The response body could not be decoded into the expected shape."""


# ══════════════════════════════════════════════════════════════════════════════
# Discovery Scraping
# ══════════════════════════════════════════════════════════════════════════════


class ScrapingError(SearchError):
    """The search engine page could not be turned into candidates."""


class MissingHrefError(ScrapingError):
    """A result anchor carried no link target."""

    def __init__(self):
        super().__init__("Anchor with no href")


class OutsideNetworkError(ScrapingError):
    """A result link points outside the configured sites."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"DuckDuckGo returned results outside of SE network: {url}")


class BlockedError(ScrapingError):
    """
    No organic results were found on the page.

    A real query always yields at least one result, so an empty page is
    taken as the engine refusing the request.
    """

    def __init__(self):
        super().__init__("DuckDuckGo blocked this request")


# ══════════════════════════════════════════════════════════════════════════════
# Domain
# ══════════════════════════════════════════════════════════════════════════════


class NoResultsError(SearchError):
    """The search matched no questions."""

    def __init__(self):
        super().__init__("No results found")


class EmptyQuestionError(SearchError):
    """The top question has no answers to return."""

    def __init__(self, question_id: Optional[int] = None):
        self.question_id = question_id
        super().__init__("Received question with no answers")


class SiteTaskError(SearchError):
    """A per-site task failed; carries the site code and the original error."""

    def __init__(self, site: str, cause: BaseException):
        self.site = site
        self.cause = cause
        super().__init__(f"{site}: {cause}")


class UnknownSiteError(SearchError):
    """A requested site code is not in the site directory."""

    def __init__(self, site: str):
        self.site = site
        super().__init__(f"{site} is not a valid StackExchange site")


class MalformedCacheError(SearchError):
    """The site cache file exists but does not hold a site list."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Malformed cache file: {path}")
