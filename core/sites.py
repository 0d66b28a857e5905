"""
Stack Exchange site directory.

Holds the list of known sites and answers the two questions the search
core asks of it: which URL belongs to a site code, and whether a code
exists at all. The list comes from a local cache file, refreshed from the
``/sites`` endpoint when missing or on request.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import httpx
from pydantic import ValidationError

from api.stackexchange import fetch_sites
from core.errors import MalformedCacheError
from models.questions import Site
from utils.cache import clear_cache, load_cache, save_cache

__all__ = ["SiteDirectory"]

logger = logging.getLogger(__name__)


class SiteDirectory:
    """Read-only lookup over the known Stack Exchange sites."""

    def __init__(self, sites: Iterable[Site]):
        self.sites: List[Site] = list(sites)
        self._urls: Dict[str, str] = {site.code: site.url for site in self.sites}

    def __contains__(self, code: str) -> bool:
        return code in self._urls

    def __len__(self) -> int:
        return len(self.sites)

    def find_invalid_site(self, codes: Iterable[str]) -> Optional[str]:
        """Return the first code that is not a known site, if any."""
        return next((code for code in codes if code not in self._urls), None)

    def get_urls(self, codes: Iterable[str]) -> Dict[str, str]:
        """Map the known codes among ``codes`` to their URLs, in the order given."""
        return {code: self._urls[code] for code in codes if code in self._urls}

    @classmethod
    async def load(
        cls,
        client: httpx.AsyncClient,
        cache_file: Path,
        *,
        update: bool = False,
    ) -> "SiteDirectory":
        """
        Load the directory from ``cache_file``, fetching remotely if needed.

        Args:
            client: HTTP client used for the remote fetch
            cache_file: JSON file holding the site list
            update: Discard the cache and refetch

        Raises:
            MalformedCacheError: The cache file exists but is not a site list
        """
        if update:
            if clear_cache(cache_file):
                logger.info(f"Discarded cached site list {cache_file}")
        else:
            records = load_cache(cache_file)
            if records is not None:
                try:
                    return cls(Site.model_validate(r) for r in records)
                except ValidationError as e:
                    raise MalformedCacheError(cache_file) from e

        sites = await fetch_sites(client)
        save_cache(cache_file, [site.model_dump(by_alias=True) for site in sites])
        return cls(sites)
