"""Site directory cache for Stack Exchange search."""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from core.errors import MalformedCacheError

logger = logging.getLogger(__name__)


def load_cache(cache_file: Path) -> Optional[List[dict[str, Any]]]:
    """
    Load cached site records from disk.

    Returns None when there is no cache file yet.
    """
    if not cache_file.exists():
        return None
    try:
        data = json.loads(cache_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise MalformedCacheError(cache_file) from e
    if not isinstance(data, list):
        raise MalformedCacheError(cache_file)
    return data


def save_cache(cache_file: Path, records: List[dict[str, Any]]) -> None:
    """Write site records to disk, creating the cache directory."""
    cache_file.parent.mkdir(parents=True, exist_ok=True)
    cache_file.write_text(json.dumps(records), encoding="utf-8")
    logger.debug(f"Cached {len(records)} sites to {cache_file}")


def clear_cache(cache_file: Path) -> bool:
    """Remove the cache file. Returns False if there was nothing to remove."""
    if not cache_file.exists():
        return False
    cache_file.unlink()
    return True
