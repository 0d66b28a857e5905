"""
Utility functions for query handling and the site cache.

All utilities are stateless and lightweight with minimal dependencies.
"""

from utils.cache import clear_cache, load_cache, save_cache

__all__ = [
    # Cache
    "load_cache",
    "save_cache",
    "clear_cache",
    # Helpers
    "normalize_query",
]


def normalize_query(query: str) -> str:
    """Collapse runs of whitespace in a search query."""
    return " ".join(query.split())
