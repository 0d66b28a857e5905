"""
Bounded-concurrency fan-out of per-site operations.

Runs one coroutine per site with at most ``limit`` in flight. The first
failure aborts the whole fan-out; results already gathered are discarded.
Operations already in flight run to completion in the background, while
those still waiting for a slot are skipped without touching the network.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Mapping, Tuple

from core.errors import SiteTaskError
from models.questions import Question

__all__ = ["CONCURRENT_REQUESTS_LIMIT", "SiteOperation", "fan_out"]

# Limit on concurrent in-flight requests
CONCURRENT_REQUESTS_LIMIT = 8

SiteOperation = Callable[[], Awaitable[List[Question]]]

logger = logging.getLogger(__name__)


async def fan_out(
    operations: Mapping[str, SiteOperation],
    limit: int = CONCURRENT_REQUESTS_LIMIT,
) -> Dict[str, List[Question]]:
    """
    Execute per-site operations concurrently.

    Args:
        operations: Site code to a zero-argument coroutine factory. The
            factory is only called once a concurrency slot is free.
        limit: Maximum number of operations in flight

    Returns:
        Site code to that site's questions, in submission order

    Raises:
        SiteTaskError: The first operation that failed, tagged with its site
    """
    semaphore = asyncio.Semaphore(max(limit, 1))
    failed = asyncio.Event()

    async def run(site: str, operation: SiteOperation) -> Tuple[str, List[Question]]:
        async with semaphore:
            if failed.is_set():
                logger.debug(f"Skipping {site}, fan-out already failed")
                return site, []
            try:
                questions = await operation()
            except SiteTaskError:
                failed.set()
                raise
            except Exception as e:
                failed.set()
                logger.warning(f"Request for {site} failed: {e}")
                raise SiteTaskError(site, e) from e
        logger.debug(f"{site}: {len(questions)} questions")
        return site, questions

    results = await asyncio.gather(
        *(run(site, operation) for site, operation in operations.items())
    )
    return dict(results)
