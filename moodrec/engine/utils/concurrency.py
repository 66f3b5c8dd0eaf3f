"""
Concurrency helpers for fanning out outbound calls.
"""

import asyncio
from typing import Any, Awaitable, Iterable, List, Optional

DEFAULT_MAX_CONCURRENT = 10


async def gather_bounded(
    aws: Iterable[Awaitable[Any]],
    limit: int = DEFAULT_MAX_CONCURRENT,
    return_exceptions: bool = True,
) -> List[Any]:
    """
    Like asyncio.gather, but at most `limit` awaitables run at once.

    Results keep input order. With return_exceptions=True (default) failures
    are returned in place instead of cancelling the siblings.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(aw: Awaitable[Any]) -> Any:
        async with semaphore:
            return await aw

    return await asyncio.gather(
        *(_run(aw) for aw in aws), return_exceptions=return_exceptions
    )


async def with_timeout(aw: Awaitable[Any], timeout: Optional[float]) -> Any:
    """Await with a bound; timeout=None or <= 0 disables it."""
    if timeout is None or timeout <= 0:
        return await aw
    return await asyncio.wait_for(aw, timeout=timeout)
