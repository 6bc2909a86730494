"""
Helpers for running blocking collaborators from async code.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, TypeVar

from app.services.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_blocking(
    func: Callable[..., T],
    *args,
    timeout: Optional[float] = None,
    what: str = "remote call",
) -> T:
    """
    Run a blocking call in a worker thread with a timeout.

    Args:
        func: Blocking callable (record store read, webhook delivery)
        *args: Positional arguments for ``func``
        timeout: Seconds to wait; None waits forever
        what: Label used in the timeout error

    Raises:
        UpstreamUnavailableError: the call did not finish within ``timeout``.
            The worker thread itself keeps running until the call returns.
    """
    try:
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning(f"{what} timed out after {timeout}s")
        raise UpstreamUnavailableError(f"{what} timed out after {timeout}s") from exc


async def bounded_gather(
    items: Iterable[T],
    processor: Callable[[T], Awaitable[R]],
    max_concurrent: int = 5,
) -> List[R]:
    """
    Process items concurrently with at most ``max_concurrent`` in flight.

    Results keep the order of ``items``. ``processor`` is expected to handle
    its own errors; an exception escaping it propagates.
    """
    semaphore = asyncio.Semaphore(max_concurrent)

    async def process_with_semaphore(item: T) -> R:
        async with semaphore:
            return await processor(item)

    return list(await asyncio.gather(*[process_with_semaphore(item) for item in items]))
