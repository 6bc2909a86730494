"""Redis-based lock that keeps periodic check passes from overlapping."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import redis
from redis.exceptions import ConnectionError, RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def _get_redis_client() -> redis.Redis:
    """Get or create Redis client."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis.from_url(
            settings.REDIS_URL,
            socket_connect_timeout=settings.REMOTE_CALL_TIMEOUT_SECONDS,
            decode_responses=True,
        )
    return _redis_client


@contextmanager
def tick_lock(
    name: str,
    ttl_seconds: float,
    client: Optional[redis.Redis] = None,
) -> Iterator[bool]:
    """
    Try to take a non-blocking lock for one periodic tick.

    Yields True when the lock is held (or Redis is unreachable, in which case
    the tick runs unguarded and a warning is logged) and False when another
    tick already holds it.
    """
    client = client or _get_redis_client()
    lock = client.lock(f"lock:{name}", timeout=ttl_seconds, blocking=False)
    try:
        acquired = lock.acquire(blocking=False)
    except (ConnectionError, RedisError) as e:
        logger.warning(f"Redis lock unavailable for {name}: {e}. Running without overlap guard.")
        yield True
        return

    if not acquired:
        yield False
        return

    try:
        yield True
    finally:
        try:
            lock.release()
        except (ConnectionError, RedisError) as e:
            logger.warning(f"Failed to release Redis lock {name}: {e}")
