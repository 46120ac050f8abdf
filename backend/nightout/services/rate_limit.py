"""
Fixed-window rate limiting on Redis.

One counter per (kind, actor, window slot); INCR + EXPIRE in a single
transaction, DECR to give an attempt back. When Redis is unavailable requests
are allowed through.
"""

import math
import time
from typing import Optional

from nightout.core.logging import get_logger
from nightout.infrastructure.redis_client import get_redis

logger = get_logger(__name__)


def window_key(kind: str, actor_id: str, window_seconds: int, now: float) -> str:
    window = max(1, int(window_seconds))
    slot = int(math.floor(now / window))
    return f"rl:{kind}:{actor_id}:{slot}:{window}"


async def allow(
    kind: str,
    actor_id: str,
    *,
    limit: int,
    window_seconds: int = 60,
    now: Optional[float] = None,
    client=None,
) -> bool:
    """Return True when the operation is still within the allowed budget."""
    if limit <= 0:
        return False

    client = client if client is not None else await get_redis()
    if client is None:
        return True

    key = window_key(kind, actor_id, window_seconds, now or time.time())
    try:
        async with client.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, window_seconds)
            count, _ = await pipe.execute()
    except Exception as e:
        logger.error("rate_limit_backend_error", kind=kind, error=str(e))
        return True

    return int(count) <= limit


async def release(
    kind: str,
    actor_id: str,
    *,
    window_seconds: int = 60,
    now: Optional[float] = None,
    client=None,
) -> None:
    """Hand back one unit of the window that `now` falls in."""
    client = client if client is not None else await get_redis()
    if client is None:
        return

    key = window_key(kind, actor_id, window_seconds, now or time.time())
    try:
        count = await client.decr(key)
        # the window expired in between; DECR recreated it without a TTL
        if int(count) < 0:
            await client.delete(key)
    except Exception as e:
        logger.error("rate_limit_backend_error", kind=kind, error=str(e))


def retry_after(window_seconds: int, now: Optional[float] = None) -> int:
    """Seconds until the current window rolls over."""
    now = now or time.time()
    window = max(1, int(window_seconds))
    return max(1, int(window - (now % window)))
