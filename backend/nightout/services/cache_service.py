"""
Caching for slow third-party lookups.

What we cache:
  - Popular artists and popular sports teams (one Ticketmaster call per name)
  - Key pattern: "discovery:{name}", JSON-serialized, REDIS_CACHE_TTL seconds

Redis is the shared cache. When it is disabled or unreachable, values are kept
in a small per-process dict with the same TTL, so each worker still makes at
most one round of upstream calls per TTL.

Event listings are NOT cached: they carry per-user RSVP state and friend
attendance, and PostGIS answers radius queries directly from its index.

Every cache failure is logged and treated as a miss.
"""

import json
from time import monotonic
from typing import Any, Optional

from nightout.core.config import get_settings
from nightout.core.logging import get_logger
from nightout.core.metrics import record_cache_operation
from nightout.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()

LOCAL_CACHE_MAX_ENTRIES = 256

# key -> (expires_at, JSON string)
_local: dict[str, tuple[float, str]] = {}


def discovery_key(name: str) -> str:
    return f"discovery:{name}"


def clear_local_cache() -> None:
    _local.clear()


def _local_get(key: str) -> Optional[str]:
    entry = _local.get(key)
    if entry is None:
        return None
    expires_at, payload = entry
    if expires_at <= monotonic():
        del _local[key]
        return None
    return payload


def _local_set(key: str, payload: str, ttl: int) -> None:
    now = monotonic()
    for stale in [k for k, (expires_at, _) in _local.items() if expires_at <= now]:
        del _local[stale]
    _local.pop(key, None)
    while len(_local) >= LOCAL_CACHE_MAX_ENTRIES:
        del _local[next(iter(_local))]
    _local[key] = (now + ttl, payload)


async def get_cached(key: str) -> Optional[Any]:
    client = await get_redis()
    try:
        if client:
            data = await client.get(key)
        else:
            data = _local_get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key, backend="redis" if client else "local")
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached(key: str, data: Any, ttl: Optional[int] = None) -> None:
    client = await get_redis()
    ttl = ttl or settings.REDIS_CACHE_TTL
    try:
        payload = json.dumps(data, default=str)
        if client:
            await client.setex(key, ttl, payload)
        else:
            _local_set(key, payload, ttl)
        logger.debug("cache_set", key=key, ttl=ttl, backend="redis" if client else "local")
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {
            "status": "disabled" if not settings.REDIS_ENABLED else "unavailable",
            "local_entries": len(_local),
        }

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
