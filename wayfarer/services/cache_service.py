"""
Wayfarer Backend - Spot Cache
===============================

What:  Redis-backed cache for single-spot reads (key `spot:{id}`).
Why:   GET /spots/{id} is the hottest read and carries a slow weather lookup.
How:   JSON values with a fixed TTL via SETEX, tagged with a per-spot version.

Versioning:
    invalidate   INCR spot:{id}:v, then DEL spot:{id}
    lookup       MGET spot:{id} spot:{id}:v in one round trip
    fill         SETEX spot:{id} {"version": v, "spot": ...}

A lookup is a hit only when the entry's tag equals the current counter. A
miss that started before an invalidation still writes its entry, but that
entry carries the old version and is never served.

Every operation is best-effort. Redis errors are logged and reported as a
miss (lookup) or False (fill/invalidate); PostgreSQL stays the source of
truth, so a dead cache only costs latency.
"""

import json
import logging
from typing import Any, Dict, NamedTuple, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from wayfarer.config import settings

logger = logging.getLogger(__name__)

NO_VERSION = "0"


def spot_key(spot_id: Any) -> str:
    return f"spot:{spot_id}"


def version_key(spot_id: Any) -> str:
    return f"spot:{spot_id}:v"


class CacheLookup(NamedTuple):
    payload: Optional[Dict[str, Any]]
    # None when Redis could not be read; callers must not fill then
    version: Optional[str]


class SpotCache:
    def __init__(self, client: "redis.Redis", ttl: Optional[int] = None):
        self.redis = client
        self.ttl = ttl or settings.spot_cache_ttl

    @classmethod
    def from_url(cls, redis_url: Optional[str] = None) -> "SpotCache":
        client = redis.from_url(
            redis_url or settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        return cls(client)

    async def lookup_spot(self, spot_id: Any) -> CacheLookup:
        key = spot_key(spot_id)
        try:
            data, version = await self.redis.mget(key, version_key(spot_id))
        except (RedisError, OSError) as e:
            logger.error("Cache get error for key %s: %s", key, str(e))
            return CacheLookup(None, None)

        version = version or NO_VERSION
        if not data:
            return CacheLookup(None, version)
        try:
            entry = json.loads(data)
            tag, payload = entry["version"], entry["spot"]
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return CacheLookup(None, version)

        if tag != version:
            logger.debug("Ignoring stale cache entry %s (version %s, current %s)", key, tag, version)
            return CacheLookup(None, version)
        return CacheLookup(payload, version)

    async def fill_spot(self, spot_id: Any, payload: Dict[str, Any], version: str) -> bool:
        key = spot_key(spot_id)
        try:
            await self.redis.setex(key, self.ttl, json.dumps({"version": version, "spot": payload}))
            return True
        except (RedisError, OSError) as e:
            logger.error("Cache set error for key %s: %s", key, str(e))
            return False

    async def invalidate_spot(self, spot_id: Any) -> bool:
        key = spot_key(spot_id)
        vkey = version_key(spot_id)
        try:
            await self.redis.incr(vkey)
            # Outlives any entry tagged before the bump, so the counter never
            # resets underneath one
            await self.redis.expire(vkey, self.ttl * 2)
            await self.redis.delete(key)
            return True
        except (RedisError, OSError) as e:
            logger.error("Cache delete error for key %s: %s", key, str(e))
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except (RedisError, OSError) as e:
            logger.warning("Cache ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self.redis.aclose()
