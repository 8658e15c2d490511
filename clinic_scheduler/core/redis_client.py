"""Redis connection and the doctor directory cache."""

import json
from typing import Any, cast

import redis

from clinic_scheduler.config import settings

# Shared by every request; opened lazily on first cache use
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, connecting on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """
    Report cache health for ``/health/detailed``.

    Returns:
        False when caching is switched off or Redis does not answer a ping
    """
    if not settings.cache_enabled:
        return False

    try:
        get_redis_client().ping()
        return True
    except Exception:
        return False


def close_redis_connection() -> None:
    """Drop the shared client on application shutdown."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """
    Redis-backed JSON cache for directory lookups.

    Every operation fails soft: a Redis outage turns into a cache miss, never
    into a request error. Appointment slot state is never stored here.
    """

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def delete(self, key: str) -> bool:
        """Evict an entry, e.g. a doctor summary after a profile update."""
        try:
            self.redis.delete(key)
            return True
        except Exception:
            return False

    def get_json(self, key: str) -> Any | None:
        """
        Read a cached directory entry.

        Args:
            key: Entry key such as ``doctor:summary:<doctor id>``

        Returns:
            The decoded entry, or None on a miss or when Redis is unreachable
        """
        try:
            value = cast(str | None, self.redis.get(key))
            if value:
                return json.loads(value)
            return None
        except Exception:
            return None

    def set_json(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Store a directory entry as JSON.

        Args:
            key: Entry key such as ``doctor:summary:<doctor id>``
            value: JSON-compatible projection; UUIDs and dates are stringified
            ttl: Seconds until Redis expires the entry; kept forever when omitted

        Returns:
            Whether Redis accepted the write
        """
        try:
            json_value = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(key, ttl, json_value)
            else:
                self.redis.set(key, json_value)
            return True
        except Exception:
            return False


def get_cache_manager() -> CacheManager | None:
    """Dependency returning the directory cache, or None when caching is disabled."""
    if not settings.cache_enabled:
        return None
    return CacheManager(get_redis_client())
