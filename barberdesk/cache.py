"""
Redis caching for catalog reads (barbers, services, offers, public settings).
Every failure reads as a cache miss so the backend stays the source of truth.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from .rate_limiter import get_optional_redis_client

logger = logging.getLogger(__name__)

CACHE_PREFIX = "barberdesk"


class Cache:
    """Redis cache wrapper with JSON serialization"""

    def __init__(self, client_factory: Callable = get_optional_redis_client):
        self._client_factory = client_factory

    def _get_client(self):
        return self._client_factory()

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(f"{CACHE_PREFIX}:{key}")
            if value:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(f"{CACHE_PREFIX}:{key}", ttl, json.dumps(value))
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(f"{CACHE_PREFIX}:{key}")
            logger.debug(f"Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error for {key}: {e}")
            return False

    async def get_or_fetch(self, key: str, fetch: Callable[[], Awaitable[Any]], ttl: int = 300) -> Any:
        """Return the cached value for key, or await fetch() and cache its result"""
        cached_value = self.get(key)
        if cached_value is not None:
            return cached_value

        value = await fetch()
        if value is not None:
            self.set(key, value, ttl)
        return value


# Global cache instance
cache = Cache()


def catalog_key(resource: str) -> str:
    return f"catalog:{resource}"


def invalidate_catalog(resource: str) -> bool:
    """Drop a cached catalog list after an admin change"""
    return cache.delete(catalog_key(resource))
