"""
Redis caching utilities for frequently read public data
"""

import json
import logging
from typing import Any, Optional

import redis

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

PUBLIC_PROFILE_TTL = 300  # 5 minutes


class Cache:
    """Redis cache wrapper with automatic serialization"""

    def _get_client(self):
        return get_redis_client()

    def get(self, key: str) -> Optional[Any]:
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            return None
        except redis.RedisError as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        """Set value in cache with TTL (default 1 hour)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete(self, key: str) -> bool:
        client = self._get_client()
        if not client:
            return False

        try:
            client.delete(key)
            return True
        except redis.RedisError as e:
            logger.error(f"❌ Cache delete error for {key}: {e}")
            return False


# Global cache instance
cache = Cache()


def public_profile_key(user_id: int) -> str:
    return f"freelancer_public:{user_id}"


def get_public_profile_cached(user_id: int) -> Optional[dict]:
    return cache.get(public_profile_key(user_id))


def set_public_profile_cached(user_id: int, profile: dict) -> bool:
    return cache.set(public_profile_key(user_id), profile, PUBLIC_PROFILE_TTL)


def invalidate_public_profile_cache(user_id: int) -> bool:
    """Drop the cached public profile after a profile edit or new review"""
    return cache.delete(public_profile_key(user_id))
