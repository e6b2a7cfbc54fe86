"""
Redis-based Cache Implementation

Shares list/count caches between processes. Redis failures are logged
and treated as misses; they never fail a request.
"""

import json
import logging
from typing import Any, Dict, Optional

import redis

from .interface import RequirementsCache

logger = logging.getLogger(__name__)

KEY_NAMESPACE = "reqgraph:"


class RedisCache(RequirementsCache):
    """Redis-backed TTL cache."""

    def __init__(self, redis_url: str = "redis://localhost:6379/0", client: Optional[Any] = None):
        """
        Initialize Redis cache.

        Args:
            redis_url: Redis connection URL
            client: Pre-built client (tests pass a fake)

        Raises:
            redis.RedisError: If the connection check fails
        """
        self.redis_url = redis_url
        self.client = client or redis.from_url(redis_url, decode_responses=True)
        self.hits = 0
        self.misses = 0

        self.client.ping()
        logger.info("RedisCache initialized: %s", redis_url)

    def get(self, key: str) -> Optional[Any]:
        try:
            cached = self.client.get(KEY_NAMESPACE + key)
        except redis.RedisError as e:
            logger.warning("Redis get failed: %s", e)
            self.misses += 1
            return None

        if cached:
            self.hits += 1
            logger.debug("Cache hit: %s", key)
            return json.loads(cached)
        self.misses += 1
        logger.debug("Cache miss: %s", key)
        return None

    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        try:
            self.client.setex(KEY_NAMESPACE + key, ttl_seconds, json.dumps(value))
            logger.debug("Cached: %s (TTL: %ss)", key, ttl_seconds)
        except redis.RedisError as e:
            logger.warning("Redis set failed: %s", e)

    def invalidate(self, key: str):
        try:
            self.client.delete(KEY_NAMESPACE + key)
        except redis.RedisError as e:
            logger.warning("Redis delete failed: %s", e)

    def invalidate_prefix(self, prefix: str) -> int:
        try:
            keys = list(self.client.scan_iter(match=f"{KEY_NAMESPACE}{prefix}*"))
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning("Redis invalidation of %s failed: %s", prefix, e)
            return 0
        logger.debug("Invalidated %d entries under %s", len(keys), prefix)
        return len(keys)

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        hit_rate = self.hits / total if total > 0 else 0.0
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(hit_rate, 4),
            "backend": "redis",
            "url": self.redis_url,
        }
