"""
Cache Factory

Builds the cache named by the ``[cache]`` configuration section.
"""

import logging
from typing import Any, Dict

from .interface import RequirementsCache
from .memory_impl import MemoryCache, NullCache

logger = logging.getLogger(__name__)


def get_cache(config: Dict[str, Any]) -> RequirementsCache:
    """
    Get the configured cache instance.

    ``backend = "redis"`` degrades to no caching when the server cannot be
    reached, so the API keeps working without it.

    Args:
        config: Full configuration dict

    Returns:
        RequirementsCache instance
    """
    cache_config = config.get("cache", {})
    backend = str(cache_config.get("backend", "memory")).lower()

    if backend == "none":
        logger.info("Caching disabled")
        return NullCache()

    if backend == "redis":
        import redis

        from .redis_impl import RedisCache

        url = cache_config.get("url", "redis://localhost:6379/0")
        try:
            cache = RedisCache(url)
        except redis.RedisError as e:
            logger.warning("Redis unavailable (%s), caching disabled", e)
            return NullCache()
        logger.info("Using Redis cache: %s", url)
        return cache

    return MemoryCache()
