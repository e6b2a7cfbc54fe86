"""
Cache Module - TTL cache for requirement and document read paths

Provides an in-memory cache, a Redis cache, and the invalidate-by-scope
hook the backend calls after each committed write.
"""

from .factory import get_cache
from .interface import RequirementsCache
from .invalidation import CacheInvalidation, CacheKeys, get_cached
from .memory_impl import MemoryCache, NullCache

__all__ = [
    "CacheInvalidation",
    "CacheKeys",
    "MemoryCache",
    "NullCache",
    "RequirementsCache",
    "get_cache",
    "get_cached",
]
