"""
Cache Interface

Defines the contract for list/count cache implementations. Values are
JSON-compatible (lists and dicts of plain values).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class RequirementsCache(ABC):
    """TTL cache for requirement and document read paths."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Cache key

        Returns:
            Cached data or None if not found/expired
        """
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        """
        Cache a value with TTL.

        Args:
            key: Cache key
            value: JSON-compatible data
            ttl_seconds: Time-to-live in seconds (default: 5 minutes)
        """
        pass

    @abstractmethod
    def invalidate(self, key: str):
        """
        Invalidate one cache entry.

        Args:
            key: Cache key to invalidate
        """
        pass

    @abstractmethod
    def invalidate_prefix(self, prefix: str) -> int:
        """
        Invalidate every entry whose key starts with prefix.

        Args:
            prefix: Key prefix

        Returns:
            Number of entries removed
        """
        pass

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with hits, misses, hit_rate
        """
        pass
