"""
In-process cache implementations

MemoryCache keeps JSON-encoded values with an expiry per entry, so
callers never share mutable objects with the cache. NullCache is used
when caching is switched off or its backend is unreachable.
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from .interface import RequirementsCache

logger = logging.getLogger(__name__)


class MemoryCache(RequirementsCache):
    """Thread-safe TTL cache held in process memory."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize an empty cache.

        Args:
            clock: Monotonic time source in seconds (tests pass a fake)
        """
        self._clock = clock
        self._entries: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry[0] <= self._clock():
                del self._entries[key]
                entry = None
            if entry is None:
                self.misses += 1
                logger.debug("Cache miss: %s", key)
                return None
            self.hits += 1
        logger.debug("Cache hit: %s", key)
        return json.loads(entry[1])

    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        payload = json.dumps(value)
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, payload)
        logger.debug("Cached: %s (TTL: %ss)", key, ttl_seconds)

    def invalidate(self, key: str):
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        if doomed:
            logger.debug("Invalidated %d entries under %s", len(doomed), prefix)
        return len(doomed)

    def get_stats(self) -> Dict[str, Any]:
        total = self.hits + self.misses
        hit_rate = self.hits / total if total > 0 else 0.0
        with self._lock:
            entry_count = len(self._entries)
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(hit_rate, 4),
            "backend": "memory",
            "entry_count": entry_count,
        }


class NullCache(RequirementsCache):
    """Cache that stores nothing; every read is a miss."""

    def __init__(self):
        self.misses = 0

    def get(self, key: str) -> Optional[Any]:
        self.misses += 1
        return None

    def set(self, key: str, value: Any, ttl_seconds: int = 300):
        pass

    def invalidate(self, key: str):
        pass

    def invalidate_prefix(self, prefix: str) -> int:
        return 0

    def get_stats(self) -> Dict[str, Any]:
        return {"hits": 0, "misses": self.misses, "hit_rate": 0.0, "backend": "none"}
