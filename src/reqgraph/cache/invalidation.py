"""Cache keys, cached reads and scope invalidation.

Keys are namespaced by scope kind, tenant and project so one prefix
delete clears every page and count of a project:

    requirements:<tenant>:<project>:list:<limit>:<offset>[:all]
    requirements:<tenant>:<project>:count
    documents:<tenant>:<project>:list:<limit>:<offset>

Cache errors never reach callers: reads fall back to the store and
failed invalidations are logged.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from reqgraph.cache.interface import RequirementsCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

REQUIREMENTS = "requirements"
DOCUMENTS = "documents"
SCOPE_KINDS = (REQUIREMENTS, DOCUMENTS)


class CacheKeys:
    """Key builders shared by readers and invalidation."""

    @staticmethod
    def scope(scope_kind: str, tenant: str, project: str) -> str:
        return f"{scope_kind}:{tenant}:{project}:"

    @staticmethod
    def requirements(
        tenant: str, project: str, limit: int, offset: int, include_deleted: bool = False
    ) -> str:
        key = f"{CacheKeys.scope(REQUIREMENTS, tenant, project)}list:{limit}:{offset}"
        return f"{key}:all" if include_deleted else key

    @staticmethod
    def requirement_count(tenant: str, project: str) -> str:
        return f"{CacheKeys.scope(REQUIREMENTS, tenant, project)}count"

    @staticmethod
    def documents(tenant: str, project: str, limit: int, offset: int) -> str:
        return f"{CacheKeys.scope(DOCUMENTS, tenant, project)}list:{limit}:{offset}"


def get_cached(
    cache: RequirementsCache,
    key: str,
    fetch: Callable[[], T],
    ttl_seconds: int,
    encode: Callable[[T], Any] = lambda value: value,
    decode: Callable[[Any], T] = lambda value: value,
) -> T:
    """Return the cached value for ``key`` or fetch, store and return it.

    Args:
        cache: Cache to consult.
        key: Cache key.
        fetch: Loads the value from the store on a miss.
        ttl_seconds: Lifetime of a stored value.
        encode: Converts the fetched value to JSON-compatible data.
        decode: Converts cached data back.
    """
    try:
        cached = cache.get(key)
    except Exception:
        logger.warning("Cache read failed for %s", key, exc_info=True)
        cached = None
    if cached is not None:
        return decode(cached)

    value = fetch()
    try:
        cache.set(key, encode(value), ttl_seconds)
    except Exception:
        logger.warning("Cache write failed for %s", key, exc_info=True)
    return value


class CacheInvalidation:
    """Post-commit hook that drops cached reads of a scope."""

    def __init__(self, cache: RequirementsCache) -> None:
        self.cache = cache

    def invalidate(
        self, scope_kind: str, tenant: str, project: str, extra: str | None = None
    ) -> int:
        """Drop cached entries of one scope kind in a project.

        Args:
            scope_kind: ``"requirements"`` or ``"documents"``.
            tenant: Tenant slug.
            project: Project slug.
            extra: Optional further key segment to narrow the prefix.

        Returns:
            Number of entries dropped (0 on failure).
        """
        if scope_kind not in SCOPE_KINDS:
            raise ValueError(f"Unknown cache scope kind: {scope_kind!r}")
        prefix = CacheKeys.scope(scope_kind, tenant, project)
        if extra:
            prefix = f"{prefix}{extra}"
        try:
            return self.cache.invalidate_prefix(prefix)
        except Exception:
            logger.warning("Failed to invalidate %s caches of %s/%s", scope_kind, tenant, project, exc_info=True)
            return 0

    def invalidate_requirements(self, tenant: str, project: str) -> int:
        return self.invalidate(REQUIREMENTS, tenant, project)

    def invalidate_documents(self, tenant: str, project: str) -> int:
        return self.invalidate(DOCUMENTS, tenant, project)


__all__ = [
    "CacheInvalidation",
    "CacheKeys",
    "DOCUMENTS",
    "REQUIREMENTS",
    "get_cached",
]
