"""Error taxonomy for reqgraph operations.

Every failure surfaced by the engine derives from ``ReqGraphError`` so the
REST and CLI layers can map them to status codes in one place.
"""

from __future__ import annotations


class ReqGraphError(Exception):
    """Base class for all reqgraph errors."""

    status_code = 500


class ScopeNotFoundError(ReqGraphError):
    """A referenced tenant, project, document or section does not exist."""

    status_code = 404


class NotFoundError(ReqGraphError):
    """An update or delete targeted a record that does not exist.

    Also raised when the record exists but belongs to a different
    tenant/project than the one given.
    """

    status_code = 404


class ValidationError(ReqGraphError):
    """Caller input was rejected before or during a transaction."""

    status_code = 400


class StorageError(ReqGraphError):
    """The backing store failed for infrastructure reasons."""

    status_code = 503


__all__ = [
    "NotFoundError",
    "ReqGraphError",
    "ScopeNotFoundError",
    "StorageError",
    "ValidationError",
]
