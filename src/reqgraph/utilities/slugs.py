"""Slug normalisation and node id construction."""

from __future__ import annotations

import re

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Normalise a tenant, project or document name to a slug.

    Examples:
        >>> slugify("  Apollo Flight SW ")
        'apollo-flight-sw'
        >>> slugify("***")
        'project'
    """
    slug = _NON_SLUG.sub("-", value.strip().lower()).strip("-")
    return slug or "project"


def project_id(tenant: str, project: str) -> str:
    return f"{tenant}:{project}"


def document_id(tenant: str, project: str, document: str) -> str:
    return f"{tenant}:{project}:{document}"


def requirement_id(tenant: str, project: str, ref: str) -> str:
    return f"{tenant}:{project}:{ref}"


def requirement_path(tenant: str, project: str, ref: str) -> str:
    """Workspace-relative path of a requirement's markdown mirror."""
    return f"{tenant}/{project}/requirements/{ref}.md"


__all__ = [
    "document_id",
    "project_id",
    "requirement_id",
    "requirement_path",
    "slugify",
]
