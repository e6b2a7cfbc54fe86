"""Prefix resolution for requirement refs.

The prefix is everything in a ref before the numeric suffix:

    =====================  ==================  ===============
    Scope                  Prefix              Example ref
    =====================  ==================  ===============
    document + section     ``DOC-SECTION``     ``SRD-PWR-001``
    document               ``DOC``             ``SRD-001``
    project                ``REQ-PROJECT``     ``REQ-APOLLO-001``
    =====================  ==================  ===============

The functions here are pure: they only look at the property dicts they
are given, so callers decide which (possibly just updated) values count.
"""

from __future__ import annotations

from typing import Any

PROJECT_PREFIX = "REQ"


def document_code(document: dict[str, Any]) -> str:
    """Document part of a prefix: its short code, else its slug uppercased."""
    short_code = document.get("shortCode")
    if short_code:
        return str(short_code)
    return str(document["slug"]).upper()


def section_code(section: dict[str, Any]) -> str:
    """Section part of a prefix: its short code, else its name uppercased without spaces."""
    short_code = section.get("shortCode")
    if short_code:
        return str(short_code)
    return str(section["name"]).replace(" ", "").upper()


def project_prefix(project_slug: str) -> str:
    """Prefix used for requirements filed directly under a project."""
    return f"{PROJECT_PREFIX}-{project_slug.replace('-', '').upper()}"


def resolve_prefix(
    project_slug: str,
    document: dict[str, Any] | None = None,
    section: dict[str, Any] | None = None,
) -> str:
    """Derive the prefix for a requirement scope.

    Args:
        project_slug: Slug of the owning project.
        document: Properties of the owning document, if any.
        section: Properties of the owning section, if any. Ignored when
            there is no document.

    Returns:
        The prefix, without the trailing dash.
    """
    if document is None:
        return project_prefix(project_slug)
    if section is None:
        return document_code(document)
    return f"{document_code(document)}-{section_code(section)}"


__all__ = [
    "PROJECT_PREFIX",
    "document_code",
    "project_prefix",
    "resolve_prefix",
    "section_code",
]
