"""Document sections.

A section belongs to exactly one document (``Document-HAS_SECTION->
DocumentSection``) and contributes the second part of its requirements'
prefix. Renaming a section cascades; deleting it keeps its requirements
in the document.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from reqgraph.errors import ScopeNotFoundError, ValidationError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import (
    SectionRecord,
    SectionUpdate,
    check_str,
    normalize_short_code,
    now_iso,
)
from reqgraph.requirements.assembler import resolve_document
from reqgraph.requirements.cascade import RefChange, on_section_renamed
from reqgraph.store.base import GraphTransaction, Properties

logger = logging.getLogger(__name__)


def new_section_id() -> str:
    return f"section-{uuid4().hex[:16]}"


def get_section_node(tx: GraphTransaction, section_id: str) -> Properties:
    """Raises ScopeNotFoundError if the section does not exist."""
    node = tx.get_node(NodeKind.SECTION, section_id)
    if node is None:
        raise ScopeNotFoundError(f"Section '{section_id}' not found")
    return node


def create_section(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    document_slug: str,
    name: str,
    order: int = 0,
    *,
    short_code: str | None = None,
    description: str | None = None,
    now: str | None = None,
) -> SectionRecord:
    """Add a section to a live document.

    Raises:
        ScopeNotFoundError: If the document does not exist.
        ValidationError: If the name is empty or the short code is malformed.
    """
    name = (check_str(name, "name") or "").strip()
    if not name:
        raise ValidationError("Section name must not be empty")
    short_code = normalize_short_code(short_code)
    check_str(description, "description")
    now = now or now_iso()
    document = resolve_document(tx, tenant, project, document_slug)
    section_id = new_section_id()
    node = tx.create_node(
        NodeKind.SECTION,
        section_id,
        {
            "name": name,
            "description": description,
            "shortCode": short_code,
            "documentSlug": document["slug"],
            "tenant": tenant,
            "projectKey": project,
            "order": int(order),
            "createdAt": now,
            "updatedAt": now,
        },
    )
    tx.merge_edge(NodeKind.DOCUMENT, document["id"], EdgeKind.HAS_SECTION, NodeKind.SECTION, section_id)
    logger.info("Created section %s in %s", section_id, document["id"])
    return SectionRecord.from_node(node)


def list_sections(
    tx: GraphTransaction, tenant: str, project: str, document_slug: str
) -> list[SectionRecord]:
    """Sections of a document ordered by ``order`` then creation time."""
    document = resolve_document(tx, tenant, project, document_slug)
    nodes = tx.neighbors(NodeKind.DOCUMENT, document["id"], EdgeKind.HAS_SECTION, NodeKind.SECTION)
    nodes.sort(key=lambda n: (n.get("order", 0), n.get("createdAt") or ""))
    return [SectionRecord.from_node(n) for n in nodes]


def update_section(
    tx: GraphTransaction,
    section_id: str,
    update: SectionUpdate,
    now: str | None = None,
) -> tuple[SectionRecord, list[RefChange]]:
    """Apply a partial update; cascade refs when name or short code is given.

    Raises:
        ScopeNotFoundError: If the section does not exist.
        ValidationError: If the update is empty or invalid.
    """
    if update.is_empty():
        raise ValidationError("No section fields to update")
    now = now or now_iso()
    get_section_node(tx, section_id)
    changes = update.changes()
    changes["updatedAt"] = now
    node = tx.set_properties(NodeKind.SECTION, section_id, changes)

    ref_changes: list[RefChange] = []
    if update.renames:
        ref_changes = on_section_renamed(tx, section_id, now)
    return SectionRecord.from_node(node), ref_changes


def delete_section(tx: GraphTransaction, section_id: str, now: str | None = None) -> SectionRecord:
    """Remove a section; its requirements stay in the document.

    The requirements keep their refs and lose their ``sectionId``.
    """
    node = get_section_node(tx, section_id)
    now = now or now_iso()
    for requirement in tx.neighbors(
        NodeKind.SECTION, section_id, EdgeKind.HAS_REQUIREMENT, NodeKind.REQUIREMENT
    ):
        tx.set_properties(
            NodeKind.REQUIREMENT, requirement["id"], {"sectionId": None, "updatedAt": now}
        )
    tx.delete_node(NodeKind.SECTION, section_id)
    logger.info("Deleted section %s", section_id)
    return SectionRecord.from_node(node)


__all__ = [
    "create_section",
    "delete_section",
    "get_section_node",
    "list_sections",
    "new_section_id",
    "update_section",
]
