"""Document CRUD.

A document belongs to one project (``Project-HAS_DOCUMENT->Document``)
and carries the requirement counter for everything filed under it.
Updating its name or short code cascades new refs to its requirements
in the same transaction.
"""

from __future__ import annotations

import logging

from reqgraph.errors import ScopeNotFoundError, ValidationError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import (
    DocumentRecord,
    DocumentUpdate,
    check_str,
    normalize_short_code,
    now_iso,
)
from reqgraph.requirements.cascade import RefChange, on_document_renamed
from reqgraph.requirements.lifecycle import is_live
from reqgraph.requirements.queries import clamp_page
from reqgraph.store.base import GraphTransaction, Properties
from reqgraph.tenants import ensure_ancestors
from reqgraph.utilities.slugs import document_id, project_id, slugify

logger = logging.getLogger(__name__)

DEFAULT_KIND = "structured"


def _live_count(tx: GraphTransaction, doc_id: str) -> int:
    requirements = tx.neighbors(NodeKind.DOCUMENT, doc_id, EdgeKind.CONTAINS, NodeKind.REQUIREMENT)
    return sum(1 for r in requirements if is_live(r))


def _record(tx: GraphTransaction, node: Properties) -> DocumentRecord:
    return DocumentRecord.from_node(node, requirement_count=_live_count(tx, node["id"]))


def get_document_node(tx: GraphTransaction, tenant: str, project: str, slug: str) -> Properties:
    """Return a document's properties, deleted or not.

    Raises:
        ScopeNotFoundError: If the document does not exist.
    """
    node = tx.get_node(NodeKind.DOCUMENT, document_id(tenant, project, slug))
    if node is None:
        raise ScopeNotFoundError(f"Document '{slug}' not found in {tenant}/{project}")
    return node


def create_document(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    name: str,
    *,
    slug: str | None = None,
    short_code: str | None = None,
    description: str | None = None,
    parent_folder: str | None = None,
    kind: str | None = None,
    now: str | None = None,
) -> DocumentRecord:
    """Create a document under a project, creating the project if needed.

    Raises:
        ValidationError: If the name is empty, the short code is malformed
            or the slug is taken.
    """
    name = (check_str(name, "name") or "").strip()
    if not name:
        raise ValidationError("Document name must not be empty")
    short_code = normalize_short_code(short_code)
    for key, value in (
        ("slug", slug),
        ("description", description),
        ("parentFolder", parent_folder),
        ("kind", kind),
    ):
        check_str(value, key)
    now = now or now_iso()
    doc_slug = slugify(slug or name)
    doc_id = document_id(tenant, project, doc_slug)

    ensure_ancestors(tx, tenant, project, now=now)
    if tx.get_node(NodeKind.DOCUMENT, doc_id) is not None:
        raise ValidationError(f"Document '{doc_slug}' already exists in {tenant}/{project}")

    node = tx.create_node(
        NodeKind.DOCUMENT,
        doc_id,
        {
            "slug": doc_slug,
            "name": name,
            "description": description,
            "shortCode": short_code,
            "tenant": tenant,
            "projectKey": project,
            "parentFolder": slugify(parent_folder) if parent_folder else None,
            "kind": kind or DEFAULT_KIND,
            "requirementCounter": 0,
            "createdAt": now,
            "updatedAt": now,
        },
    )
    tx.merge_edge(
        NodeKind.PROJECT, project_id(tenant, project), EdgeKind.HAS_DOCUMENT, NodeKind.DOCUMENT, doc_id
    )
    logger.info("Created document %s", doc_id)
    return DocumentRecord.from_node(node)


def get_document(tx: GraphTransaction, tenant: str, project: str, slug: str) -> DocumentRecord | None:
    node = tx.get_node(NodeKind.DOCUMENT, document_id(tenant, project, slug))
    return _record(tx, node) if node else None


def list_documents(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    limit: int | None = None,
    offset: int | None = 0,
) -> list[DocumentRecord]:
    """Live documents of a project ordered by name, with requirement counts."""
    limit, offset = clamp_page(limit, offset)
    nodes = [
        node
        for node in tx.neighbors(
            NodeKind.PROJECT, project_id(tenant, project), EdgeKind.HAS_DOCUMENT, NodeKind.DOCUMENT
        )
        if not node.get("deletedAt")
    ]
    nodes.sort(key=lambda n: (n.get("name", ""), n["slug"]))
    return [_record(tx, node) for node in nodes[offset : offset + limit]]


def update_document(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    slug: str,
    update: DocumentUpdate,
    now: str | None = None,
) -> tuple[DocumentRecord, list[RefChange]]:
    """Apply a partial update; cascade refs when name or short code is given.

    Returns:
        The updated document and the ref changes of the cascade (empty
        when no cascade ran).

    Raises:
        ScopeNotFoundError: If the document does not exist.
        ValidationError: If the update is empty or invalid.
    """
    if update.is_empty():
        raise ValidationError("No document fields to update")
    now = now or now_iso()
    node = get_document_node(tx, tenant, project, slug)
    changes = update.changes()
    changes["updatedAt"] = now
    node = tx.set_properties(NodeKind.DOCUMENT, node["id"], changes)

    ref_changes: list[RefChange] = []
    if update.renames:
        ref_changes = on_document_renamed(tx, tenant, project, slug, now)
    return _record(tx, node), ref_changes


def soft_delete_document(
    tx: GraphTransaction, tenant: str, project: str, slug: str, now: str | None = None
) -> DocumentRecord:
    """Stamp ``deletedAt``; requirements and counters are left alone."""
    node = get_document_node(tx, tenant, project, slug)
    now = now or now_iso()
    node = tx.set_properties(NodeKind.DOCUMENT, node["id"], {"deletedAt": now, "updatedAt": now})
    logger.info("Soft-deleted document %s", node["id"])
    return _record(tx, node)


__all__ = [
    "create_document",
    "get_document",
    "get_document_node",
    "list_documents",
    "soft_delete_document",
    "update_document",
]
