"""Reference assembler - the create path of a requirement.

``create_requirement`` runs entirely inside one write transaction:

1. ensure the tenant/project chain exists;
2. resolve the document and section named by the scope;
3. resolve the prefix and allocate a suffix;
4. create the requirement node and link it to its scope.

Any failure along the way aborts the transaction, including the counter
increment.
"""

from __future__ import annotations

import logging
import secrets

from reqgraph.errors import ScopeNotFoundError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import RequirementInput, RequirementRecord, RequirementScope, now_iso
from reqgraph.requirements.allocator import next_suffix
from reqgraph.requirements.prefix import resolve_prefix
from reqgraph.store.base import GraphTransaction, Properties
from reqgraph.tenants import ensure_ancestors
from reqgraph.utilities.slugs import (
    document_id,
    project_id,
    requirement_id,
    requirement_path,
)

logger = logging.getLogger(__name__)

HASH_ID_BYTES = 8


def new_hash_id() -> str:
    """Random 16 character hex id."""
    return secrets.token_hex(HASH_ID_BYTES)


def resolve_document(tx: GraphTransaction, tenant: str, project: str, slug: str) -> Properties:
    """Return a live document of the project.

    Raises:
        ScopeNotFoundError: If it does not exist or was soft-deleted.
    """
    document = tx.get_node(NodeKind.DOCUMENT, document_id(tenant, project, slug))
    if document is None or document.get("deletedAt"):
        raise ScopeNotFoundError(f"Document '{slug}' not found in {tenant}/{project}")
    return document


def resolve_section(tx: GraphTransaction, document: Properties, section_id: str) -> Properties:
    """Return a section that belongs to ``document``.

    Raises:
        ScopeNotFoundError: If the section does not exist or belongs to
            another document.
    """
    sections = tx.neighbors(NodeKind.DOCUMENT, document["id"], EdgeKind.HAS_SECTION, NodeKind.SECTION)
    for section in sections:
        if section["id"] == section_id:
            return section
    raise ScopeNotFoundError(f"Section '{section_id}' not found in document '{document['slug']}'")


def create_requirement(
    tx: GraphTransaction,
    scope: RequirementScope,
    fields: RequirementInput,
    *,
    max_suffix: int | None = None,
    now: str | None = None,
) -> RequirementRecord:
    """Allocate a ref and create a requirement under ``scope``.

    Args:
        tx: Open write transaction.
        scope: Owning scope; slugs must already be normalised.
        fields: Caller-supplied requirement fields.
        max_suffix: Optional cap on the numeric suffix.
        now: Timestamp for createdAt/updatedAt.

    Returns:
        The created requirement.

    Raises:
        ValidationError: On invalid fields, a section without a document,
            or an exhausted suffix range.
        ScopeNotFoundError: If the document or section does not exist.
    """
    scope.validate()
    properties = fields.to_properties()
    now = now or now_iso()
    tenant, project = scope.tenant, scope.project

    ensure_ancestors(tx, tenant, project, now=now)

    document = section = None
    if scope.document:
        document = resolve_document(tx, tenant, project, scope.document)
        if scope.section:
            section = resolve_section(tx, document, scope.section)

    prefix = resolve_prefix(project, document, section)
    if document is not None:
        allocation = next_suffix(
            tx, NodeKind.DOCUMENT, document["id"], tenant, project, prefix, max_suffix
        )
    else:
        allocation = next_suffix(
            tx, NodeKind.PROJECT, project_id(tenant, project), tenant, project, prefix, max_suffix
        )
    ref = allocation.ref

    hash_id = new_hash_id()
    node_id = requirement_id(tenant, project, ref)
    if tx.get_node(NodeKind.REQUIREMENT, node_id) is not None:
        # The ref was freed by a rename; ids are permanent, so qualify this one.
        node_id = f"{node_id}@{hash_id}"

    properties.update(
        {
            "hashId": hash_id,
            "ref": ref,
            "tenant": tenant,
            "projectKey": project,
            "path": requirement_path(tenant, project, ref),
            "documentSlug": document["slug"] if document else None,
            "sectionId": section["id"] if section else None,
            "deleted": False,
            "createdAt": now,
            "updatedAt": now,
        }
    )
    created = tx.create_node(NodeKind.REQUIREMENT, node_id, properties)

    if document is not None:
        tx.merge_edge(NodeKind.DOCUMENT, document["id"], EdgeKind.CONTAINS, NodeKind.REQUIREMENT, node_id)
        if section is not None:
            tx.merge_edge(
                NodeKind.SECTION, section["id"], EdgeKind.HAS_REQUIREMENT, NodeKind.REQUIREMENT, node_id
            )
    else:
        tx.merge_edge(
            NodeKind.PROJECT,
            project_id(tenant, project),
            EdgeKind.CONTAINS,
            NodeKind.REQUIREMENT,
            node_id,
        )

    logger.info("Created requirement %s in %s/%s (%s scope)", ref, tenant, project, scope.kind)
    return RequirementRecord.from_node(created)


__all__ = ["create_requirement", "new_hash_id", "resolve_document", "resolve_section"]
