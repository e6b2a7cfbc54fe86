"""Cascade rewriter - keep refs in step with document and section renames.

After a document's short code or name (or a section's) has been updated,
every requirement filed under it gets its prefix recomputed from the
stored values. Only the prefix changes: the numeric suffix after the last
dash is kept verbatim, so ``SRD-PWR-007`` becomes ``SYS-PWR-007``.
``id`` and ``hashId`` are never touched.

The rewrite runs inside the caller's transaction, on every rename call,
whether or not the values changed; running it twice gives the same refs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from reqgraph.errors import ScopeNotFoundError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import now_iso
from reqgraph.requirements.allocator import split_ref
from reqgraph.requirements.prefix import resolve_prefix
from reqgraph.store.base import GraphTransaction, Properties
from reqgraph.utilities.slugs import document_id, requirement_path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefChange:
    """One requirement visited by a cascade."""

    requirement_id: str
    tenant: str
    project: str
    old_ref: str
    new_ref: str

    @property
    def changed(self) -> bool:
        return self.old_ref != self.new_ref


def rewrite_ref(
    tx: GraphTransaction,
    requirement: Properties,
    prefix: str,
    now: str,
) -> RefChange:
    """Give ``requirement`` a new prefix, keeping its suffix."""
    old_ref = requirement["ref"]
    _, suffix = split_ref(old_ref)
    new_ref = f"{prefix}-{suffix}"
    tenant = requirement["tenant"]
    project = requirement["projectKey"]
    tx.set_properties(
        NodeKind.REQUIREMENT,
        requirement["id"],
        {
            "ref": new_ref,
            "path": requirement_path(tenant, project, new_ref),
            "updatedAt": now,
        },
    )
    return RefChange(requirement["id"], tenant, project, old_ref, new_ref)


def _owning_section(tx: GraphTransaction, requirement_id: str) -> Properties | None:
    sections = tx.neighbors(
        NodeKind.REQUIREMENT,
        requirement_id,
        EdgeKind.HAS_REQUIREMENT,
        NodeKind.SECTION,
        incoming=True,
    )
    return sections[0] if sections else None


def on_document_renamed(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    document_slug: str,
    now: str | None = None,
) -> list[RefChange]:
    """Rewrite refs of every requirement in a document.

    Requirements that sit in one of the document's sections get the
    ``DOC-SECTION`` prefix, the others ``DOC``.

    Raises:
        ScopeNotFoundError: If the document does not exist.
    """
    now = now or now_iso()
    doc_id = document_id(tenant, project, document_slug)
    document = tx.get_node(NodeKind.DOCUMENT, doc_id)
    if document is None:
        raise ScopeNotFoundError(f"Document '{document_slug}' not found")

    changes = []
    for requirement in tx.neighbors(
        NodeKind.DOCUMENT, doc_id, EdgeKind.CONTAINS, NodeKind.REQUIREMENT
    ):
        section = _owning_section(tx, requirement["id"])
        prefix = resolve_prefix(project, document, section)
        changes.append(rewrite_ref(tx, requirement, prefix, now))

    logger.debug(
        "Document %s cascade: %d visited, %d renamed",
        doc_id,
        len(changes),
        sum(1 for c in changes if c.changed),
    )
    return changes


def on_section_renamed(
    tx: GraphTransaction,
    section_id: str,
    now: str | None = None,
) -> list[RefChange]:
    """Rewrite refs of every requirement in a section.

    Raises:
        ScopeNotFoundError: If the section or its document does not exist.
    """
    now = now or now_iso()
    section = tx.get_node(NodeKind.SECTION, section_id)
    if section is None:
        raise ScopeNotFoundError(f"Section '{section_id}' not found")
    documents = tx.neighbors(
        NodeKind.SECTION, section_id, EdgeKind.HAS_SECTION, NodeKind.DOCUMENT, incoming=True
    )
    if not documents:
        raise ScopeNotFoundError(f"Section '{section_id}' has no document")
    document = documents[0]

    changes = [
        rewrite_ref(
            tx,
            requirement,
            resolve_prefix(requirement["projectKey"], document, section),
            now,
        )
        for requirement in tx.neighbors(
            NodeKind.SECTION, section_id, EdgeKind.HAS_REQUIREMENT, NodeKind.REQUIREMENT
        )
    ]

    logger.debug(
        "Section %s cascade: %d visited, %d renamed",
        section_id,
        len(changes),
        sum(1 for c in changes if c.changed),
    )
    return changes


__all__ = ["RefChange", "on_document_renamed", "on_section_renamed", "rewrite_ref"]
