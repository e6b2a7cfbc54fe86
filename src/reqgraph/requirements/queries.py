"""Read paths over requirements.

Listings skip soft-deleted requirements unless asked not to; lookups by
ref or id return them regardless, so history stays reachable.
"""

from __future__ import annotations

from reqgraph.errors import ScopeNotFoundError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import RequirementRecord
from reqgraph.requirements.lifecycle import is_live
from reqgraph.store.base import GraphTransaction, Properties
from reqgraph.utilities.slugs import document_id

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000


def clamp_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    """Normalise paging arguments: limit in 1..1000, offset >= 0."""
    limit = DEFAULT_LIMIT if limit is None else int(limit)
    offset = 0 if offset is None else int(offset)
    return max(1, min(limit, MAX_LIMIT)), max(0, offset)


def _records(nodes: list[Properties], include_deleted: bool) -> list[RequirementRecord]:
    live = nodes if include_deleted else [n for n in nodes if is_live(n)]
    return [RequirementRecord.from_node(n) for n in sorted(live, key=lambda n: (n["ref"], n["id"]))]


def project_requirements(tx: GraphTransaction, tenant: str, project: str) -> list[Properties]:
    """Every requirement node of a project, deleted ones included."""
    return tx.find_nodes(NodeKind.REQUIREMENT, tenant=tenant, projectKey=project)


def get_by_ref(tx: GraphTransaction, tenant: str, project: str, ref: str) -> RequirementRecord | None:
    nodes = tx.find_nodes(NodeKind.REQUIREMENT, tenant=tenant, projectKey=project, ref=ref)
    if not nodes:
        return None
    # Prefer a live record when a ref is duplicated
    nodes.sort(key=lambda n: (not is_live(n), n.get("createdAt") or "", n["id"]))
    return RequirementRecord.from_node(nodes[0])


def get_by_id(
    tx: GraphTransaction, tenant: str, project: str, requirement_id: str
) -> RequirementRecord | None:
    node = tx.get_node(NodeKind.REQUIREMENT, requirement_id)
    if node is None or node.get("tenant") != tenant or node.get("projectKey") != project:
        return None
    return RequirementRecord.from_node(node)


def list_requirements(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    limit: int | None = DEFAULT_LIMIT,
    offset: int | None = 0,
    include_deleted: bool = False,
) -> list[RequirementRecord]:
    """Requirements of a project ordered by ref, one page at a time."""
    limit, offset = clamp_page(limit, offset)
    records = _records(project_requirements(tx, tenant, project), include_deleted)
    return records[offset : offset + limit]


def count_requirements(tx: GraphTransaction, tenant: str, project: str) -> int:
    return sum(1 for n in project_requirements(tx, tenant, project) if is_live(n))


def list_document_requirements(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    document_slug: str,
    include_deleted: bool = False,
) -> list[RequirementRecord]:
    """Requirements of a document, including those in its sections.

    Raises:
        ScopeNotFoundError: If the document does not exist.
    """
    doc_id = document_id(tenant, project, document_slug)
    if tx.get_node(NodeKind.DOCUMENT, doc_id) is None:
        raise ScopeNotFoundError(f"Document '{document_slug}' not found in {tenant}/{project}")
    nodes = tx.neighbors(NodeKind.DOCUMENT, doc_id, EdgeKind.CONTAINS, NodeKind.REQUIREMENT)
    return _records(nodes, include_deleted)


def list_section_requirements(
    tx: GraphTransaction, section_id: str, include_deleted: bool = False
) -> list[RequirementRecord]:
    """Requirements filed under a section.

    Raises:
        ScopeNotFoundError: If the section does not exist.
    """
    if tx.get_node(NodeKind.SECTION, section_id) is None:
        raise ScopeNotFoundError(f"Section '{section_id}' not found")
    nodes = tx.neighbors(NodeKind.SECTION, section_id, EdgeKind.HAS_REQUIREMENT, NodeKind.REQUIREMENT)
    return _records(nodes, include_deleted)


def suggest_links(
    tx: GraphTransaction, tenant: str, project: str, text: str, limit: int = 3
) -> list[RequirementRecord]:
    """Live requirements whose text mentions the first word of ``text``."""
    words = text.split()
    if not words:
        return []
    needle = words[0].lower()
    matches = [
        n
        for n in project_requirements(tx, tenant, project)
        if is_live(n) and needle in str(n.get("text", "")).lower()
    ]
    return _records(matches, include_deleted=False)[: max(0, limit)]


__all__ = [
    "DEFAULT_LIMIT",
    "MAX_LIMIT",
    "clamp_page",
    "count_requirements",
    "get_by_id",
    "get_by_ref",
    "list_document_requirements",
    "list_requirements",
    "list_section_requirements",
    "project_requirements",
    "suggest_links",
]
