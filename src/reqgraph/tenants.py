"""Tenants and projects - the ancestor chain of every document and requirement.

Ancestors are created on demand: any write that names a tenant and
project makes sure both nodes and the OWNS edge between them exist, and
never touches the properties of nodes that are already there.
"""

from __future__ import annotations

from reqgraph.errors import ScopeNotFoundError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.models import ProjectRecord, TenantRecord, now_iso
from reqgraph.store.base import GraphTransaction, Properties
from reqgraph.utilities.slugs import project_id


def ensure_ancestors(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    *,
    tenant_name: str | None = None,
    project_key: str | None = None,
    project_name: str | None = None,
    now: str | None = None,
) -> tuple[Properties, Properties]:
    """Create-if-absent the tenant, the project and their OWNS edge.

    Args:
        tx: Open write transaction.
        tenant: Tenant slug.
        project: Project slug.
        tenant_name: Display name stored when the tenant is new.
        project_key: Key stored when the project is new.
        project_name: Display name stored when the project is new.
        now: Creation timestamp to use.

    Returns:
        ``(tenant_properties, project_properties)`` as stored.
    """
    now = now or now_iso()
    tenant_node = tx.merge_node(
        NodeKind.TENANT,
        tenant,
        {"slug": tenant, "name": tenant_name or tenant, "createdAt": now},
    )
    pid = project_id(tenant, project)
    project_node = tx.merge_node(
        NodeKind.PROJECT,
        pid,
        {
            "slug": project,
            "tenantSlug": tenant,
            "key": project_key or project,
            "name": project_name or project_key or project,
            "requirementCounter": 0,
            "createdAt": now,
        },
    )
    tx.merge_edge(NodeKind.TENANT, tenant, EdgeKind.OWNS, NodeKind.PROJECT, pid)
    return tenant_node, project_node


def get_project(tx: GraphTransaction, tenant: str, project: str) -> Properties:
    """Return a project's properties.

    Raises:
        ScopeNotFoundError: If the project does not exist.
    """
    node = tx.get_node(NodeKind.PROJECT, project_id(tenant, project))
    if node is None:
        raise ScopeNotFoundError(f"Project '{tenant}/{project}' not found")
    return node


def count_live_requirements(tx: GraphTransaction, tenant: str, project: str) -> int:
    nodes = tx.find_nodes(NodeKind.REQUIREMENT, tenant=tenant, projectKey=project)
    return sum(1 for node in nodes if not node.get("deleted"))


def list_tenants(tx: GraphTransaction) -> list[TenantRecord]:
    """All tenants with their project counts, sorted by slug."""
    records = []
    for node in tx.find_nodes(NodeKind.TENANT):
        projects = tx.neighbors(NodeKind.TENANT, node["id"], EdgeKind.OWNS, NodeKind.PROJECT)
        records.append(TenantRecord.from_node(node, project_count=len(projects)))
    return sorted(records, key=lambda r: r.slug)


def list_projects(tx: GraphTransaction, tenant: str) -> list[ProjectRecord]:
    """Projects of a tenant with live requirement counts, sorted by slug.

    Raises:
        ScopeNotFoundError: If the tenant does not exist.
    """
    if tx.get_node(NodeKind.TENANT, tenant) is None:
        raise ScopeNotFoundError(f"Tenant '{tenant}' not found")
    records = [
        ProjectRecord.from_node(
            node, requirement_count=count_live_requirements(tx, tenant, node["slug"])
        )
        for node in tx.neighbors(NodeKind.TENANT, tenant, EdgeKind.OWNS, NodeKind.PROJECT)
    ]
    return sorted(records, key=lambda r: r.slug)


__all__ = [
    "count_live_requirements",
    "ensure_ancestors",
    "get_project",
    "list_projects",
    "list_tenants",
]
