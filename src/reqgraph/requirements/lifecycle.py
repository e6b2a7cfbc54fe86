"""Lifecycle manager - edits and soft deletion of existing requirements.

Deletion is soft: the node keeps its ref, hashId and relationships and
is only flagged ``deleted``. Its ref stays visible to the allocator scan,
so it is never handed out again.
"""

from __future__ import annotations

import logging

from reqgraph.errors import NotFoundError
from reqgraph.graph import NodeKind
from reqgraph.models import RequirementRecord, RequirementUpdate, now_iso
from reqgraph.store.base import GraphTransaction, Properties

logger = logging.getLogger(__name__)


def is_live(requirement: Properties) -> bool:
    """True unless the requirement was soft-deleted."""
    return not requirement.get("deleted")


def get_owned(tx: GraphTransaction, tenant: str, project: str, requirement_id: str) -> Properties:
    """Return a requirement that belongs to ``tenant``/``project``.

    Raises:
        NotFoundError: If the id does not exist or belongs elsewhere.
    """
    node = tx.get_node(NodeKind.REQUIREMENT, requirement_id)
    if node is None or node.get("tenant") != tenant or node.get("projectKey") != project:
        raise NotFoundError(f"Requirement '{requirement_id}' not found in {tenant}/{project}")
    return node


def soft_delete(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    requirement_id: str,
    now: str | None = None,
) -> RequirementRecord:
    """Flag a requirement as deleted.

    Deleting an already deleted requirement only refreshes ``updatedAt``.

    Raises:
        NotFoundError: If the requirement is missing or belongs elsewhere.
    """
    get_owned(tx, tenant, project, requirement_id)
    updated = tx.set_properties(
        NodeKind.REQUIREMENT,
        requirement_id,
        {"deleted": True, "updatedAt": now or now_iso()},
    )
    logger.info("Soft-deleted requirement %s (%s)", updated["ref"], requirement_id)
    return RequirementRecord.from_node(updated)


def update_requirement(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    requirement_id: str,
    update: RequirementUpdate,
    now: str | None = None,
) -> RequirementRecord:
    """Apply a typed partial update.

    Raises:
        NotFoundError: If the requirement is missing or belongs elsewhere.
        ValidationError: If a new value is invalid.
    """
    changes = update.changes()
    get_owned(tx, tenant, project, requirement_id)
    changes["updatedAt"] = now or now_iso()
    updated = tx.set_properties(NodeKind.REQUIREMENT, requirement_id, changes)
    logger.debug("Updated %s: %s", requirement_id, ", ".join(sorted(changes)))
    return RequirementRecord.from_node(updated)


__all__ = ["get_owned", "is_live", "soft_delete", "update_requirement"]
