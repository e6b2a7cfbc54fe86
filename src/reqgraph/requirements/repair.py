"""Duplicate ref detection and repair.

Duplicates should not arise from the allocator, but imported data or a
cascade that lands two requirements on the same prefix can produce them.
Repair keeps the oldest requirement of each group and gives the others
fresh suffixes from the allocator scan.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from reqgraph.graph import NodeKind
from reqgraph.models import RequirementRecord, now_iso
from reqgraph.requirements.allocator import format_suffix, max_existing_suffix, split_ref
from reqgraph.requirements.cascade import RefChange
from reqgraph.requirements.lifecycle import is_live
from reqgraph.requirements.queries import project_requirements
from reqgraph.store.base import GraphTransaction
from reqgraph.utilities.slugs import requirement_path

logger = logging.getLogger(__name__)


@dataclass
class DuplicateGroup:
    """Live requirements sharing one ref, oldest first."""

    ref: str
    requirements: list[RequirementRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ref": self.ref,
            "count": len(self.requirements),
            "requirements": [r.to_dict() for r in self.requirements],
        }


def find_duplicate_refs(tx: GraphTransaction, tenant: str, project: str) -> list[DuplicateGroup]:
    """Group live requirements of a project by ref; keep groups of two or more."""
    by_ref: dict[str, list[dict]] = defaultdict(list)
    for node in project_requirements(tx, tenant, project):
        if is_live(node):
            by_ref[node["ref"]].append(node)

    groups = []
    for ref in sorted(by_ref):
        nodes = by_ref[ref]
        if len(nodes) < 2:
            continue
        nodes.sort(key=lambda n: (n.get("createdAt") or "", n["id"]))
        groups.append(DuplicateGroup(ref, [RequirementRecord.from_node(n) for n in nodes]))
    return groups


def fix_duplicate_refs(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    now: str | None = None,
) -> list[RefChange]:
    """Re-allocate every duplicate but the oldest of each group.

    Returns:
        One change per re-allocated requirement.
    """
    now = now or now_iso()
    changes = []
    for group in find_duplicate_refs(tx, tenant, project):
        prefix, _ = split_ref(group.ref)
        for record in group.requirements[1:]:
            suffix = (max_existing_suffix(tx, tenant, project, prefix) or 0) + 1
            new_ref = f"{prefix}-{format_suffix(suffix)}"
            tx.set_properties(
                NodeKind.REQUIREMENT,
                record.id,
                {
                    "ref": new_ref,
                    "path": requirement_path(tenant, project, new_ref),
                    "updatedAt": now,
                },
            )
            changes.append(RefChange(record.id, tenant, project, record.ref, new_ref))
            logger.info("Re-allocated duplicate %s (%s) as %s", record.ref, record.id, new_ref)
    return changes


__all__ = ["DuplicateGroup", "find_duplicate_refs", "fix_duplicate_refs"]
