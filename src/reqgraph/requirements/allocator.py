"""Counter allocation with collision self-healing.

A scope node (document, or project when there is no document) carries a
``requirementCounter``. Allocation bumps it, then scans every requirement
of the tenant/project for refs under the same prefix. The scan wins when
it has seen a higher suffix than the counter, so imported data, refs that
moved in from a rename, or a counter that fell behind never produce a
duplicate ref.

Both steps run in the caller's transaction. The counter write locks the
scope node, which is what keeps concurrent creates apart.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from reqgraph.errors import ValidationError
from reqgraph.graph import NodeKind
from reqgraph.store.base import GraphTransaction

logger = logging.getLogger(__name__)

COUNTER_FIELD = "requirementCounter"
SUFFIX_WIDTH = 3


@dataclass(frozen=True)
class Allocation:
    """Outcome of one allocation.

    Attributes:
        prefix: Prefix the suffix belongs to.
        counter: Value of the scope counter after the increment.
        max_existing: Highest suffix found by the scan, if any.
        suffix: Suffix actually used.
    """

    prefix: str
    counter: int
    max_existing: int | None
    suffix: int

    @property
    def ref(self) -> str:
        return f"{self.prefix}-{format_suffix(self.suffix)}"

    @property
    def healed(self) -> bool:
        """True when the scan overrode the counter."""
        return self.suffix != self.counter


def format_suffix(value: int) -> str:
    """Zero-pad to three digits; larger values keep all their digits."""
    return f"{value:0{SUFFIX_WIDTH}d}"


def ref_pattern(prefix: str) -> re.Pattern[str]:
    """Regex matching ``<prefix>-NNN`` with three or more digits."""
    return re.compile(rf"^{re.escape(prefix)}-([0-9]{{{SUFFIX_WIDTH},}})$")


def split_ref(ref: str) -> tuple[str, str]:
    """Split a ref into ``(prefix, suffix)`` at its last dash.

    Examples:
        >>> split_ref("SRD-PWR-007")
        ('SRD-PWR', '007')
    """
    prefix, _, suffix = ref.rpartition("-")
    return prefix, suffix


def max_existing_suffix(
    tx: GraphTransaction,
    tenant: str,
    project: str,
    prefix: str,
    exclude_ids: frozenset[str] = frozenset(),
) -> int | None:
    """Highest numeric suffix used under ``prefix`` in a project.

    Soft-deleted requirements count: their refs are never handed out again.
    """
    pattern = ref_pattern(prefix)
    best: int | None = None
    for node in tx.find_nodes(NodeKind.REQUIREMENT, tenant=tenant, projectKey=project):
        if node["id"] in exclude_ids:
            continue
        match = pattern.match(node.get("ref", ""))
        if match:
            value = int(match.group(1))
            if best is None or value > best:
                best = value
    return best


def next_suffix(
    tx: GraphTransaction,
    scope_kind: NodeKind,
    scope_id: str,
    tenant: str,
    project: str,
    prefix: str,
    max_suffix: int | None = None,
) -> Allocation:
    """Allocate the next suffix for ``prefix`` under a scope node.

    Args:
        tx: Open write transaction.
        scope_kind: ``NodeKind.DOCUMENT`` or ``NodeKind.PROJECT``.
        scope_id: Id of the scope node whose counter is incremented.
        tenant: Tenant slug.
        project: Project slug.
        prefix: Resolved prefix.
        max_suffix: Optional upper bound for the suffix.

    Returns:
        The allocation.

    Raises:
        ValidationError: If ``max_suffix`` is set and would be exceeded.
    """
    counter = tx.increment(scope_kind, scope_id, COUNTER_FIELD)
    max_existing = max_existing_suffix(tx, tenant, project, prefix)

    suffix = counter
    if max_existing is not None and max_existing >= counter:
        suffix = max_existing + 1

    if max_suffix is not None and suffix > max_suffix:
        raise ValidationError(f"Ref suffix for {prefix} exhausted (limit {max_suffix})")

    allocation = Allocation(prefix=prefix, counter=counter, max_existing=max_existing, suffix=suffix)
    if allocation.healed:
        logger.info(
            "Counter for %s at %d but %s-%s already used; allocating %s",
            scope_id,
            counter,
            prefix,
            format_suffix(max_existing or 0),
            allocation.ref,
        )
    else:
        logger.debug("Allocated %s from %s counter", allocation.ref, scope_id)
    return allocation


__all__ = [
    "Allocation",
    "COUNTER_FIELD",
    "format_suffix",
    "max_existing_suffix",
    "next_suffix",
    "ref_pattern",
    "split_ref",
]
