"""Store contracts - the transaction interface the engine depends on.

A store hands out scoped transactions through ``execute_write`` and
``execute_read``. The unit of work receives a ``GraphTransaction`` and
everything it does is committed together when it returns, or discarded
when it raises.

Node properties travel as plain dicts. Every node has an ``id`` property
that is unique within its kind; a property whose value is ``None`` is
absent.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from reqgraph.graph import EdgeKind, NodeKind

T = TypeVar("T")

Properties = dict[str, Any]


@runtime_checkable
class GraphTransaction(Protocol):
    """Typed graph primitives available inside one transaction."""

    def get_node(self, kind: NodeKind, node_id: str) -> Properties | None:
        """Return the node's properties, or None if it does not exist."""
        ...

    def find_nodes(self, kind: NodeKind, **match: Any) -> list[Properties]:
        """Return every node of ``kind`` whose properties equal ``match``."""
        ...

    def create_node(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        """Create a node. Raises StorageError if the id is already taken."""
        ...

    def merge_node(self, kind: NodeKind, node_id: str, on_create: Properties) -> Properties:
        """Return the existing node, or create it with ``on_create``."""
        ...

    def set_properties(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        """Merge ``properties`` into an existing node and return the result."""
        ...

    def increment(self, kind: NodeKind, node_id: str, field: str) -> int:
        """Add one to an integer property (missing counts as 0), return it."""
        ...

    def delete_node(self, kind: NodeKind, node_id: str) -> bool:
        """Delete a node and all of its relationships."""
        ...

    def merge_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> None:
        """Create the relationship unless it already exists."""
        ...

    def delete_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> bool:
        """Remove the relationship; return False if it did not exist."""
        ...

    def neighbors(
        self,
        kind: NodeKind,
        node_id: str,
        edge: EdgeKind,
        other_kind: NodeKind,
        *,
        incoming: bool = False,
    ) -> list[Properties]:
        """Return nodes of ``other_kind`` joined to this node by ``edge``.

        Outgoing edges are followed by default; ``incoming=True`` follows
        edges that point at this node.
        """
        ...


@runtime_checkable
class GraphStore(Protocol):
    """A transactional property graph."""

    def execute_write(self, work: Callable[[GraphTransaction], T]) -> T:
        """Run ``work`` in a read/write transaction and commit it."""
        ...

    def execute_read(self, work: Callable[[GraphTransaction], T]) -> T:
        """Run ``work`` in a read-only transaction."""
        ...

    def close(self) -> None:
        """Release connections held by the store."""
        ...


__all__ = ["GraphStore", "GraphTransaction", "Properties"]
