"""GraphNode - Node representation for the in-process property graph.

This module provides the core data structures of the graph model:
- NodeKind: Enum of node labels (Tenant, Project, Document, ...)
- GraphNode: A labelled node carrying a property map and typed edges
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

if TYPE_CHECKING:
    from reqgraph.graph.relations import Edge, EdgeKind


class NodeKind(Enum):
    """Node labels of the requirements graph.

    The value is the label used by graph databases (``Document``,
    ``DocumentSection``...), so it can be placed in a query verbatim.
    """

    TENANT = "Tenant"
    PROJECT = "Project"
    DOCUMENT = "Document"
    SECTION = "DocumentSection"
    REQUIREMENT = "Requirement"

    @property
    def label(self) -> str:
        """Return the database label for this kind."""
        return self.value


@dataclass
class GraphNode:
    """A node in the property graph.

    Every node is addressed by ``(kind, id)``. Properties live in
    ``_content``; a property set to ``None`` is treated as absent, which
    matches how graph databases store nulls.

    Attributes:
        id: Unique identifier within the node's kind.
        kind: The node label.
    """

    id: str
    kind: NodeKind

    # Internal storage (prefixed)
    _outgoing_edges: list[Edge] = field(default_factory=list, repr=False)
    _incoming_edges: list[Edge] = field(default_factory=list, repr=False)
    _content: dict[str, Any] = field(default_factory=dict)

    # Iterator access
    def iter_outgoing_edges(self) -> Iterator[Edge]:
        """Iterate over outgoing edges."""
        yield from self._outgoing_edges

    def iter_incoming_edges(self) -> Iterator[Edge]:
        """Iterate over incoming edges."""
        yield from self._incoming_edges

    def iter_edges_by_kind(self, edge_kind: EdgeKind, incoming: bool = False) -> Iterator[Edge]:
        """Iterate edges of a specific kind in one direction."""
        edges = self._incoming_edges if incoming else self._outgoing_edges
        for e in edges:
            if e.kind == edge_kind:
                yield e

    def has_edge(self, target: GraphNode, edge_kind: EdgeKind) -> bool:
        """Check if an outgoing edge of this kind already points at target."""
        return any(e.target is target for e in self.iter_edges_by_kind(edge_kind))

    # Field accessors
    def get_field(self, key: str, default: Any = None) -> Any:
        """Get a property value."""
        return self._content.get(key, default)

    def set_field(self, key: str, value: Any) -> None:
        """Set a property value; ``None`` removes the property."""
        if value is None:
            self._content.pop(key, None)
        else:
            self._content[key] = value

    def get_all_content(self) -> dict[str, Any]:
        """Return a detached copy of all properties.

        Lists are copied so callers cannot mutate stored values outside
        a transaction.
        """
        return {k: list(v) if isinstance(v, list) else v for k, v in self._content.items()}

    def link(self, target: GraphNode, edge_kind: EdgeKind) -> Edge | None:
        """Create a typed edge to a target node if none exists yet.

        Args:
            target: The node the edge points to.
            edge_kind: The type of relationship.

        Returns:
            The created Edge, or None when the edge already existed.
        """
        from reqgraph.graph.relations import Edge

        if self.has_edge(target, edge_kind):
            return None

        edge = Edge(source=self, target=target, kind=edge_kind)
        self._outgoing_edges.append(edge)
        target._incoming_edges.append(edge)
        return edge

    def unlink(self, target: GraphNode, edge_kind: EdgeKind) -> bool:
        """Remove the typed edge to target.

        Returns:
            True if an edge was removed.
        """
        for edge in list(self.iter_edges_by_kind(edge_kind)):
            if edge.target is target:
                self._outgoing_edges.remove(edge)
                target._incoming_edges.remove(edge)
                return True
        return False

    def detach(self) -> list[Edge]:
        """Remove every edge touching this node.

        Returns:
            The removed edges, so a caller can restore them.
        """
        removed: list[Edge] = []
        for edge in list(self._outgoing_edges):
            edge.source.unlink(edge.target, edge.kind)
            removed.append(edge)
        for edge in list(self._incoming_edges):
            edge.source.unlink(edge.target, edge.kind)
            removed.append(edge)
        return removed
