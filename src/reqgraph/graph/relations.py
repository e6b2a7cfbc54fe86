"""Relations - Edge types and ownership semantics.

This module defines the typed edges between graph nodes:
- EdgeKind: Enum of relationship types with their allowed endpoints
- Edge: A typed edge between two nodes

Ownership is structural: every edge kind below is directed from owner to
owned, so the graph is acyclic by construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from reqgraph.graph.GraphNode import NodeKind

if TYPE_CHECKING:
    from reqgraph.graph.GraphNode import GraphNode


class EdgeKind(Enum):
    """Types of edges in the requirements graph.

    - OWNS: Tenant owns a project
    - HAS_DOCUMENT: Project holds a document
    - HAS_SECTION: Document is split into sections
    - CONTAINS: Project or document contains a requirement
    - HAS_REQUIREMENT: Section groups a requirement
    """

    OWNS = "OWNS"
    HAS_DOCUMENT = "HAS_DOCUMENT"
    HAS_SECTION = "HAS_SECTION"
    CONTAINS = "CONTAINS"
    HAS_REQUIREMENT = "HAS_REQUIREMENT"

    @property
    def rel_type(self) -> str:
        """Return the relationship type used by graph databases."""
        return self.value

    def allows(self, source: NodeKind, target: NodeKind) -> bool:
        """Check whether an edge of this kind may join source to target."""
        return (source, target) in _ENDPOINTS[self]


_ENDPOINTS: dict[EdgeKind, frozenset[tuple[NodeKind, NodeKind]]] = {
    EdgeKind.OWNS: frozenset({(NodeKind.TENANT, NodeKind.PROJECT)}),
    EdgeKind.HAS_DOCUMENT: frozenset({(NodeKind.PROJECT, NodeKind.DOCUMENT)}),
    EdgeKind.HAS_SECTION: frozenset({(NodeKind.DOCUMENT, NodeKind.SECTION)}),
    EdgeKind.CONTAINS: frozenset(
        {
            (NodeKind.PROJECT, NodeKind.REQUIREMENT),
            (NodeKind.DOCUMENT, NodeKind.REQUIREMENT),
        }
    ),
    EdgeKind.HAS_REQUIREMENT: frozenset({(NodeKind.SECTION, NodeKind.REQUIREMENT)}),
}


@dataclass
class Edge:
    """A typed edge between two graph nodes.

    Attributes:
        source: The owning node.
        target: The owned node.
        kind: The type of relationship.
    """

    source: GraphNode
    target: GraphNode
    kind: EdgeKind

    def __eq__(self, other: object) -> bool:
        """Check equality based on endpoints and kind."""
        if not isinstance(other, Edge):
            return NotImplemented
        return (
            self.source.kind == other.source.kind
            and self.source.id == other.source.id
            and self.target.kind == other.target.kind
            and self.target.id == other.target.id
            and self.kind == other.kind
        )

    def __hash__(self) -> int:
        """Hash based on endpoints and kind."""
        return hash(
            (self.source.kind, self.source.id, self.target.kind, self.target.id, self.kind.value)
        )

    def __str__(self) -> str:
        """Human-readable representation."""
        return (
            f"({self.source.kind.label} {self.source.id})-[{self.kind.rel_type}]->"
            f"({self.target.kind.label} {self.target.id})"
        )
