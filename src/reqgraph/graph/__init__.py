"""
reqgraph.graph - Property graph data model.

Provides the node and edge types shared by every store backend:
- NodeKind: Node labels (Tenant, Project, Document, DocumentSection, Requirement)
- GraphNode: Labelled node with properties and typed edges
- EdgeKind, Edge: Ownership relationships
- MutationEntry, MutationLog: Undo records used for transaction rollback
"""

from reqgraph.graph.GraphNode import GraphNode, NodeKind
from reqgraph.graph.mutations import MutationEntry, MutationLog
from reqgraph.graph.relations import Edge, EdgeKind

__all__ = [
    "Edge",
    "EdgeKind",
    "GraphNode",
    "MutationEntry",
    "MutationLog",
    "NodeKind",
]
