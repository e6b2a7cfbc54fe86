"""Graph Serialization - Snapshot the in-process graph to JSON and back.

The snapshot format is a flat node list plus an edge list, keyed by
``(kind, id)``:

    {
        "version": 1,
        "nodes": [{"kind": "Document", "id": "...", "properties": {...}}],
        "edges": [{"kind": "CONTAINS", "source": ["Document", "..."],
                   "target": ["Requirement", "..."]}]
    }
"""

from __future__ import annotations

from typing import Any

from reqgraph.graph.GraphNode import GraphNode, NodeKind
from reqgraph.graph.relations import EdgeKind

SNAPSHOT_VERSION = 1

NodeIndex = dict[tuple[NodeKind, str], GraphNode]


def serialize_node(node: GraphNode) -> dict[str, Any]:
    """Serialize a GraphNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.

    Returns:
        Dict suitable for JSON serialization.
    """
    return {
        "kind": node.kind.value,
        "id": node.id,
        "properties": node.get_all_content(),
    }


def serialize_graph(index: NodeIndex) -> dict[str, Any]:
    """Serialize every node and edge of a node index.

    Args:
        index: Mapping of ``(kind, id)`` to node.

    Returns:
        Snapshot dict suitable for ``json.dump``.
    """
    nodes = [serialize_node(node) for node in index.values()]
    edges = [
        {
            "kind": edge.kind.value,
            "source": [edge.source.kind.value, edge.source.id],
            "target": [edge.target.kind.value, edge.target.id],
        }
        for node in index.values()
        for edge in node.iter_outgoing_edges()
    ]
    return {"version": SNAPSHOT_VERSION, "nodes": nodes, "edges": edges}


def deserialize_graph(data: dict[str, Any]) -> NodeIndex:
    """Rebuild a node index from a snapshot dict.

    Args:
        data: Snapshot produced by ``serialize_graph``.

    Returns:
        Mapping of ``(kind, id)`` to node, with edges restored.

    Raises:
        ValueError: If the snapshot version is unknown or an edge refers
            to a node that is not in the snapshot.
    """
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"Unsupported snapshot version: {version!r}")

    index: NodeIndex = {}
    for item in data.get("nodes", []):
        kind = NodeKind(item["kind"])
        node = GraphNode(id=item["id"], kind=kind)
        for key, value in item.get("properties", {}).items():
            node.set_field(key, value)
        index[(kind, node.id)] = node

    for item in data.get("edges", []):
        source_key = (NodeKind(item["source"][0]), item["source"][1])
        target_key = (NodeKind(item["target"][0]), item["target"][1])
        if source_key not in index or target_key not in index:
            raise ValueError(f"Snapshot edge refers to a missing node: {item}")
        index[source_key].link(index[target_key], EdgeKind(item["kind"]))

    return index


__all__ = ["SNAPSHOT_VERSION", "deserialize_graph", "serialize_graph", "serialize_node"]
