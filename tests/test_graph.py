"""Tests for the property graph model and its snapshot format."""

import pytest


def _node(kind_name, node_id, **props):
    from reqgraph.graph import GraphNode, NodeKind

    node = GraphNode(id=node_id, kind=NodeKind[kind_name])
    for key, value in props.items():
        node.set_field(key, value)
    return node


class TestGraphNode:
    """Properties and edges."""

    def test_none_removes_field(self):
        node = _node("DOCUMENT", "acme:apollo:srd", shortCode="SRD")
        node.set_field("shortCode", None)
        assert node.get_field("shortCode") is None
        assert "shortCode" not in node.get_all_content()

    def test_link_is_idempotent(self):
        from reqgraph.graph import EdgeKind

        doc = _node("DOCUMENT", "d")
        section = _node("SECTION", "s")
        assert doc.link(section, EdgeKind.HAS_SECTION) is not None
        assert doc.link(section, EdgeKind.HAS_SECTION) is None
        assert len(list(doc.iter_outgoing_edges())) == 1
        assert len(list(section.iter_incoming_edges())) == 1

    def test_unlink(self):
        from reqgraph.graph import EdgeKind

        doc = _node("DOCUMENT", "d")
        req = _node("REQUIREMENT", "r")
        doc.link(req, EdgeKind.CONTAINS)
        assert doc.unlink(req, EdgeKind.CONTAINS) is True
        assert doc.unlink(req, EdgeKind.CONTAINS) is False
        assert list(req.iter_incoming_edges()) == []

    def test_detach_returns_removed_edges(self):
        from reqgraph.graph import EdgeKind

        project = _node("PROJECT", "p")
        doc = _node("DOCUMENT", "d")
        req = _node("REQUIREMENT", "r")
        project.link(doc, EdgeKind.HAS_DOCUMENT)
        doc.link(req, EdgeKind.CONTAINS)

        removed = doc.detach()
        assert {e.kind for e in removed} == {EdgeKind.HAS_DOCUMENT, EdgeKind.CONTAINS}
        assert list(project.iter_outgoing_edges()) == []
        assert list(req.iter_incoming_edges()) == []

    def test_content_copy_is_detached(self):
        node = _node("REQUIREMENT", "r", tags=["a"])
        node.get_all_content()["tags"].append("b")
        assert node.get_field("tags") == ["a"]


class TestEdgeKind:
    """Allowed endpoints."""

    def test_allows(self):
        from reqgraph.graph import EdgeKind, NodeKind

        assert EdgeKind.CONTAINS.allows(NodeKind.PROJECT, NodeKind.REQUIREMENT)
        assert EdgeKind.CONTAINS.allows(NodeKind.DOCUMENT, NodeKind.REQUIREMENT)
        assert not EdgeKind.CONTAINS.allows(NodeKind.SECTION, NodeKind.REQUIREMENT)
        assert EdgeKind.HAS_REQUIREMENT.allows(NodeKind.SECTION, NodeKind.REQUIREMENT)

    def test_labels(self):
        from reqgraph.graph import EdgeKind, NodeKind

        assert NodeKind.SECTION.label == "DocumentSection"
        assert EdgeKind.OWNS.rel_type == "OWNS"

    def test_edge_str(self):
        from reqgraph.graph import EdgeKind

        doc = _node("DOCUMENT", "d")
        section = _node("SECTION", "s")
        edge = doc.link(section, EdgeKind.HAS_SECTION)
        assert str(edge) == "(Document d)-[HAS_SECTION]->(DocumentSection s)"


class TestMutationLog:
    """Undo log bookkeeping."""

    def test_append_and_pop(self):
        from reqgraph.graph import MutationEntry, MutationLog

        log = MutationLog()
        assert log.pop() is None
        log.append(MutationEntry("create_node", "a", {}, {"id": "a"}))
        log.append(MutationEntry("set_properties", "a", {"x": None}, {"x": 1}))
        assert len(log) == 2
        assert log.pop().operation == "set_properties"
        assert len(log) == 1
        log.clear()
        assert log.pop() is None

    def test_entry_str(self):
        from reqgraph.graph import MutationEntry

        entry = MutationEntry("create_node", "acme:apollo:srd", {"kind": "DOCUMENT"}, {})
        assert str(entry) == "create_node(acme:apollo:srd)"


class TestSnapshot:
    """serialize_graph / deserialize_graph."""

    def test_restores_nodes_and_edges(self):
        from reqgraph.graph import EdgeKind, NodeKind
        from reqgraph.graph.serialize import deserialize_graph, serialize_graph

        doc = _node("DOCUMENT", "acme:apollo:srd", shortCode="SRD", requirementCounter=2)
        req = _node("REQUIREMENT", "acme:apollo:SRD-001", ref="SRD-001", tags=["x"])
        doc.link(req, EdgeKind.CONTAINS)
        index = {(n.kind, n.id): n for n in (doc, req)}

        data = serialize_graph(index)
        assert data["edges"] == [
            {
                "kind": "CONTAINS",
                "source": ["Document", "acme:apollo:srd"],
                "target": ["Requirement", "acme:apollo:SRD-001"],
            }
        ]

        restored = deserialize_graph(data)
        restored_doc = restored[(NodeKind.DOCUMENT, "acme:apollo:srd")]
        assert restored_doc.get_field("requirementCounter") == 2
        targets = [e.target.id for e in restored_doc.iter_edges_by_kind(EdgeKind.CONTAINS)]
        assert targets == ["acme:apollo:SRD-001"]

    def test_unknown_version(self):
        from reqgraph.graph.serialize import deserialize_graph

        with pytest.raises(ValueError, match="version"):
            deserialize_graph({"version": 99, "nodes": [], "edges": []})

    def test_dangling_edge(self):
        from reqgraph.graph.serialize import deserialize_graph

        data = {
            "version": 1,
            "nodes": [{"kind": "Document", "id": "d", "properties": {}}],
            "edges": [{"kind": "CONTAINS", "source": ["Document", "d"], "target": ["Requirement", "r"]}],
        }
        with pytest.raises(ValueError, match="missing node"):
            deserialize_graph(data)
