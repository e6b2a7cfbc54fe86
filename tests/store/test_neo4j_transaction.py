"""Tests for the Cypher issued by the Neo4j transaction adapter.

No database is needed: a fake managed transaction records each query and
returns canned records.
"""

import pytest


class FakeResult:
    def __init__(self, records):
        self._records = records

    def single(self):
        return self._records[0] if self._records else None

    def __iter__(self):
        return iter(self._records)


class FakeTx:
    """Records ``run`` calls; answers with queued record lists."""

    def __init__(self, *responses):
        self.calls = []
        self._responses = list(responses)

    def run(self, query, **params):
        self.calls.append((query, params))
        return FakeResult(self._responses.pop(0) if self._responses else [])


class TestNeo4jTransaction:
    """Query construction per primitive."""

    def test_get_node(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"n": {"id": "acme:apollo:srd", "slug": "srd"}}])
        node = Neo4jTransaction(fake).get_node(NodeKind.DOCUMENT, "acme:apollo:srd")

        assert node == {"id": "acme:apollo:srd", "slug": "srd"}
        query, params = fake.calls[0]
        assert query == "MATCH (n:Document {id: $id}) RETURN n"
        assert params == {"id": "acme:apollo:srd"}

    def test_get_missing_node(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        assert Neo4jTransaction(FakeTx([])).get_node(NodeKind.SECTION, "x") is None

    def test_increment_is_one_statement(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"value": 3}])
        value = Neo4jTransaction(fake).increment(
            NodeKind.DOCUMENT, "acme:apollo:srd", "requirementCounter"
        )
        assert value == 3
        query, _ = fake.calls[0]
        assert "SET n.requirementCounter = coalesce(n.requirementCounter, 0) + 1" in query

    def test_increment_missing_node(self):
        from reqgraph.errors import StorageError
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        with pytest.raises(StorageError):
            Neo4jTransaction(FakeTx([])).increment(NodeKind.PROJECT, "x", "requirementCounter")

    def test_find_nodes_with_null_match(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"n": {"id": "a"}}, {"n": {"id": "b"}}])
        nodes = Neo4jTransaction(fake).find_nodes(
            NodeKind.REQUIREMENT, tenant="acme", sectionId=None
        )
        assert [n["id"] for n in nodes] == ["a", "b"]
        query, params = fake.calls[0]
        assert query == (
            "MATCH (n:Requirement) WHERE n.tenant = $p0 AND n.sectionId IS NULL RETURN n"
        )
        assert params == {"p0": "acme"}

    def test_invalid_property_name(self):
        from reqgraph.errors import StorageError
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        with pytest.raises(StorageError):
            Neo4jTransaction(FakeTx()).find_nodes(NodeKind.REQUIREMENT, **{"ref} DETACH": 1})

    def test_create_drops_none_values(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"n": {"id": "t", "slug": "t"}}])
        Neo4jTransaction(fake).create_node(NodeKind.TENANT, "t", {"slug": "t", "name": None})
        _, params = fake.calls[0]
        assert params["props"] == {"slug": "t", "id": "t"}

    def test_merge_edge_direction(self):
        from reqgraph.graph import EdgeKind, NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"linked": 1}])
        Neo4jTransaction(fake).merge_edge(
            NodeKind.DOCUMENT, "d", EdgeKind.HAS_SECTION, NodeKind.SECTION, "s"
        )
        query, params = fake.calls[0]
        assert "MERGE (a)-[:HAS_SECTION]->(b)" in query
        assert params == {"source": "d", "target": "s"}

    def test_merge_edge_missing_endpoint(self):
        from reqgraph.errors import StorageError
        from reqgraph.graph import EdgeKind, NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        with pytest.raises(StorageError):
            Neo4jTransaction(FakeTx([{"linked": 0}])).merge_edge(
                NodeKind.DOCUMENT, "d", EdgeKind.CONTAINS, NodeKind.REQUIREMENT, "r"
            )

    def test_incoming_neighbors(self):
        from reqgraph.graph import EdgeKind, NodeKind
        from reqgraph.store.neo4j_store import Neo4jTransaction

        fake = FakeTx([{"n": {"id": "s"}}])
        Neo4jTransaction(fake).neighbors(
            NodeKind.REQUIREMENT, "r", EdgeKind.HAS_REQUIREMENT, NodeKind.SECTION, incoming=True
        )
        query, _ = fake.calls[0]
        assert "(a:Requirement {id: $id})<-[:HAS_REQUIREMENT]-(n:DocumentSection)" in query

    def test_schema_covers_every_label(self):
        from reqgraph.graph import NodeKind
        from reqgraph.store.neo4j_store import SCHEMA_STATEMENTS

        assert len(SCHEMA_STATEMENTS) == len(NodeKind)
        assert any("FOR (n:DocumentSection) REQUIRE n.id IS UNIQUE" in s for s in SCHEMA_STATEMENTS)
