"""Neo4j backend for the graph store.

Each ``execute_write``/``execute_read`` call opens a session and runs the
unit of work as a managed transaction, so the driver commits on return,
rolls back on error and retries transient failures. Write locks come from
the database: incrementing a counter locks the node it lives on until the
transaction ends.

Labels and relationship types are taken from ``NodeKind``/``EdgeKind``;
property names are checked against an identifier pattern before they are
placed in a query.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, TypeVar

from neo4j import GraphDatabase
from neo4j.exceptions import ConstraintError, DriverError, Neo4jError

from reqgraph.errors import StorageError
from reqgraph.graph import EdgeKind, NodeKind
from reqgraph.store.base import GraphTransaction, Properties

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PROPERTY_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCHEMA_STATEMENTS = [
    f"CREATE CONSTRAINT {kind.name.lower()}_id_unique IF NOT EXISTS "
    f"FOR (n:{kind.label}) REQUIRE n.id IS UNIQUE"
    for kind in NodeKind
]


def _check_property(name: str) -> str:
    if not _PROPERTY_NAME.match(name):
        raise StorageError(f"Invalid property name: {name!r}")
    return name


class Neo4jTransaction:
    """``GraphTransaction`` over a neo4j managed transaction."""

    def __init__(self, tx: Any) -> None:
        self._tx = tx

    def _single(self, query: str, **params: Any) -> Properties | None:
        record = self._tx.run(query, **params).single()
        if record is None or record["n"] is None:
            return None
        return dict(record["n"])

    def get_node(self, kind: NodeKind, node_id: str) -> Properties | None:
        return self._single(f"MATCH (n:{kind.label} {{id: $id}}) RETURN n", id=node_id)

    def find_nodes(self, kind: NodeKind, **match: Any) -> list[Properties]:
        clauses = []
        params: dict[str, Any] = {}
        for i, (key, value) in enumerate(match.items()):
            _check_property(key)
            if value is None:
                clauses.append(f"n.{key} IS NULL")
            else:
                clauses.append(f"n.{key} = $p{i}")
                params[f"p{i}"] = value
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        result = self._tx.run(f"MATCH (n:{kind.label}){where} RETURN n", **params)
        return [dict(record["n"]) for record in result]

    def create_node(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        props = {_check_property(k): v for k, v in properties.items() if v is not None}
        props["id"] = node_id
        try:
            node = self._single(f"CREATE (n:{kind.label}) SET n = $props RETURN n", props=props)
        except ConstraintError as e:
            raise StorageError(f"{kind.label} '{node_id}' already exists") from e
        assert node is not None
        return node

    def merge_node(self, kind: NodeKind, node_id: str, on_create: Properties) -> Properties:
        props = {_check_property(k): v for k, v in on_create.items() if v is not None}
        node = self._single(
            f"MERGE (n:{kind.label} {{id: $id}}) ON CREATE SET n += $props RETURN n",
            id=node_id,
            props=props,
        )
        assert node is not None
        return node

    def set_properties(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        for key in properties:
            if _check_property(key) == "id":
                raise StorageError("The id property cannot be changed")
        node = self._single(
            f"MATCH (n:{kind.label} {{id: $id}}) SET n += $props RETURN n",
            id=node_id,
            props=dict(properties),
        )
        if node is None:
            raise StorageError(f"{kind.label} '{node_id}' not found")
        return node

    def increment(self, kind: NodeKind, node_id: str, field: str) -> int:
        _check_property(field)
        record = self._tx.run(
            f"MATCH (n:{kind.label} {{id: $id}}) "
            f"SET n.{field} = coalesce(n.{field}, 0) + 1 "
            f"RETURN n.{field} AS value",
            id=node_id,
        ).single()
        if record is None:
            raise StorageError(f"{kind.label} '{node_id}' not found")
        return int(record["value"])

    def delete_node(self, kind: NodeKind, node_id: str) -> bool:
        record = self._tx.run(
            f"MATCH (n:{kind.label} {{id: $id}}) DETACH DELETE n RETURN count(*) AS deleted",
            id=node_id,
        ).single()
        return bool(record and record["deleted"])

    def merge_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> None:
        if not edge.allows(source_kind, target_kind):
            raise StorageError(
                f"{edge.rel_type} cannot join {source_kind.label} to {target_kind.label}"
            )
        record = self._tx.run(
            f"MATCH (a:{source_kind.label} {{id: $source}}), (b:{target_kind.label} {{id: $target}}) "
            f"MERGE (a)-[:{edge.rel_type}]->(b) RETURN count(*) AS linked",
            source=source_id,
            target=target_id,
        ).single()
        if not record or not record["linked"]:
            raise StorageError(f"Cannot link '{source_id}' to '{target_id}': node not found")

    def delete_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> bool:
        record = self._tx.run(
            f"MATCH (a:{source_kind.label} {{id: $source}})-[r:{edge.rel_type}]->"
            f"(b:{target_kind.label} {{id: $target}}) DELETE r RETURN count(r) AS removed",
            source=source_id,
            target=target_id,
        ).single()
        return bool(record and record["removed"])

    def neighbors(
        self,
        kind: NodeKind,
        node_id: str,
        edge: EdgeKind,
        other_kind: NodeKind,
        *,
        incoming: bool = False,
    ) -> list[Properties]:
        arrow = f"<-[:{edge.rel_type}]-" if incoming else f"-[:{edge.rel_type}]->"
        result = self._tx.run(
            f"MATCH (a:{kind.label} {{id: $id}}){arrow}(n:{other_kind.label}) RETURN n",
            id=node_id,
        )
        return [dict(record["n"]) for record in result]


class Neo4jGraphStore:
    """Graph store backed by a Neo4j database.

    Args:
        uri: Bolt or neo4j URI, e.g. ``neo4j://localhost:7687``.
        user: Database user.
        password: Database password.
        database: Database name; None uses the server default.
    """

    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        database: str | None = None,
    ) -> None:
        try:
            self._driver = GraphDatabase.driver(uri, auth=(user, password))
        except (DriverError, Neo4jError, ValueError) as e:
            raise StorageError(f"Cannot connect to {uri}: {e}") from e
        self._database = database or None

    def ensure_schema(self) -> None:
        """Create id uniqueness constraints for every node label."""
        try:
            with self._driver.session(database=self._database) as session:
                for statement in SCHEMA_STATEMENTS:
                    session.run(statement).consume()
        except (DriverError, Neo4jError) as e:
            raise StorageError(f"Cannot initialise schema: {e}") from e
        logger.info("Neo4j schema constraints ensured")

    def execute_write(self, work: Callable[[GraphTransaction], T]) -> T:
        try:
            with self._driver.session(database=self._database) as session:
                return session.execute_write(lambda tx: work(Neo4jTransaction(tx)))
        except (DriverError, Neo4jError) as e:
            raise StorageError(str(e)) from e

    def execute_read(self, work: Callable[[GraphTransaction], T]) -> T:
        try:
            with self._driver.session(database=self._database) as session:
                return session.execute_read(lambda tx: work(Neo4jTransaction(tx)))
        except (DriverError, Neo4jError) as e:
            raise StorageError(str(e)) from e

    def close(self) -> None:
        self._driver.close()


__all__ = ["Neo4jGraphStore", "Neo4jTransaction", "SCHEMA_STATEMENTS"]
