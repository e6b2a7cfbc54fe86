"""In-process transactional property graph.

``MemoryGraphStore`` keeps every node in a dict keyed by ``(kind, id)``
and serialises transactions with one re-entrant lock. Writes are applied
immediately and recorded in a ``MutationLog``; if the unit of work raises,
the log is replayed backwards so nothing it did survives.

When a snapshot path is configured, each committed write transaction is
written to disk as JSON (see ``reqgraph.graph.serialize``) and the file is
loaded again on start-up.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, TypeVar

from reqgraph.errors import StorageError
from reqgraph.graph import EdgeKind, GraphNode, MutationEntry, MutationLog, NodeKind
from reqgraph.graph.serialize import NodeIndex, deserialize_graph, serialize_graph
from reqgraph.store.base import GraphTransaction, Properties

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MemoryTransaction:
    """Transaction handle over a ``MemoryGraphStore``.

    Implements ``GraphTransaction``. Only valid while the store lock is
    held by the unit of work that received it.
    """

    def __init__(self, index: NodeIndex, writable: bool) -> None:
        self._index = index
        self._writable = writable
        self._log = MutationLog()

    @property
    def mutation_log(self) -> MutationLog:
        """Writes performed so far in this transaction."""
        return self._log

    # ─────────────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────────────

    def get_node(self, kind: NodeKind, node_id: str) -> Properties | None:
        node = self._index.get((kind, node_id))
        return node.get_all_content() if node else None

    def find_nodes(self, kind: NodeKind, **match: Any) -> list[Properties]:
        results: list[Properties] = []
        for (node_kind, _), node in self._index.items():
            if node_kind != kind:
                continue
            if all(node.get_field(key) == value for key, value in match.items()):
                results.append(node.get_all_content())
        return results

    def neighbors(
        self,
        kind: NodeKind,
        node_id: str,
        edge: EdgeKind,
        other_kind: NodeKind,
        *,
        incoming: bool = False,
    ) -> list[Properties]:
        node = self._index.get((kind, node_id))
        if node is None:
            return []
        results: list[Properties] = []
        for e in node.iter_edges_by_kind(edge, incoming=incoming):
            other = e.source if incoming else e.target
            if other.kind == other_kind:
                results.append(other.get_all_content())
        return results

    # ─────────────────────────────────────────────────────────────────────────
    # Writes
    # ─────────────────────────────────────────────────────────────────────────

    def create_node(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        self._require_writable()
        if (kind, node_id) in self._index:
            raise StorageError(f"{kind.label} '{node_id}' already exists")

        node = GraphNode(id=node_id, kind=kind)
        for key, value in properties.items():
            node.set_field(key, value)
        node.set_field("id", node_id)
        self._index[(kind, node_id)] = node

        self._log.append(
            MutationEntry(
                operation="create_node",
                target_id=node_id,
                before_state={"kind": kind.value},
                after_state=node.get_all_content(),
            )
        )
        return node.get_all_content()

    def merge_node(self, kind: NodeKind, node_id: str, on_create: Properties) -> Properties:
        existing = self.get_node(kind, node_id)
        if existing is not None:
            return existing
        return self.create_node(kind, node_id, on_create)

    def set_properties(self, kind: NodeKind, node_id: str, properties: Properties) -> Properties:
        self._require_writable()
        node = self._get(kind, node_id)
        before = {key: node.get_field(key) for key in properties}
        for key, value in properties.items():
            if key == "id":
                raise StorageError("The id property cannot be changed")
            node.set_field(key, value)

        self._log.append(
            MutationEntry(
                operation="set_properties",
                target_id=node_id,
                before_state={"kind": kind.value, "properties": before},
                after_state=dict(properties),
            )
        )
        return node.get_all_content()

    def increment(self, kind: NodeKind, node_id: str, field: str) -> int:
        node = self._get(kind, node_id)
        value = int(node.get_field(field) or 0) + 1
        self.set_properties(kind, node_id, {field: value})
        return value

    def delete_node(self, kind: NodeKind, node_id: str) -> bool:
        self._require_writable()
        node = self._index.get((kind, node_id))
        if node is None:
            return False

        removed = node.detach()
        del self._index[(kind, node_id)]
        self._log.append(
            MutationEntry(
                operation="delete_node",
                target_id=node_id,
                before_state={"kind": kind.value, "node": node, "edges": removed},
                after_state={},
            )
        )
        return True

    def merge_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> None:
        self._require_writable()
        if not edge.allows(source_kind, target_kind):
            raise StorageError(
                f"{edge.rel_type} cannot join {source_kind.label} to {target_kind.label}"
            )
        source = self._get(source_kind, source_id)
        target = self._get(target_kind, target_id)
        if source.link(target, edge) is None:
            return

        self._log.append(
            MutationEntry(
                operation="add_edge",
                target_id=target_id,
                before_state={
                    "source": (source_kind, source_id),
                    "target": (target_kind, target_id),
                    "edge": edge,
                },
                after_state={},
            )
        )

    def delete_edge(
        self,
        source_kind: NodeKind,
        source_id: str,
        edge: EdgeKind,
        target_kind: NodeKind,
        target_id: str,
    ) -> bool:
        self._require_writable()
        source = self._index.get((source_kind, source_id))
        target = self._index.get((target_kind, target_id))
        if source is None or target is None or not source.unlink(target, edge):
            return False

        self._log.append(
            MutationEntry(
                operation="remove_edge",
                target_id=target_id,
                before_state={
                    "source": (source_kind, source_id),
                    "target": (target_kind, target_id),
                    "edge": edge,
                },
                after_state={},
            )
        )
        return True

    # ─────────────────────────────────────────────────────────────────────────
    # Rollback
    # ─────────────────────────────────────────────────────────────────────────

    def rollback(self) -> int:
        """Undo every write of this transaction, newest first.

        Returns:
            Number of mutations reversed.
        """
        undone = 0
        while True:
            entry = self._log.pop()
            if entry is None:
                break
            logger.debug("Undo %s", entry)
            self._apply_undo(entry)
            undone += 1
        return undone

    def _apply_undo(self, entry: MutationEntry) -> None:
        """Restore graph state from entry.before_state."""
        op = entry.operation

        if op == "create_node":
            kind = NodeKind(entry.before_state["kind"])
            node = self._index.pop((kind, entry.target_id), None)
            if node is not None:
                node.detach()
        elif op == "set_properties":
            kind = NodeKind(entry.before_state["kind"])
            node = self._index[(kind, entry.target_id)]
            for key, value in entry.before_state["properties"].items():
                node.set_field(key, value)
        elif op == "delete_node":
            node = entry.before_state["node"]
            self._index[(node.kind, node.id)] = node
            for edge in entry.before_state["edges"]:
                edge.source.link(edge.target, edge.kind)
        elif op == "add_edge":
            source = self._index[entry.before_state["source"]]
            target = self._index[entry.before_state["target"]]
            source.unlink(target, entry.before_state["edge"])
        elif op == "remove_edge":
            source = self._index[entry.before_state["source"]]
            target = self._index[entry.before_state["target"]]
            source.link(target, entry.before_state["edge"])

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _get(self, kind: NodeKind, node_id: str) -> GraphNode:
        node = self._index.get((kind, node_id))
        if node is None:
            raise StorageError(f"{kind.label} '{node_id}' not found")
        return node

    def _require_writable(self) -> None:
        if not self._writable:
            raise StorageError("Write attempted in a read-only transaction")


class MemoryGraphStore:
    """Property graph held in process memory.

    Args:
        snapshot_path: Optional JSON file mirrored after every committed
            write transaction and loaded on construction.
    """

    def __init__(self, snapshot_path: Path | None = None) -> None:
        self._index: NodeIndex = {}
        self._lock = threading.RLock()
        self._snapshot_path = Path(snapshot_path) if snapshot_path else None
        if self._snapshot_path and self._snapshot_path.exists():
            self._load_snapshot(self._snapshot_path)

    def execute_write(self, work: Callable[[GraphTransaction], T]) -> T:
        with self._lock:
            tx = MemoryTransaction(self._index, writable=True)
            try:
                result = work(tx)
            except BaseException:
                undone = tx.rollback()
                logger.debug("Rolled back %d mutation(s)", undone)
                raise

            if len(tx.mutation_log) and self._snapshot_path is not None:
                try:
                    self._write_snapshot(self._snapshot_path)
                except OSError as e:
                    tx.rollback()
                    raise StorageError(f"Cannot write snapshot {self._snapshot_path}: {e}") from e
            tx.mutation_log.clear()
            return result

    def execute_read(self, work: Callable[[GraphTransaction], T]) -> T:
        with self._lock:
            return work(MemoryTransaction(self._index, writable=False))

    def close(self) -> None:
        """Nothing to release; present for interface parity."""

    def node_count(self, kind: NodeKind | None = None) -> int:
        """Return the number of nodes, optionally of one kind."""
        with self._lock:
            if kind is None:
                return len(self._index)
            return sum(1 for node_kind, _ in self._index if node_kind == kind)

    def _load_snapshot(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            self._index = deserialize_graph(data)
        except (OSError, ValueError, KeyError) as e:
            raise StorageError(f"Cannot load snapshot {path}: {e}") from e
        logger.info("Loaded %d node(s) from %s", len(self._index), path)

    def _write_snapshot(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(serialize_graph(self._index), indent=2, sort_keys=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".graph-", suffix=".json", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


__all__ = ["MemoryGraphStore", "MemoryTransaction"]
