"""
reqgraph.store - Transactional graph store backends.

Provides:
- GraphStore, GraphTransaction: the contract the engine is written against
- MemoryGraphStore: in-process graph with optional JSON snapshot
- Neo4jGraphStore: Neo4j database via the official driver
- open_store(): build the backend selected by configuration
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from reqgraph.errors import ValidationError
from reqgraph.store.base import GraphStore, GraphTransaction, Properties
from reqgraph.store.memory import MemoryGraphStore

logger = logging.getLogger(__name__)


def open_store(config: dict[str, Any]) -> GraphStore:
    """Create the graph store named by ``config["store"]["backend"]``.

    Args:
        config: Full configuration dict (see ``reqgraph.config``).

    Returns:
        A ready-to-use store.

    Raises:
        ValidationError: If the backend name is unknown.
        StorageError: If the backend cannot be reached.
    """
    store_config = config.get("store", {})
    backend = str(store_config.get("backend", "memory")).lower()

    if backend == "memory":
        snapshot = store_config.get("snapshot")
        logger.info("Using in-memory graph store (snapshot: %s)", snapshot or "none")
        return MemoryGraphStore(Path(snapshot) if snapshot else None)

    if backend == "neo4j":
        from reqgraph.store.neo4j_store import Neo4jGraphStore

        store = Neo4jGraphStore(
            uri=store_config.get("uri", "neo4j://localhost:7687"),
            user=store_config.get("user", "neo4j"),
            password=store_config.get("password", ""),
            database=store_config.get("database"),
        )
        store.ensure_schema()
        logger.info("Using Neo4j graph store at %s", store_config.get("uri"))
        return store

    raise ValidationError(f"Unknown store backend: {backend!r}")


__all__ = [
    "GraphStore",
    "GraphTransaction",
    "MemoryGraphStore",
    "Properties",
    "open_store",
]
