"""In-memory node graph database.

Database composes the value store (id -> value), the EdgeStore, the
IndexEngine and GraphTraversal behind one API, and reads/writes snapshots.

Example:
    from notegraph.db import Database

    db = Database()
    a = db.insert("one")
    b = db.insert("two")
    db.link(a, b)
    db.get_links(a)          # {b: 1}
    db.write_to_disk_sync("db.msgpack")
"""

import uuid
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any, Generic, TypeVar

from notegraph.db.edges import EdgeStore
from notegraph.db.indexes import IndexEngine, IndexKey, Indexer, KeyPredicate
from notegraph.db.protocol import Direction
from notegraph.db.snapshot import (
    decode_snapshot,
    encode_snapshot,
    read_snapshot_file,
    read_snapshot_file_async,
    write_snapshot_file,
    write_snapshot_file_async,
)
from notegraph.db.traversal import GraphTraversal, NodeFilter
from notegraph.errors import DuplicateIdError, SnapshotError
from notegraph.log_config import get_logger, log_timing

log = get_logger("db.database")

V = TypeVar("V")


def _flatten_ids(ids: Iterable[Any]) -> Iterator[str]:
    """Yield ids from varargs that may mix strings and iterables of strings."""
    for item in ids:
        if isinstance(item, str):
            yield item
        elif isinstance(item, Iterable):
            yield from _flatten_ids(item)
        else:
            raise TypeError(f"Node id must be a string, got {type(item).__name__}")


class Database(Generic[V]):
    """Directed graph of node ids with values, counted edges and indexes.

    All operations are synchronous and in-memory except the snapshot
    coroutines, which only suspend around file I/O. Separate instances share
    no state.
    """

    def __init__(self):
        self._nodes: dict[str, V] = {}
        self._edges = EdgeStore()
        self._indexes: IndexEngine[V] = IndexEngine()
        self._traversal = GraphTraversal(self._edges)
        self._changed_tick = 0

    def __repr__(self) -> str:
        return f"Database(nodes={len(self._nodes)}, edges={len(self._edges)}, indexes={self._indexes.names()})"

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def changed_tick(self) -> int:
        """Number of mutations made to this instance (not persisted)."""
        return self._changed_tick

    def _touch(self) -> None:
        self._changed_tick += 1

    # =========================================================================
    # Values
    # =========================================================================

    def _new_id(self) -> str:
        node_id = str(uuid.uuid4())
        while node_id in self._nodes:
            node_id = str(uuid.uuid4())
        return node_id

    def insert(self, value: V, node_id: str | None = None, overwrite: bool = False) -> str:
        """Store a value, generating an id unless one is given.

        Overwriting replaces only the value; every edge touching the id,
        in either direction, is kept. Indexes are not updated until reindex().

        Args:
            value: Payload to store (must not be None)
            node_id: Explicit id to use
            overwrite: Replace the value if node_id already exists

        Returns:
            The id the value was stored under

        Raises:
            DuplicateIdError: If node_id exists and overwrite is False
        """
        if value is None:
            raise ValueError("Cannot insert None as a node value")
        if node_id is None:
            node_id = self._new_id()
        elif not isinstance(node_id, str) or not node_id:
            raise TypeError(f"Node id must be a non-empty string, got {node_id!r}")
        elif node_id in self._nodes and not overwrite:
            log.warning(f"Refusing to overwrite existing node {node_id}")
            raise DuplicateIdError(node_id)

        self._nodes[node_id] = value
        self._touch()
        log.trace(f"Inserted node {node_id} (overwrite={overwrite})")
        return node_id

    def get(self, node_id: str) -> V | None:
        """Value stored under node_id, or None."""
        return self._nodes.get(node_id)

    def get_many(self, *node_ids: str | Iterable[str]) -> dict[str, V]:
        """Values for the given ids; ids without a value are left out."""
        return {
            node_id: self._nodes[node_id]
            for node_id in _flatten_ids(node_ids)
            if node_id in self._nodes
        }

    def has(self, node_id: str) -> bool:
        return node_id in self._nodes

    def remove(self, node_id: str) -> V | None:
        """Remove a node's value and every edge where it is an endpoint.

        Works for phantom ids too (their edges are pruned). Removing an
        absent id is a no-op.

        Returns:
            The removed value, or None if there was none
        """
        edge_count = self._edges.remove_node(node_id)
        value = self._nodes.pop(node_id, None)
        self._touch()
        log.trace(f"Removed node {node_id} ({edge_count} edges)")
        return value

    def ids(self) -> list[str]:
        """All ids holding a value. Order is unspecified."""
        return list(self._nodes)

    def iter_ids(self) -> Iterator[str]:
        """Lazy form of ids(). Do not mutate the database while iterating."""
        return iter(self._nodes)

    # =========================================================================
    # Edges
    # =========================================================================

    def link(self, from_id: str, *to_ids: str | Iterable[str]) -> None:
        """Declare edges from_id -> each target, adding 1 to each multiplicity.

        Targets need not have a value.
        """
        targets = list(_flatten_ids(to_ids))
        self._edges.link(from_id, targets)
        self._touch()

    def unlink(self, from_id: str, *to_ids: str | Iterable[str]) -> list[str]:
        """Remove edges from_id -> targets regardless of multiplicity.

        With no targets, every outbound edge of from_id is removed.

        Returns:
            Targets whose edge existed and was removed
        """
        targets = list(_flatten_ids(to_ids)) if to_ids else None
        removed = self._edges.unlink(from_id, targets)
        self._touch()
        return removed

    def get_links(self, node_id: str, max_depth: int | None = None) -> dict[str, int]:
        """Nodes reachable over outbound edges, mapped to minimum hop count.

        Args:
            node_id: Starting node (never included)
            max_depth: Maximum hops (None = unbounded, 1 = direct targets)
        """
        return self._traversal.reachable(node_id, Direction.OUTBOUND, max_depth)

    def get_backlinks(self, node_id: str, max_depth: int | None = None) -> dict[str, int]:
        """Nodes reaching node_id over edges, mapped to minimum hop count."""
        return self._traversal.reachable(node_id, Direction.INBOUND, max_depth)

    def get_link_counts(self, node_id: str) -> dict[str, int]:
        """Direct targets of node_id mapped to edge multiplicity."""
        return dict(self._edges.neighbors(node_id, Direction.OUTBOUND))

    def get_backlink_counts(self, node_id: str) -> dict[str, int]:
        """Direct sources pointing at node_id mapped to edge multiplicity."""
        return dict(self._edges.neighbors(node_id, Direction.INBOUND))

    def edge_count(self, from_id: str, to_id: str) -> int:
        """Multiplicity of from_id -> to_id (0 when there is no edge)."""
        return self._edges.count(from_id, to_id)

    def iter_edges(self) -> Iterator[tuple[str, str, int]]:
        """Yield (from_id, to_id, multiplicity) for every edge."""
        return self._edges.iter_edges()

    # =========================================================================
    # Indexes
    # =========================================================================

    def new_index(self, name: str, indexer: Indexer) -> "Database[V]":
        """Register an index; chainable. It stays empty until reindex()."""
        self._indexes.register(name, indexer)
        self._touch()
        return self

    def has_index(self, name: str) -> bool:
        return self._indexes.has_index(name)

    def reindex(self, indexes: Iterable[str] | None = None) -> "Database[V]":
        """Rebuild indexes from the current values; chainable.

        Args:
            indexes: Names to rebuild; None rebuilds every registered index

        Raises:
            UnknownIndexError: If a name is not registered
        """
        with log_timing(f"Reindex of {len(self._nodes)} nodes", log):
            self._indexes.rebuild(self._nodes.items(), indexes)
        self._touch()
        return self

    def find_by_index(self, name: str, key: IndexKey | KeyPredicate) -> list[str]:
        """Ids indexed under key, or under any key for which key(k) is true.

        Raises:
            UnknownIndexError: If the index is not registered
        """
        return self._indexes.find(name, key)

    def iter_index_keys(self, name: str) -> Iterator[IndexKey]:
        """Keys currently present in an index.

        Raises:
            UnknownIndexError: If the index is not registered
        """
        return self._indexes.iter_keys(name)

    # =========================================================================
    # Traversal
    # =========================================================================

    def iter_nodes(
        self,
        start_node_id: str,
        max_distance: int | None = None,
        max_depth: int | None = None,
        max_nodes: int | None = None,
        filter: NodeFilter | None = None,
    ) -> Iterator[tuple[str, int]]:
        """Breadth-first (id, distance) pairs over outbound edges.

        max_depth is an alias of max_distance. The start node is yielded at
        distance 0 and counts towards max_nodes. filter(id, distance)
        returning False hides the node and stops expansion through it.
        """
        if max_depth is not None and max_distance is not None and max_depth != max_distance:
            raise ValueError("max_depth and max_distance disagree")
        distance = max_distance if max_distance is not None else max_depth
        return self._traversal.iter_nodes(start_node_id, distance, max_nodes, filter)

    def iter_paths(
        self,
        start_node_id: str,
        end_node_id: str,
        max_distance: int | None = None,
    ) -> Iterator[list[str]]:
        """Simple outbound paths between two nodes, shortest first."""
        return self._traversal.iter_paths(start_node_id, end_node_id, max_distance)

    def find_path(
        self,
        start_node_id: str,
        end_node_id: str,
        max_distance: int | None = None,
    ) -> list[str] | None:
        """Shortest outbound path between two nodes, or None."""
        return self._traversal.find_path(start_node_id, end_node_id, max_distance)

    # =========================================================================
    # Persistence
    # =========================================================================

    def _encode(self) -> bytes:
        with log_timing("Snapshot encode", log):
            return encode_snapshot(self._nodes, self._edges.iter_edges())

    @classmethod
    def _from_bytes(cls, data: bytes, path: Path | str) -> "Database":
        try:
            with log_timing("Snapshot decode", log):
                snapshot = decode_snapshot(data)
                edges = EdgeStore.from_edges(snapshot.edges)
        except (SnapshotError, ValueError) as e:
            raise SnapshotError(str(e), path) from e

        db = cls()
        db._nodes = snapshot.nodes
        db._edges = edges
        db._traversal = GraphTraversal(edges)
        log.info(f"Loaded database from {path}: {len(db._nodes)} nodes, {len(edges)} edges")
        return db

    def write_to_disk_sync(self, path: Path | str) -> None:
        """Write values and edges to path, replacing any existing file.

        Raises:
            SnapshotError: If encoding or writing fails
        """
        data = self._encode()
        write_snapshot_file(path, data)
        log.info(f"Saved database to {path}: {len(self._nodes)} nodes, {len(self._edges)} edges")

    async def write_to_disk(self, path: Path | str) -> None:
        """Async write_to_disk_sync.

        The state is serialized before the first suspension point, so the
        file holds the database as it was when the coroutine started running;
        mutations made while the write is pending are not included.

        Raises:
            SnapshotError: If encoding or writing fails
        """
        data = self._encode()
        await write_snapshot_file_async(path, data)
        log.info(f"Saved database to {path}")

    @classmethod
    def load_from_disk_sync(cls, path: Path | str) -> "Database":
        """Build a fresh database from a snapshot file.

        Indexes are not restored; register them and call reindex().

        Raises:
            SnapshotError: If the file is missing, unreadable or corrupt
        """
        return cls._from_bytes(read_snapshot_file(path), path)

    @classmethod
    async def load_from_disk(cls, path: Path | str) -> "Database":
        """Async load_from_disk_sync; the file read runs in a worker thread."""
        data = await read_snapshot_file_async(path)
        return cls._from_bytes(data, path)
