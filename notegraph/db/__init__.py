"""Node graph database for notegraph.

This package provides Database, an in-memory directed graph of node ids with
values, counted bidirectional edges, rebuildable secondary indexes, traversal
and msgpack snapshots.

Module Structure:
- database.py: Database facade composing the parts below
- edges.py: EdgeStore with outbound/inbound views and multiplicities
- indexes.py: IndexEngine (named indexers, explicit rebuild)
- traversal.py: GraphTraversal (BFS reachability, path enumeration)
- snapshot.py: msgpack snapshot codec and atomic file I/O
- protocol.py: EdgeSource protocol and Direction enum

Example:
    from notegraph.db import Database

    db = Database().new_index("first_letter", lambda value: value[:1])
    one = db.insert("one")
    two = db.insert("two")
    db.link(one, two)
    db.reindex()
    db.find_by_index("first_letter", "t")  # [two]
"""

from notegraph.db.database import Database
from notegraph.db.edges import EdgeStore
from notegraph.db.indexes import IndexEngine
from notegraph.db.protocol import Direction, EdgeSource
from notegraph.db.snapshot import register_model
from notegraph.db.traversal import GraphTraversal

__all__ = [
    "Database",
    "Direction",
    "EdgeSource",
    "EdgeStore",
    "GraphTraversal",
    "IndexEngine",
    "register_model",
]
