"""notegraph - node graph database for personal notes.

An in-memory directed graph of note ids with:
- Values keyed by id, with generated UUIDs and explicit overwrite
- Counted links/backlinks, including links to not-yet-known (phantom) ids
- Named secondary indexes with explicit rebuild
- BFS reachability, node iteration and shortest-first path enumeration
- msgpack snapshots with sync and asyncio forms
"""

__version__ = "0.1.0"

from notegraph.config import Config
from notegraph.db import Database
from notegraph.errors import DuplicateIdError, NoteGraphError, SnapshotError, UnknownIndexError
from notegraph.loader import RecordLoader, SyncReport
from notegraph.log_config import configure_logging
from notegraph.models import NodeRecord, Position
from notegraph.notes import NoteDatabase
from notegraph.schema import Schema

__all__ = [
    "Config",
    "Database",
    "DuplicateIdError",
    "NodeRecord",
    "NoteDatabase",
    "NoteGraphError",
    "Position",
    "RecordLoader",
    "Schema",
    "SnapshotError",
    "SyncReport",
    "UnknownIndexError",
    "configure_logging",
]
