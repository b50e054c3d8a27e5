"""Exceptions raised by notegraph.

Absence is never an error: lookups and traversals return None or empty
collections. Only caller mistakes and snapshot I/O failures raise.
"""

from pathlib import Path


class NoteGraphError(Exception):
    """Base class for all notegraph errors."""
    pass


class DuplicateIdError(NoteGraphError):
    """Inserting with an id that already holds a value, without overwrite."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id!r} already exists")
        self.node_id = node_id


class UnknownIndexError(NoteGraphError):
    """Operating on an index name that was never registered."""

    def __init__(self, name: str):
        super().__init__(f"Unknown index: {name!r}")
        self.name = name


class SnapshotError(NoteGraphError):
    """Reading or writing a snapshot failed.

    Covers missing files, permission problems, values that cannot be encoded
    and corrupt or truncated snapshots. The underlying error is chained.
    """

    def __init__(self, message: str, path: Path | str | None = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None
