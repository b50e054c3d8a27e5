"""Note database: a snapshot-backed Database of NodeRecords.

Owns the snapshot path, loads it lazily (or starts empty when there is no
snapshot yet), applies the standard schema and exposes note lookups by alias,
file and tag. Listeners can subscribe to "loaded" and "saved" events.

Example:
    from notegraph.notes import NoteDatabase

    notes = NoteDatabase("~/notes/.notegraph.msgpack")
    notes.sync_files({"/notes/a.org": records_for_a})
    notes.find_nodes_by_tag("project")
    notes.save_sync()
"""

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

from notegraph.config import Config
from notegraph.db import Database
from notegraph.loader import RecordLoader, SyncReport
from notegraph.log_config import get_logger
from notegraph.models import NodeRecord
from notegraph.schema import Schema

log = get_logger("notes")

Listener = Callable[[Database], None]


class NoteDatabase:
    """Lazily loaded, snapshot-backed database of note nodes."""

    LOADED = "loaded"
    SAVED = "saved"

    def __init__(self, path: Path | str | None = None, config: Config | None = None):
        """Initialize without touching the disk.

        Args:
            path: Snapshot file (default: config.database_path)
            config: Configuration (default: Config() from environment)
        """
        self.config = config or Config()
        self.path = Path(path).expanduser() if path else self.config.database_path
        self._db: Database[NodeRecord] | None = None
        self._loader: RecordLoader | None = None
        self._listeners: dict[str, list[Listener]] = {self.LOADED: [], self.SAVED: []}
        log.trace(f"NoteDatabase initialized: path={self.path}")

    def on(self, event: str, callback: Listener) -> None:
        """Subscribe to "loaded" or "saved"; the callback receives the database."""
        if event not in self._listeners:
            raise ValueError(f"Unknown event {event!r}")
        self._listeners[event].append(callback)

    def _emit(self, event: str, db: Database) -> None:
        for callback in self._listeners[event]:
            callback(db)

    def _adopt(self, db: Database[NodeRecord]) -> Database[NodeRecord]:
        self._db = Schema.update(db)
        self._loader = RecordLoader(db, self.config.count_link_occurrences)
        self._emit(self.LOADED, db)
        return db

    # =========================================================================
    # Loading and saving
    # =========================================================================

    async def load(self, force: bool = False) -> Database[NodeRecord]:
        """Load the snapshot, or start empty when none exists yet.

        Args:
            force: Re-read the snapshot even if already loaded

        Raises:
            SnapshotError: If an existing snapshot cannot be read
        """
        if self._db is not None and not force:
            return self._db

        if self.path.exists():
            db = await Database.load_from_disk(self.path)
        else:
            log.info(f"No snapshot at {self.path}, starting empty")
            db = Database()
        return self._adopt(db)

    def load_sync(self, force: bool = False) -> Database[NodeRecord]:
        """Blocking form of load()."""
        if self._db is not None and not force:
            return self._db

        if self.path.exists():
            db = Database.load_from_disk_sync(self.path)
        else:
            log.info(f"No snapshot at {self.path}, starting empty")
            db = Database()
        return self._adopt(db)

    async def save(self) -> None:
        """Write the database to the snapshot path.

        Raises:
            SnapshotError: If writing fails
        """
        db = await self.load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        await db.write_to_disk(self.path)
        self._emit(self.SAVED, db)

    def save_sync(self) -> None:
        """Blocking form of save()."""
        db = self.load_sync()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        db.write_to_disk_sync(self.path)
        self._emit(self.SAVED, db)

    @property
    def database(self) -> Database[NodeRecord]:
        """The underlying database, loading it synchronously if needed."""
        return self.load_sync()

    @property
    def loader(self) -> RecordLoader:
        self.load_sync()
        return self._loader

    # =========================================================================
    # Files
    # =========================================================================

    def sync_files(self, files: Mapping[str, Iterable[NodeRecord]], force: bool = False) -> SyncReport:
        """Apply a complete set of parsed files (see RecordLoader.sync)."""
        return self.loader.sync(files, force=force)

    def load_file(self, filename: str, records: Iterable[NodeRecord]) -> list[str]:
        """Insert or refresh a single parsed file; returns its node ids."""
        return self.loader.load_file(filename, records)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, node_id: str) -> NodeRecord | None:
        return self.database.get(node_id)

    def _find(self, index: str, key: str) -> list[NodeRecord]:
        db = self.database
        return list(db.get_many(db.find_by_index(index, key)).values())

    def find_nodes_by_alias(self, alias: str) -> list[NodeRecord]:
        """Nodes carrying the given alias."""
        return self._find(Schema.ALIAS, alias)

    def find_nodes_by_file(self, filename: str) -> list[NodeRecord]:
        """Nodes located in the given file."""
        return self._find(Schema.FILE, filename)

    def find_nodes_by_tag(self, tag: str) -> list[NodeRecord]:
        """Nodes carrying the given tag."""
        return self._find(Schema.TAG, tag)
