"""Record loader: keeps a Database of NodeRecords in step with parsed files.

The parser that turns files into NodeRecords lives outside this package. The
loader takes its output, grouped by file, and applies the difference against
what the database already indexes:

- files no longer present have their nodes removed
- new files have their nodes inserted and linked
- known files are refreshed when they are newer than the stored records

Removing a node prunes the edges pointing at it. When the same node comes
back within one operation (for example it moved to another file), the
severed backlinks its sources still declare are restored.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from notegraph.db import Database
from notegraph.log_config import get_logger
from notegraph.models import NodeRecord
from notegraph.schema import Schema

log = get_logger("loader")


@dataclass
class SyncReport:
    """Filenames touched by a sync, by outcome."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed or self.modified)


class RecordLoader:
    """Applies parsed node records to a database.

    Edges are declared once per link position when count_link_occurrences is
    True, otherwise once per distinct target. Keep the setting fixed for a
    given database; multiplicity is observable.
    """

    def __init__(self, db: Database[NodeRecord], count_link_occurrences: bool = True):
        """Initialize the loader.

        Args:
            db: Database to maintain; the standard schema indexes are added
            count_link_occurrences: Multiplicity mode for ingested links
        """
        self.db = Schema.update(db)
        self.count_link_occurrences = count_link_occurrences
        # target id -> ids of sources whose edge to it was cut by a removal
        self._severed: dict[str, set[str]] = {}

    # =========================================================================
    # Single records
    # =========================================================================

    def ingest(self, record: NodeRecord) -> str:
        """Insert or overwrite a record and declare its outbound links.

        Any outbound edges the node already had are replaced, so ingesting
        the same record twice leaves the graph unchanged. Backlinks are kept.

        Returns:
            The record's id
        """
        if self.db.has(record.id):
            self.db.unlink(record.id)
        self.db.insert(record, node_id=record.id, overwrite=True)

        targets = record.link_targets(self.count_link_occurrences)
        if targets:
            self.db.link(record.id, targets)
        log.trace(f"Ingested {record.id} from {record.file} ({len(targets)} links)")
        return record.id

    def file_node_ids(self, filename: str) -> list[str]:
        """Ids the FILE index holds for filename that still live in that file.

        Filters out entries made stale by removals or moves since the last
        reindex.
        """
        ids = []
        for node_id in self.db.find_by_index(Schema.FILE, filename):
            record = self.db.get(node_id)
            if record is not None and record.file == filename:
                ids.append(node_id)
        return ids

    # =========================================================================
    # Unindexed building blocks (callers reindex)
    # =========================================================================

    def _remove_node(self, node_id: str) -> None:
        sources = self.db.get_backlink_counts(node_id)
        sources.pop(node_id, None)
        if sources:
            self._severed.setdefault(node_id, set()).update(sources)
        self.db.remove(node_id)

    def _insert_file(self, records: Iterable[NodeRecord]) -> list[str]:
        return [self.ingest(record) for record in records]

    def _remove_file(self, filename: str) -> list[str]:
        ids = self.file_node_ids(filename)
        for node_id in ids:
            self._remove_node(node_id)
        return ids

    def _modify_file(self, filename: str, records: list[NodeRecord], force: bool) -> bool:
        ids = self.file_node_ids(filename)
        if not ids:
            self._insert_file(records)
            return True

        # A file that lost all of its nodes carries no mtime; always apply it
        if records and not force:
            stored_mtime = max(self.db.get(node_id).mtime for node_id in ids)
            if max(record.mtime for record in records) <= stored_mtime:
                return False

        keep = {record.id for record in records}
        for node_id in ids:
            if node_id not in keep:
                self._remove_node(node_id)

        self._insert_file(records)
        return True

    def _repair_severed(self) -> int:
        """Restore cut backlinks that the source's current record still declares.

        Multiplicity comes from the source record as it is now, not from the
        edge that was cut.
        """
        restored = 0
        for target_id, sources in self._severed.items():
            if not self.db.has(target_id):
                continue
            for source_id in sources:
                record = self.db.get(source_id)
                if record is None or target_id not in record.linked:
                    continue
                if self.db.edge_count(source_id, target_id) == 0:
                    targets = record.link_targets(self.count_link_occurrences)
                    self.db.link(source_id, [t for t in targets if t == target_id])
                    restored += 1
        self._severed.clear()
        if restored:
            log.debug(f"Restored {restored} severed links")
        return restored

    def _finish(self) -> None:
        self._repair_severed()
        self.db.reindex()

    # =========================================================================
    # Files
    # =========================================================================

    def insert_file(self, records: Iterable[NodeRecord]) -> list[str]:
        """Ingest every record of a new file.

        Returns:
            Ids of the ingested nodes
        """
        ids = self._insert_file(records)
        self._finish()
        return ids

    def remove_file(self, filename: str) -> list[str]:
        """Remove every node indexed under filename.

        Returns:
            Ids of the removed nodes
        """
        ids = self._remove_file(filename)
        self._finish()
        log.debug(f"Removed {len(ids)} nodes of {filename}")
        return ids

    def modify_file(self, filename: str, records: Iterable[NodeRecord], force: bool = False) -> bool:
        """Refresh a known file's nodes if it changed.

        The file counts as changed when any incoming record has a newer mtime
        than every stored one, when it no longer has any records, or when
        force is set. Nodes that disappeared from the file are removed; the
        rest are re-ingested.

        Returns:
            True if the database was updated
        """
        updated = self._modify_file(filename, list(records), force)
        if updated:
            self._finish()
        return updated

    def load_file(self, filename: str, records: Iterable[NodeRecord]) -> list[str]:
        """Insert a file if unknown, otherwise refresh it.

        Returns:
            Ids of the file's nodes afterwards
        """
        records = list(records)
        if self.file_node_ids(filename):
            self.modify_file(filename, records)
        else:
            self.insert_file(records)
        return self.file_node_ids(filename)

    def sync(self, files: Mapping[str, Iterable[NodeRecord]], force: bool = False) -> SyncReport:
        """Bring the database in line with a complete set of parsed files.

        Args:
            files: Every current filename mapped to its parsed records
            force: Refresh known files even if they look unmodified

        Returns:
            SyncReport of what happened to each filename
        """
        self.db.reindex([Schema.FILE])
        known = {filename for filename in self.db.iter_index_keys(Schema.FILE) if self.file_node_ids(filename)}
        incoming = set(files)

        report = SyncReport(
            added=sorted(incoming - known),
            removed=sorted(known - incoming),
        )

        for filename in report.removed:
            self._remove_file(filename)
        for filename in report.added:
            self._insert_file(files[filename])
        for filename in sorted(incoming & known):
            if self._modify_file(filename, list(files[filename]), force):
                report.modified.append(filename)
            else:
                report.unchanged.append(filename)

        self._finish()
        log.info(
            f"Synced files: {len(report.added)} added, {len(report.removed)} removed, "
            f"{len(report.modified)} modified, {len(report.unchanged)} unchanged"
        )
        return report
