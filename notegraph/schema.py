"""Standard indexes for a database of NodeRecords."""

from operator import attrgetter

from notegraph.db import Database
from notegraph.log_config import get_logger

log = get_logger("schema")


class Schema:
    """Index names used for note lookups, and the fields they read."""

    ALIAS = "alias"
    FILE = "file"
    TAG = "tag"

    FIELDS = {
        ALIAS: "aliases",
        FILE: "file",
        TAG: "tags",
    }

    @classmethod
    def update(cls, db: Database) -> Database:
        """Register any missing standard index and build only those.

        Indexes that already exist are left as they are, so calling this on
        a loaded database is cheap when nothing is new.

        Args:
            db: Database of NodeRecord values

        Returns:
            The same database, for chaining
        """
        new_indexes = []
        for name, field_name in cls.FIELDS.items():
            if not db.has_index(name):
                db.new_index(name, attrgetter(field_name))
                new_indexes.append(name)

        if new_indexes:
            db.reindex(new_indexes)
            log.debug(f"Added schema indexes {new_indexes}")
        return db
