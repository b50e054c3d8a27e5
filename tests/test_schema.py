"""Schema index tests for notegraph."""


class TestSchema:
    """Test the standard alias, file and tag indexes."""

    def test_update_registers_indexes(self, db):
        """All standard indexes should be present after update."""
        from notegraph.schema import Schema

        Schema.update(db)

        for name in (Schema.ALIAS, Schema.FILE, Schema.TAG):
            assert db.has_index(name)

    def test_update_indexes_existing_records(self, db, make_record):
        """Records already present should be indexed by the new indexes."""
        from notegraph.schema import Schema

        record = make_record("a", file="/notes/a.org", aliases=["alpha", "first"], tags=["greek"])
        db.insert(record, node_id=record.id)

        Schema.update(db)

        assert db.find_by_index(Schema.ALIAS, "alpha") == ["a"]
        assert db.find_by_index(Schema.ALIAS, "first") == ["a"]
        assert db.find_by_index(Schema.FILE, "/notes/a.org") == ["a"]
        assert db.find_by_index(Schema.TAG, "greek") == ["a"]

    def test_update_keeps_existing_indexes(self, db, make_record):
        """A second update should neither replace nor rebuild indexes."""
        from notegraph.schema import Schema

        Schema.update(db)
        db.insert(make_record("late", tags=["t"]), node_id="late")
        tick = db.changed_tick

        Schema.update(db)

        assert db.changed_tick == tick
        assert db.find_by_index(Schema.TAG, "t") == []

    def test_update_is_chainable(self, db):
        from notegraph.schema import Schema

        assert Schema.update(db) is db
