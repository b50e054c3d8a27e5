"""Shared pytest fixtures for notegraph tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def db():
    """Empty database."""
    from notegraph.db import Database

    return Database()


@pytest.fixture
def sample_graph():
    """Six-node graph used by the traversal tests.

    2 <- 1 -> 3    6
         ^    ^
         |    |
         V    |
         4 -> 5

    Returns the database and a mapping of label -> id.
    """
    from notegraph.db import Database

    db = Database()
    ids = {label: db.insert(label) for label in ("one", "two", "three", "four", "five", "six")}
    db.link(ids["one"], ids["two"], ids["three"], ids["four"])
    db.link(ids["four"], ids["one"], ids["five"])
    db.link(ids["five"], ids["three"])
    return db, ids


@pytest.fixture
def numbered_graph():
    """Graph with readable ids: 1->2, 1->3, 1->4, 4->1, 4->5, 5->3."""
    from notegraph.db import Database

    db = Database()
    for node_id in ("1", "2", "3", "4", "5"):
        db.insert(f"node {node_id}", node_id=node_id)
    db.link("1", "2", "3", "4")
    db.link("4", "1", "5")
    db.link("5", "3")
    return db


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    """Path for a snapshot file inside a temp directory (not created)."""
    return tmp_path / "db.msgpack"


@pytest.fixture
def make_record():
    """Factory for NodeRecords with sensible defaults.

    make_record("a", file="/notes/a.org", links={"b": 2}) links to b with two
    positions.
    """
    from notegraph.models import NodeRecord, Position

    def _make(
        node_id: str,
        file: str = "/notes/default.org",
        mtime: int = 1,
        links: dict[str, int] | None = None,
        **fields: Any,
    ) -> NodeRecord:
        linked = {
            target: [Position(row=i, column=0) for i in range(count)]
            for target, count in (links or {}).items()
        }
        return NodeRecord(id=node_id, file=file, mtime=mtime, linked=linked, **fields)

    return _make
