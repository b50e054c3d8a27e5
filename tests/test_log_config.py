"""Logging setup tests for notegraph.

Tests that the package stays silent and leaves host handlers alone until an
application opts in with configure_logging().
"""

import os
from unittest.mock import patch

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _reset_logging():
    """Remove handlers installed by a test and silence the package again."""
    from notegraph import log_config

    logger.disable("notegraph")
    yield
    for handler_id in log_config._handler_ids:
        logger.remove(handler_id)
    log_config._handler_ids.clear()
    logger.disable("notegraph")


def _reindex_empty_database():
    """Emit a debug timing record from inside the package."""
    from notegraph.db import Database

    Database().reindex()


class TestLibraryDefaults:
    """Test behaviour before configure_logging is called."""

    def test_silent_by_default(self):
        """Package records should not reach host handlers until enabled."""
        host = []
        host_id = logger.add(host.append, level="TRACE")
        try:
            _reindex_empty_database()
        finally:
            logger.remove(host_id)

        assert host == []

    def test_host_enable_routes_to_host_handlers(self):
        """logger.enable should be enough to use the host's own handlers."""
        host = []
        host_id = logger.add(host.append, level="DEBUG")
        try:
            logger.enable("notegraph")
            _reindex_empty_database()
        finally:
            logger.remove(host_id)

        assert any("Reindex of 0 nodes" in message for message in host)


class TestConfigureLogging:
    """Test the opt-in console handler."""

    def test_emits_at_requested_level(self):
        from notegraph.log_config import configure_logging

        messages = []
        configure_logging(level="DEBUG", sink=messages.append)

        _reindex_empty_database()

        assert any("Reindex of 0 nodes" in message for message in messages)

    def test_default_level_is_warning(self):
        """Debug records are filtered, warnings pass."""
        from notegraph.db import Database
        from notegraph.errors import DuplicateIdError
        from notegraph.log_config import configure_logging

        messages = []
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NOTEGRAPH_LOG_LEVEL", None)
            configure_logging(sink=messages.append)

        db = Database()
        db.insert("v", node_id="a")
        db.reindex()
        with pytest.raises(DuplicateIdError):
            db.insert("w", node_id="a")

        assert not any("Reindex" in message for message in messages)
        assert any("Refusing to overwrite" in message for message in messages)

    def test_keeps_host_handlers(self):
        """Existing handlers keep receiving records after configuration."""
        from notegraph.log_config import configure_logging

        host = []
        host_id = logger.add(host.append, level="DEBUG")
        try:
            configure_logging(level="DEBUG", sink=[].append)
            _reindex_empty_database()
        finally:
            logger.remove(host_id)

        assert any("Reindex of 0 nodes" in message for message in host)

    def test_reconfigure_replaces_own_handlers(self):
        """A second call should drop only the handlers the first call added."""
        from notegraph.log_config import configure_logging

        first, second = [], []
        configure_logging(level="DEBUG", sink=first.append)
        configure_logging(level="DEBUG", sink=second.append)

        _reindex_empty_database()

        assert first == []
        assert any("Reindex of 0 nodes" in message for message in second)

    def test_component_override(self, tmp_path):
        """NOTEGRAPH_LOG_SNAPSHOT lowers the level for snapshot records only."""
        from notegraph.db import Database
        from notegraph.log_config import configure_logging

        messages = []
        with patch.dict(os.environ, {"NOTEGRAPH_LOG_SNAPSHOT": "DEBUG"}):
            configure_logging(level="WARNING", sink=messages.append)

        db = Database()
        db.reindex()
        db.write_to_disk_sync(tmp_path / "db.msgpack")

        assert any("Wrote" in message for message in messages)
        assert not any("Reindex" in message for message in messages)

    def test_ignores_foreign_records(self):
        """Records from outside the package are not printed by its handler."""
        from notegraph.log_config import configure_logging

        messages = []
        configure_logging(level="TRACE", sink=messages.append)

        logger.warning("host message")

        assert messages == []
