"""Config tests for notegraph.

Tests critical configuration pathways:
- Defaults derive from the data directory
- Environment variable override mechanism works
"""

import os
from pathlib import Path
from unittest.mock import patch


class TestConfigDefaults:
    """Test that config has expected default values."""

    def test_data_dir_default(self):
        """Data dir should default to ~/.notegraph."""
        from notegraph.config import Config

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NOTEGRAPH_DATA_DIR", None)
            config = Config()
        assert config.data_dir == Path.home() / ".notegraph"

    def test_database_path_inside_data_dir(self, tmp_path):
        """Snapshot path should default to db.msgpack in data_dir."""
        from notegraph.config import Config

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NOTEGRAPH_DATABASE_PATH", None)
            config = Config(data_dir=tmp_path)
        assert config.database_path == tmp_path / "db.msgpack"

    def test_count_link_occurrences_default(self):
        """Link occurrences should be counted by default."""
        from notegraph.config import Config

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("NOTEGRAPH_COUNT_LINK_OCCURRENCES", None)
            config = Config()
        assert config.count_link_occurrences is True

    def test_does_not_create_directories(self, tmp_path):
        """Building a config must not touch the filesystem."""
        from notegraph.config import Config

        Config(data_dir=tmp_path / "nested")
        assert not (tmp_path / "nested").exists()


class TestConfigEnvironmentOverrides:
    """Test environment variable overrides for config."""

    def test_data_dir_env_override(self, tmp_path):
        """Data dir should be overridable via env var."""
        from notegraph.config import Config

        with patch.dict(os.environ, {"NOTEGRAPH_DATA_DIR": str(tmp_path)}):
            config = Config()
        assert config.data_dir == tmp_path
        assert config.database_path == tmp_path / "db.msgpack"

    def test_database_path_env_override(self, tmp_path):
        """Snapshot path should be overridable independently of data_dir."""
        from notegraph.config import Config

        target = tmp_path / "elsewhere.msgpack"
        with patch.dict(os.environ, {"NOTEGRAPH_DATABASE_PATH": str(target)}):
            config = Config()
        assert config.database_path == target

    def test_count_link_occurrences_env_override(self):
        """Boolean env vars accept false-like strings."""
        from notegraph.config import Config

        with patch.dict(os.environ, {"NOTEGRAPH_COUNT_LINK_OCCURRENCES": "false"}):
            assert Config().count_link_occurrences is False
        with patch.dict(os.environ, {"NOTEGRAPH_COUNT_LINK_OCCURRENCES": "1"}):
            assert Config().count_link_occurrences is True

    def test_explicit_argument_wins(self, tmp_path):
        """Constructor arguments take precedence over the environment."""
        from notegraph.config import Config

        with patch.dict(os.environ, {"NOTEGRAPH_DATA_DIR": "/ignored"}):
            config = Config(data_dir=tmp_path, count_link_occurrences=False)
        assert config.data_dir == tmp_path
        assert config.count_link_occurrences is False

    def test_tilde_expanded(self):
        """User paths should be expanded."""
        from notegraph.config import Config

        config = Config(data_dir="~/graph", database_path="~/graph/custom.msgpack")
        assert config.data_dir == Path.home() / "graph"
        assert config.database_path == Path.home() / "graph" / "custom.msgpack"
