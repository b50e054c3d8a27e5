"""Configuration for notegraph.

Simple dataclass-based configuration with sensible defaults.
Override via environment variables with NOTEGRAPH_ prefix.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from notegraph.log_config import get_logger

log = get_logger("config")

# Look for .env in the working directory and next to the package
_pkg_dir = Path(__file__).parent.parent
_env_loaded = load_dotenv(Path.cwd() / ".env") or load_dotenv(_pkg_dir / ".env")
log.debug(f"Loaded .env file: {_env_loaded}")


def _get_env(key: str, default: str) -> str:
    """Get environment variable with NOTEGRAPH_ prefix."""
    return os.getenv(f"NOTEGRAPH_{key}", default)


def _get_env_bool(key: str, default: bool) -> bool:
    """Get boolean environment variable."""
    val = os.getenv(f"NOTEGRAPH_{key}")
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


@dataclass
class Config:
    """notegraph configuration.

    Attributes:
        data_dir: Directory holding the snapshot (default: ~/.notegraph)
        database_path: Snapshot file (default: <data_dir>/db.msgpack)
        count_link_occurrences: Declare one link per link position when
            ingesting node records, so multiplicity equals the number of
            citations (default: True). When False, each distinct target is
            linked once.
    """

    data_dir: Path = field(
        default_factory=lambda: Path(_get_env("DATA_DIR", str(Path.home() / ".notegraph")))
    )
    database_path: Path | None = field(
        default_factory=lambda: (
            Path(os.environ["NOTEGRAPH_DATABASE_PATH"])
            if os.getenv("NOTEGRAPH_DATABASE_PATH")
            else None
        )
    )
    count_link_occurrences: bool = field(
        default_factory=lambda: _get_env_bool("COUNT_LINK_OCCURRENCES", True)
    )

    def __post_init__(self):
        """Normalize paths; the snapshot defaults to a file inside data_dir."""
        self.data_dir = Path(self.data_dir).expanduser()
        if self.database_path is None:
            self.database_path = self.data_dir / "db.msgpack"
        else:
            self.database_path = Path(self.database_path).expanduser()

        log.debug(f"data_dir={self.data_dir}")
        log.debug(f"database_path={self.database_path}")
        log.debug(f"count_link_occurrences={self.count_link_occurrences}")
