"""Logging configuration for notegraph.

Uses loguru. As a library, notegraph installs no handlers and touches none
that the host application already has: its records are disabled on import.
An application either calls logger.enable("notegraph") to route them through
its own loguru handlers, or calls configure_logging() to get a filtered
console handler and an optional rotating file handler. The console defaults
to WARNING so that only problems with the graph store are reported.

Environment variables for log level control (read by configure_logging):
- NOTEGRAPH_LOG_LEVEL: Global log level (default: WARNING)
- NOTEGRAPH_LOG_SNAPSHOT: Snapshot reader/writer log level
- NOTEGRAPH_LOG_LOADER: Record loader log level
- NOTEGRAPH_LOG_DIR: Directory for rotating log files (disabled when unset)
"""

import os
import sys
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter

from loguru import logger

PACKAGE = "notegraph"

# Silent until the embedding application opts in
logger.disable(PACKAGE)

# Handlers added by configure_logging, so a second call replaces only these
_handler_ids: list[int] = []


def _level_no(level: str) -> int | None:
    try:
        return logger.level(level).no
    except ValueError:
        return None  # Invalid level


def _make_filter(global_level: str):
    """Build a filter for notegraph records with per-component overrides."""
    component_levels = {
        "snapshot": os.getenv("NOTEGRAPH_LOG_SNAPSHOT", "").upper(),
        "loader": os.getenv("NOTEGRAPH_LOG_LOADER", "").upper(),
    }

    def _log_filter(record) -> bool:
        if not (record["name"] or "").startswith(PACKAGE):
            return False
        name = record["extra"].get("name", "")

        # Check component overrides first
        for component, level in component_levels.items():
            if level and component in name:
                threshold = _level_no(level)
                if threshold is not None:
                    return record["level"].no >= threshold

        threshold = _level_no(global_level)
        return threshold is None or record["level"].no >= threshold

    return _log_filter


def configure_logging(level: str | None = None, sink=sys.stderr) -> list[int]:
    """Install notegraph's handlers and enable its records.

    Handlers the host application added are left alone; calling this again
    replaces only the handlers a previous call installed.

    Args:
        level: Global level (default: NOTEGRAPH_LOG_LEVEL or WARNING)
        sink: Console sink (default: stderr)

    Returns:
        Ids of the installed loguru handlers
    """
    for handler_id in _handler_ids:
        logger.remove(handler_id)
    _handler_ids.clear()

    global_level = (level or os.getenv("NOTEGRAPH_LOG_LEVEL", "WARNING")).upper()
    log_filter = _make_filter(global_level)

    _handler_ids.append(
        logger.add(
            sink,
            level=0,  # Accept all, let filter decide
            filter=log_filter,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        )
    )

    log_dir_env = os.getenv("NOTEGRAPH_LOG_DIR")
    if log_dir_env:
        log_dir = Path(log_dir_env).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)

        _handler_ids.append(
            logger.add(
                log_dir / "notegraph_{time:YYYY-MM-DD}.log",
                level="DEBUG",
                filter=lambda record: (record["name"] or "").startswith(PACKAGE),
                format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}",
                rotation="10 MB",
                retention="7 days",
                compression="zip",
                enqueue=True,
            )
        )

    logger.enable(PACKAGE)
    return list(_handler_ids)


def get_logger(name: str):
    """Get a logger with the given name bound to context.

    Args:
        name: Module or component name

    Returns:
        Logger instance with name bound
    """
    return logger.bind(name=name)


@contextmanager
def log_timing(operation: str, log_instance=None, level: str = "debug"):
    """Context manager for timing operations with automatic logging.

    Args:
        operation: Description of the operation being timed
        log_instance: Logger instance (uses the package logger if None)
        level: Log level for the timing message (default: debug)

    Yields:
        dict with 'elapsed_ms' key (populated after context exits)

    Example:
        with log_timing("snapshot encode", log) as timing:
            data = encode_snapshot(nodes, edges)
        # timing['elapsed_ms'] now contains the elapsed time
    """
    log_fn = log_instance or get_logger(PACKAGE)
    timing = {"elapsed_ms": 0.0}
    start = perf_counter()
    try:
        yield timing
    finally:
        timing["elapsed_ms"] = (perf_counter() - start) * 1000
        getattr(log_fn, level)(f"{operation}: {timing['elapsed_ms']:.1f}ms")


__all__ = ["logger", "configure_logging", "get_logger", "log_timing"]
