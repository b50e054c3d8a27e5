"""Snapshot codec and file I/O for notegraph.

A snapshot is a single msgpack document:

    {
        "format": "notegraph-snapshot",
        "version": 1,
        "nodes": {id: value, ...},
        "edges": {from_id: {to_id: multiplicity, ...}, ...},
    }

Only the outbound edge view is stored; the inbound view is rebuilt on load.
Index tables are not stored and must be rebuilt after loading.

Values may be any msgpack-native type plus tuples, sets, frozensets and
pydantic models registered with register_model(), each carried as an ext type.
"""

import asyncio
import os
import tempfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import msgpack
from pydantic import BaseModel

from notegraph.errors import SnapshotError
from notegraph.log_config import get_logger

log = get_logger("db.snapshot")

SNAPSHOT_FORMAT = "notegraph-snapshot"
SNAPSHOT_VERSION = 1

# msgpack ext type codes
EXT_TUPLE = 1
EXT_SET = 2
EXT_FROZENSET = 3
EXT_MODEL = 4

M = TypeVar("M", bound=type[BaseModel])

_MODEL_REGISTRY: dict[str, type[BaseModel]] = {}


def _model_key(cls: type[BaseModel]) -> str:
    return f"{cls.__module__}.{cls.__qualname__}"


def register_model(cls: M) -> M:
    """Allow instances of a pydantic model to be stored in snapshots.

    Usable as a class decorator. Models are written as their python-mode dump
    and re-validated on load.
    """
    _MODEL_REGISTRY[_model_key(cls)] = cls
    return cls


@dataclass
class SnapshotData:
    """Decoded snapshot contents."""

    nodes: dict[str, Any] = field(default_factory=dict)
    edges: list[tuple[str, str, int]] = field(default_factory=list)


# =============================================================================
# Value encoding
# =============================================================================


def _default(obj: Any) -> msgpack.ExtType:
    """Encode values msgpack has no native representation for."""
    if isinstance(obj, tuple):
        return msgpack.ExtType(EXT_TUPLE, _packb(list(obj)))
    if isinstance(obj, frozenset):
        return msgpack.ExtType(EXT_FROZENSET, _packb(list(obj)))
    if isinstance(obj, set):
        return msgpack.ExtType(EXT_SET, _packb(list(obj)))
    if isinstance(obj, BaseModel):
        key = _model_key(type(obj))
        if key not in _MODEL_REGISTRY:
            raise TypeError(f"Model {key} is not registered for snapshots")
        return msgpack.ExtType(EXT_MODEL, _packb([key, obj.model_dump(mode="python")]))
    raise TypeError(f"Cannot serialize object of type {type(obj).__name__}")


def _ext_hook(code: int, data: bytes) -> Any:
    if code == EXT_TUPLE:
        return tuple(_unpackb(data))
    if code == EXT_SET:
        return set(_unpackb(data))
    if code == EXT_FROZENSET:
        return frozenset(_unpackb(data))
    if code == EXT_MODEL:
        key, payload = _unpackb(data)
        model = _MODEL_REGISTRY.get(key)
        if model is None:
            raise ValueError(f"Snapshot contains unregistered model {key}")
        return model.model_validate(payload)
    raise ValueError(f"Unknown ext type {code}")


def _packb(obj: Any) -> bytes:
    # strict_types routes tuples and subclasses through _default
    return msgpack.packb(obj, default=_default, use_bin_type=True, strict_types=True)


def _unpackb(data: bytes) -> Any:
    return msgpack.unpackb(data, ext_hook=_ext_hook, raw=False, strict_map_key=False)


# =============================================================================
# Document encoding
# =============================================================================


def encode_snapshot(nodes: Mapping[str, Any], edges: Iterable[tuple[str, str, int]]) -> bytes:
    """Serialize values and outbound edges into snapshot bytes.

    Raises:
        SnapshotError: If a value cannot be serialized
    """
    outbound: dict[str, dict[str, int]] = {}
    for from_id, to_id, count in edges:
        outbound.setdefault(from_id, {})[to_id] = count

    document = {
        "format": SNAPSHOT_FORMAT,
        "version": SNAPSHOT_VERSION,
        "nodes": dict(nodes),
        "edges": outbound,
    }
    try:
        return _packb(document)
    except (TypeError, ValueError, OverflowError) as e:
        log.warning(f"Failed to encode database: {e}")
        raise SnapshotError(f"Failed to encode database: {e}") from e


def _validate(document: Any) -> SnapshotData:
    if not isinstance(document, dict):
        raise ValueError("snapshot root is not a map")
    if document.get("format") != SNAPSHOT_FORMAT:
        raise ValueError(f"unexpected format tag {document.get('format')!r}")
    version = document.get("version")
    if version != SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version {version!r}")

    nodes = document.get("nodes")
    edges = document.get("edges")
    if not isinstance(nodes, dict) or not isinstance(edges, dict):
        raise ValueError("snapshot is missing its nodes or edges map")

    for node_id in nodes:
        if not isinstance(node_id, str):
            raise ValueError(f"node id {node_id!r} is not a string")

    triples = []
    for from_id, targets in edges.items():
        if not isinstance(from_id, str) or not isinstance(targets, dict):
            raise ValueError(f"malformed adjacency for {from_id!r}")
        for to_id, count in targets.items():
            if not isinstance(to_id, str):
                raise ValueError(f"edge target {to_id!r} is not a string")
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ValueError(f"invalid multiplicity {count!r} for {from_id!r} -> {to_id!r}")
            triples.append((from_id, to_id, count))

    return SnapshotData(nodes=nodes, edges=triples)


def decode_snapshot(data: bytes) -> SnapshotData:
    """Parse and validate snapshot bytes.

    The whole document is checked before anything is returned, so a corrupt
    snapshot never yields a partial result.

    Raises:
        SnapshotError: If the bytes are truncated, corrupt or not a snapshot
    """
    try:
        return _validate(_unpackb(data))
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        log.warning(f"Failed to decode database: {e}")
        raise SnapshotError(f"Failed to decode database: {e}") from e


# =============================================================================
# File I/O
# =============================================================================


def write_snapshot_file(path: Path | str, data: bytes) -> None:
    """Write snapshot bytes atomically, replacing any existing file.

    Each call writes to its own temp file beside the target and renames it
    into place, so concurrent writers to one path never share a temp file;
    the last rename wins.

    Raises:
        SnapshotError: On any filesystem error
    """
    path = Path(path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        log.warning(f"Failed to write snapshot {path}: {e}")
        raise SnapshotError(f"Failed to write snapshot: {e}", path) from e
    log.debug(f"Wrote {len(data)} bytes to {path}")


def read_snapshot_file(path: Path | str) -> bytes:
    """Read raw snapshot bytes.

    Raises:
        SnapshotError: If the file is missing or unreadable
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        log.warning(f"Failed to read snapshot {path}: {e}")
        raise SnapshotError(f"Failed to read snapshot: {e}", path) from e
    log.debug(f"Read {len(data)} bytes from {path}")
    return data


async def write_snapshot_file_async(path: Path | str, data: bytes) -> None:
    """Non-blocking write_snapshot_file; the I/O runs in a worker thread."""
    await asyncio.to_thread(write_snapshot_file, path, data)


async def read_snapshot_file_async(path: Path | str) -> bytes:
    """Non-blocking read_snapshot_file; the I/O runs in a worker thread."""
    return await asyncio.to_thread(read_snapshot_file, path)
