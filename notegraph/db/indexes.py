"""Secondary indexes over node values.

An index is a named function from a stored value to zero, one or several
keys. Indexes are rebuilt wholesale on demand; mutations of the value store
never touch them, so lookups reflect the state at the last rebuild.

Keys compare as dict keys do, except that bools are kept apart from the
ints they equal: True and 1 are two different keys.
"""

from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from notegraph.errors import UnknownIndexError
from notegraph.log_config import get_logger

log = get_logger("db.indexes")

V = TypeVar("V")

IndexKey = Hashable
Indexer = Callable[[Any], Any]
KeyPredicate = Callable[[Any], bool]

# Results of these types produce one entry per element
_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def normalize_keys(result: Any) -> list[IndexKey]:
    """Turn an indexer result into the list of keys it stands for.

    None gives no keys, a list/tuple/set gives one key per non-None element,
    and any other value (strings included) is a single key.

    Raises:
        TypeError: If a key is not hashable
    """
    if result is None:
        return []
    items = result if isinstance(result, _SEQUENCE_TYPES) else (result,)

    keys = []
    for key in items:
        if key is None:
            continue
        if not isinstance(key, Hashable):
            raise TypeError(f"Index key must be hashable, got {type(key).__name__}")
        keys.append(key)
    return keys


@dataclass(frozen=True)
class _BoolKey:
    """Table slot for a bool key, so True and 1 (False and 0) stay apart."""

    value: bool


def _to_slot(key: Any) -> Any:
    return _BoolKey(key) if isinstance(key, bool) else key


def _from_slot(slot: Any) -> Any:
    return slot.value if isinstance(slot, _BoolKey) else slot


class IndexEngine(Generic[V]):
    """Registry of indexers plus the key -> ids tables they produce."""

    def __init__(self):
        self._indexers: dict[str, Indexer] = {}
        # name -> key slot -> ids (dict used as an insertion-ordered set)
        self._indexes: dict[str, dict[IndexKey, dict[str, None]]] = {}

    def register(self, name: str, indexer: Indexer) -> None:
        """Register (or replace) an indexer. Its table stays empty until rebuilt."""
        if not callable(indexer):
            raise TypeError(f"Indexer for {name!r} must be callable")
        self._indexers[name] = indexer
        self._indexes.pop(name, None)
        log.debug(f"Registered index {name!r}")

    def has_index(self, name: str) -> bool:
        return name in self._indexers

    def names(self) -> list[str]:
        return list(self._indexers)

    def _require(self, name: str) -> None:
        if name not in self._indexers:
            log.warning(f"Lookup on unregistered index {name!r}")
            raise UnknownIndexError(name)

    def rebuild(self, items: Iterable[tuple[str, V]], names: Iterable[str] | None = None) -> None:
        """Recompute tables from (id, value) pairs.

        Args:
            items: Every (id, value) currently stored
            names: Indexes to rebuild; None rebuilds all of them

        Raises:
            UnknownIndexError: If a named index is not registered
        """
        targets = self.names() if names is None else list(names)
        for name in targets:
            self._require(name)

        tables: dict[str, dict[IndexKey, dict[str, None]]] = {name: {} for name in targets}
        for node_id, value in items:
            for name in targets:
                table = tables[name]
                try:
                    keys = normalize_keys(self._indexers[name](value))
                except TypeError as e:
                    raise TypeError(f"Index {name!r} produced an invalid key for {node_id!r}: {e}") from e
                for key in keys:
                    table.setdefault(_to_slot(key), {})[node_id] = None

        self._indexes.update(tables)
        log.debug(f"Rebuilt indexes {targets}")

    def find(self, name: str, key: IndexKey | KeyPredicate) -> list[str]:
        """Ids stored under a key, or under every key accepted by a predicate.

        The predicate form visits every key of the index and is much slower
        than an exact lookup.

        Raises:
            UnknownIndexError: If the index is not registered
        """
        self._require(name)
        table = self._indexes.get(name, {})

        if callable(key):
            ids: dict[str, None] = {}
            for candidate, members in table.items():
                if key(_from_slot(candidate)):
                    ids.update(members)
            return list(ids)

        try:
            return list(table.get(_to_slot(key), ()))
        except TypeError:
            # Unhashable lookup key can never match
            return []

    def iter_keys(self, name: str) -> Iterator[IndexKey]:
        """Iterate over the keys currently present in an index.

        Raises:
            UnknownIndexError: If the index is not registered (raised on call,
                not on first iteration)
        """
        self._require(name)
        return iter([_from_slot(slot) for slot in self._indexes.get(name, {})])
