"""Edge store for notegraph.

Directed edges between node ids, each with a multiplicity counter. Every edge
is recorded twice: once in the outbound map keyed by its source and once in
the inbound map keyed by its target. All mutations go through this class so
both views always agree on which pairs exist and on their counts.

Targets (and sources) do not need a stored value. An id that only appears in
edges is a phantom node.
"""

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from notegraph.db.protocol import Direction
from notegraph.log_config import get_logger

log = get_logger("db.edges")

_EMPTY: Mapping[str, int] = MappingProxyType({})


class EdgeStore:
    """Bidirectional adjacency maps with per-edge multiplicity."""

    def __init__(self):
        self._outbound: dict[str, dict[str, int]] = {}
        self._inbound: dict[str, dict[str, int]] = {}

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[str, str, int]]) -> "EdgeStore":
        """Build a store from (from_id, to_id, multiplicity) triples.

        Repeated pairs accumulate, matching repeated link() calls.

        Raises:
            ValueError: If a multiplicity is not a positive integer
        """
        store = cls()
        for from_id, to_id, count in edges:
            if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                raise ValueError(f"Invalid multiplicity {count!r} for edge {from_id!r} -> {to_id!r}")
            store._add(from_id, to_id, count)
        return store

    def _add(self, from_id: str, to_id: str, count: int) -> None:
        outbound = self._outbound.setdefault(from_id, {})
        outbound[to_id] = outbound.get(to_id, 0) + count
        inbound = self._inbound.setdefault(to_id, {})
        inbound[from_id] = inbound.get(from_id, 0) + count

    def _drop(self, from_id: str, to_id: str) -> bool:
        """Delete the edge pair from both views, pruning empty adjacency."""
        outbound = self._outbound.get(from_id)
        removed = outbound is not None and outbound.pop(to_id, None) is not None
        if outbound is not None and not outbound:
            del self._outbound[from_id]

        inbound = self._inbound.get(to_id)
        if inbound is not None:
            inbound.pop(from_id, None)
            if not inbound:
                del self._inbound[to_id]

        return removed

    def link(self, from_id: str, to_ids: Iterable[str]) -> None:
        """Add one to the multiplicity of from_id -> to_id for each target.

        A target listed twice is counted twice.
        """
        for to_id in to_ids:
            self._add(from_id, to_id, 1)
            log.trace(f"Linked {from_id} -> {to_id}")

    def unlink(self, from_id: str, to_ids: Iterable[str] | None = None) -> list[str]:
        """Remove edges from from_id entirely, whatever their multiplicity.

        Args:
            from_id: Source node
            to_ids: Targets to disconnect; None removes every outbound edge

        Returns:
            Targets whose edge existed and was removed, in request order
        """
        if to_ids is None:
            to_ids = list(self._outbound.get(from_id, ()))

        removed = []
        for to_id in to_ids:
            if self._drop(from_id, to_id):
                removed.append(to_id)
        if removed:
            log.trace(f"Unlinked {from_id} -> {removed}")
        return removed

    def remove_node(self, node_id: str) -> int:
        """Delete every edge where node_id is either endpoint.

        Returns:
            Number of distinct edges removed
        """
        removed = 0
        for source_id in list(self._inbound.get(node_id, ())):
            removed += self._drop(source_id, node_id)
        for target_id in list(self._outbound.get(node_id, ())):
            removed += self._drop(node_id, target_id)
        return removed

    def neighbors(self, node_id: str, direction: Direction = Direction.OUTBOUND) -> Mapping[str, int]:
        """Read-only view of a node's adjacency in the given direction."""
        edges = self._outbound if direction == Direction.OUTBOUND else self._inbound
        adjacency = edges.get(node_id)
        return MappingProxyType(adjacency) if adjacency else _EMPTY

    def count(self, from_id: str, to_id: str) -> int:
        """Multiplicity of from_id -> to_id (0 when absent)."""
        return self._outbound.get(from_id, {}).get(to_id, 0)

    def has_edges(self, node_id: str) -> bool:
        """True if node_id is an endpoint of any edge."""
        return node_id in self._outbound or node_id in self._inbound

    def iter_edges(self) -> Iterator[tuple[str, str, int]]:
        """Yield (from_id, to_id, multiplicity) for every edge."""
        for from_id, targets in self._outbound.items():
            for to_id, count in targets.items():
                yield from_id, to_id, count

    def check_consistency(self) -> list[str]:
        """Compare the two views and describe every disagreement.

        Returns:
            Human-readable problems; empty when the views agree
        """
        problems = []
        for from_id, to_id, count in self.iter_edges():
            back = self._inbound.get(to_id, {}).get(from_id)
            if back != count:
                problems.append(f"{from_id} -> {to_id} has {count}, inbound has {back}")
        for to_id, sources in self._inbound.items():
            for from_id, count in sources.items():
                if self._outbound.get(from_id, {}).get(to_id) is None:
                    problems.append(f"{to_id} <- {from_id} ({count}) missing from outbound")
        return problems

    def __len__(self) -> int:
        return sum(len(targets) for targets in self._outbound.values())
