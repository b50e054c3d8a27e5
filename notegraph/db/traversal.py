"""Graph traversal for notegraph.

Breadth-first reachability and path enumeration over any EdgeSource.

This module handles:
- Bounded reachability (links/backlinks with hop depth)
- Node iteration with distance, count and filter limits
- Simple-path enumeration in non-decreasing length order

All iterators are plain generators: pull-based, single pass, and safe to
abandon early. Re-invoke the producing method to start over.
"""

from collections import deque
from collections.abc import Callable, Iterator

from notegraph.db.protocol import Direction, EdgeSource
from notegraph.log_config import get_logger

log = get_logger("db.traversal")

NodeFilter = Callable[[str, int], bool]


def _check_limit(name: str, value: int | None) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int or None, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")


class GraphTraversal:
    """Traversal algorithms over an edge source.

    Uses dependency injection for the adjacency provider so the algorithms
    can be tested against hand-built graphs.
    """

    def __init__(self, edges: EdgeSource):
        """Initialize GraphTraversal.

        Args:
            edges: Adjacency provider (usually the database's EdgeStore)
        """
        self.edges = edges

    # =========================================================================
    # Breadth-first core
    # =========================================================================

    def _bfs(
        self,
        start_id: str,
        direction: Direction,
        max_distance: int | None,
        max_nodes: int | None,
        node_filter: NodeFilter | None,
    ) -> Iterator[tuple[str, int]]:
        """Yield (id, distance) pairs breadth-first from start_id.

        A node is emitted at most once, at the first distance it is accepted.
        A node rejected by the filter is neither emitted nor expanded.
        """
        visited: set[str] = set()
        queue: deque[tuple[str, int]] = deque([(start_id, 0)])
        count = 0

        while queue and (max_nodes is None or count < max_nodes):
            node_id, distance = queue.popleft()
            if node_id in visited:
                continue
            if node_filter is not None and not node_filter(node_id, distance):
                continue

            visited.add(node_id)
            count += 1

            if max_distance is None or distance < max_distance:
                for neighbor_id in self.edges.neighbors(node_id, direction):
                    if neighbor_id not in visited:
                        queue.append((neighbor_id, distance + 1))

            yield node_id, distance

    # =========================================================================
    # Reachability
    # =========================================================================

    def reachable(
        self,
        node_id: str,
        direction: Direction = Direction.OUTBOUND,
        max_depth: int | None = None,
    ) -> dict[str, int]:
        """Every node reachable from node_id, mapped to its minimum hop count.

        Args:
            node_id: Starting node (excluded from the result)
            direction: OUTBOUND follows links, INBOUND follows backlinks
            max_depth: Maximum hops; None means unbounded, 1 means direct
                neighbours only

        Returns:
            Mapping of id -> depth (empty when nothing is reachable)
        """
        _check_limit("max_depth", max_depth)
        found = {
            found_id: depth
            for found_id, depth in self._bfs(node_id, direction, max_depth, None, None)
            if depth > 0
        }
        log.trace(f"{direction.value} reachability from {node_id}: {len(found)} nodes")
        return found

    def iter_nodes(
        self,
        start_node_id: str,
        max_distance: int | None = None,
        max_nodes: int | None = None,
        node_filter: NodeFilter | None = None,
    ) -> Iterator[tuple[str, int]]:
        """Traverse outbound edges breadth-first from start_node_id.

        Args:
            start_node_id: Node emitted first, at distance 0
            max_distance: Maximum hop count to visit
            max_nodes: Stop after this many pairs (the start node counts)
            node_filter: Called as node_filter(id, distance); False excludes
                the node and prunes everything reachable only through it

        Returns:
            Iterator of (id, distance) pairs
        """
        _check_limit("max_distance", max_distance)
        _check_limit("max_nodes", max_nodes)
        return self._bfs(start_node_id, Direction.OUTBOUND, max_distance, max_nodes, node_filter)

    # =========================================================================
    # Path enumeration
    # =========================================================================

    def iter_paths(
        self,
        start_node_id: str,
        end_node_id: str,
        max_distance: int | None = None,
    ) -> Iterator[list[str]]:
        """Enumerate simple outbound paths between two nodes, shortest first.

        Partial paths are expanded breadth-first, so completed paths come out
        in non-decreasing hop count. A path never revisits a node. The order
        among paths of equal length follows edge insertion order.

        Args:
            start_node_id: First node of every path
            end_node_id: Last node of every path
            max_distance: Maximum hops per path; None means unbounded

        Returns:
            Iterator of paths, each a list of ids from start to end
        """
        _check_limit("max_distance", max_distance)
        return self._iter_paths(start_node_id, end_node_id, max_distance)

    def _iter_paths(
        self,
        start_node_id: str,
        end_node_id: str,
        max_distance: int | None,
    ) -> Iterator[list[str]]:
        if start_node_id == end_node_id:
            yield [start_node_id]
            return

        queue: deque[tuple[str, ...]] = deque([(start_node_id,)])
        while queue:
            path = queue.popleft()
            last_id = path[-1]

            if last_id == end_node_id:
                yield list(path)
                continue

            if max_distance is not None and len(path) - 1 >= max_distance:
                continue

            for neighbor_id in self.edges.neighbors(last_id, Direction.OUTBOUND):
                if neighbor_id not in path:
                    queue.append(path + (neighbor_id,))

    def find_path(
        self,
        start_node_id: str,
        end_node_id: str,
        max_distance: int | None = None,
    ) -> list[str] | None:
        """First (shortest) path between two nodes, or None if there is none."""
        return next(self.iter_paths(start_node_id, end_node_id, max_distance), None)
