"""Edge-source protocol for graph traversal.

Defines the narrow read interface the traversal engine needs, so traversal can
run against the in-memory EdgeStore or any other adjacency provider.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Protocol, runtime_checkable


class Direction(str, Enum):
    """Which adjacency view to follow."""

    OUTBOUND = "outbound"  # links: node -> target
    INBOUND = "inbound"    # backlinks: node <- source


@runtime_checkable
class EdgeSource(Protocol):
    """Protocol for anything that can report a node's neighbours."""

    def neighbors(self, node_id: str, direction: Direction = Direction.OUTBOUND) -> Mapping[str, int]:
        """Return neighbour ids mapped to edge multiplicity.

        Args:
            node_id: Node whose adjacency to read
            direction: OUTBOUND for links, INBOUND for backlinks

        Returns:
            Mapping of neighbour id -> multiplicity (empty if none). Callers
            must treat it as read-only.
        """
        ...
