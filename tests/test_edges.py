"""EdgeStore tests for notegraph.

Tests the bidirectional adjacency maps directly.
"""

import pytest


class TestEdgeStore:
    """Test EdgeStore operations."""

    def test_link_records_both_views(self):
        """A link should appear outbound and inbound with the same count."""
        from notegraph.db import Direction, EdgeStore

        edges = EdgeStore()
        edges.link("a", ["b", "b", "c"])

        assert dict(edges.neighbors("a")) == {"b": 2, "c": 1}
        assert dict(edges.neighbors("b", Direction.INBOUND)) == {"a": 2}
        assert edges.count("a", "b") == 2
        assert len(edges) == 2

    def test_neighbors_is_read_only(self):
        """Neighbour views must not allow mutation of the store."""
        from notegraph.db import EdgeStore

        edges = EdgeStore()
        edges.link("a", ["b"])

        with pytest.raises(TypeError):
            edges.neighbors("a")["c"] = 1

    def test_neighbors_of_unknown_node(self):
        """Unknown ids should have empty adjacency."""
        from notegraph.db import Direction, EdgeStore

        edges = EdgeStore()

        assert dict(edges.neighbors("nope")) == {}
        assert dict(edges.neighbors("nope", Direction.INBOUND)) == {}

    def test_unlink_prunes_empty_adjacency(self):
        """Removing the last edge should leave no trace of either endpoint."""
        from notegraph.db import EdgeStore

        edges = EdgeStore()
        edges.link("a", ["b"])

        assert edges.unlink("a", ["b"]) == ["b"]
        assert edges.has_edges("a") is False
        assert edges.has_edges("b") is False
        assert len(edges) == 0

    def test_remove_node_counts_edges(self):
        """remove_node should delete edges on both sides and count them."""
        from notegraph.db import EdgeStore

        edges = EdgeStore()
        edges.link("a", ["b", "c"])
        edges.link("d", ["a"])
        edges.link("a", ["a"])

        assert edges.remove_node("a") == 4
        assert list(edges.iter_edges()) == []
        assert edges.check_consistency() == []

    def test_from_edges_accumulates(self):
        """from_edges should build both views and add repeated pairs."""
        from notegraph.db import Direction, EdgeStore

        edges = EdgeStore.from_edges([("a", "b", 2), ("a", "b", 1), ("b", "c", 5)])

        assert edges.count("a", "b") == 3
        assert dict(edges.neighbors("c", Direction.INBOUND)) == {"b": 5}

    @pytest.mark.parametrize("count", [0, -1, True, 1.5])
    def test_from_edges_rejects_bad_multiplicity(self, count):
        """Multiplicities must be positive ints."""
        from notegraph.db import EdgeStore

        with pytest.raises(ValueError):
            EdgeStore.from_edges([("a", "b", count)])

    def test_satisfies_edge_source_protocol(self):
        """EdgeStore should be usable wherever an EdgeSource is expected."""
        from notegraph.db import EdgeSource, EdgeStore

        assert isinstance(EdgeStore(), EdgeSource)
