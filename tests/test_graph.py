"""Unit tests for kgfeat.graph and kgfeat.dictionary modules."""

import pytest

from kgfeat.dictionary import Dictionary
from kgfeat.graph import Graph


class TestDictionary:
    """Tests for the string <-> id mapping."""

    def test_ids_in_first_seen_order(self):
        """Ids follow first appearance and repeats keep their id."""
        d = Dictionary(["b", "a", "b", "c"])
        assert [d.lookup(s) for s in ("b", "a", "c")] == [0, 1, 2]
        assert len(d) == 3
        assert list(d) == ["b", "a", "c"]

    def test_get_string(self):
        """Ids map back to strings; out-of-range ids raise KeyError."""
        d = Dictionary(["x", "y"])
        assert d.get_string(1) == "y"
        with pytest.raises(KeyError):
            d.get_string(2)
        with pytest.raises(KeyError):
            d.get_string(-1)

    def test_lookup_does_not_assign(self):
        """Lookups of unseen strings never assign ids."""
        d = Dictionary()
        with pytest.raises(KeyError):
            d.lookup("missing")
        assert d.get_index_if_present("missing") is None
        assert len(d) == 0


class TestGraph:
    """Tests for CSR structure and vocabulary access."""

    def test_sizes(self, graph):
        """Should count every node and edge from the triples."""
        assert graph.num_nodes == 7
        assert graph.num_edges == 7

    def test_edge_vocabulary(self, graph):
        """Edge type names resolve both ways; unknown names raise KeyError."""
        assert graph.get_edge_index("works_at") == 0
        assert graph.get_edge_name(1) == "located_in"
        with pytest.raises(KeyError):
            graph.get_edge_index("married_to")

    def test_node_vocabulary(self, graph):
        """Node names resolve to indices; unknown names give None."""
        assert graph.get_node_idx("acme") == 1
        assert graph.get_node_idx("nobody") is None

    def test_neighbors_by_edge_forward(self, graph):
        """Should return targets of outgoing edges of one type."""
        bob = graph.get_node_idx("bob")
        works_at = graph.get_edge_index("works_at")
        assert list(graph.neighbors_by_edge(bob, works_at, False)) == [graph.get_node_idx("acme")]

    def test_neighbors_by_edge_reverse(self, graph):
        """Should return sources of incoming edges of one type."""
        acme = graph.get_node_idx("acme")
        works_at = graph.get_edge_index("works_at")
        found = {int(n) for n in graph.neighbors_by_edge(acme, works_at, True)}
        assert found == {graph.get_node_idx("alice"), graph.get_node_idx("bob")}

    def test_neighbors_by_edge_missing_type(self, graph):
        """An edge type absent at the node gives an empty slice."""
        acme = graph.get_node_idx("acme")
        assert len(graph.neighbors_by_edge(acme, graph.get_edge_index("knows"), False)) == 0

    def test_edges_at(self, graph):
        """Should list outgoing and incoming edges with their direction."""
        bob = graph.get_node_idx("bob")
        edges = set(graph.edges_at(bob))
        assert edges == {
            (graph.get_edge_index("works_at"), False, graph.get_node_idx("acme")),
            (graph.get_edge_index("lives_in"), False, graph.get_node_idx("pittsburgh")),
            (graph.get_edge_index("knows"), True, graph.get_node_idx("alice")),
        }
        assert graph.degree(bob) == 3

    def test_parallel_edges_kept(self):
        """Repeated (source, type, target) edges are all stored."""
        g = Graph.from_triples([("x", "r", "y"), ("x", "r", "y"), ("x", "s", "y")])
        assert g.num_edges == 3
        assert len(g.neighbors_by_edge(0, 0, False)) == 2

    def test_empty_graph(self):
        """A graph with no triples has no nodes or edges."""
        g = Graph.from_triples([])
        assert g.num_nodes == 0
        assert g.num_edges == 0
