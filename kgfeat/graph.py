"""Typed, directed multigraph in CSR form."""

import logging

import numpy as np

from kgfeat.dictionary import Dictionary

logger = logging.getLogger(__name__)


class Graph:
    """
    Compressed Sparse Row graph with edge-type vocabulary.

    Maintains two CSR structures:
    - Forward: node -> outgoing edges, sorted by (source, edge type, target)
    - Reverse: node -> incoming edges, sorted by (target, edge type, source)

    Sorting by edge type within each node's range means all edges of one
    type at a node form a contiguous slice, which lets a matcher that knows
    the single admissible edge type read that slice directly instead of
    scanning every edge at the node.
    """

    def __init__(self, node_dict: Dictionary, edge_dict: Dictionary, sources, edge_types, targets):
        """
        Args:
            node_dict: Dictionary of node names
            edge_dict: Dictionary of edge type names
            sources: Source node index per edge
            edge_types: Edge type index per edge (parallel to sources)
            targets: Target node index per edge (parallel to sources)
        """
        self.node_dict = node_dict
        self.edge_dict = edge_dict
        self.num_nodes = len(node_dict)

        sources = np.asarray(sources, dtype=np.int32)
        edge_types = np.asarray(edge_types, dtype=np.int32)
        targets = np.asarray(targets, dtype=np.int32)
        if not (len(sources) == len(edge_types) == len(targets)):
            raise ValueError("sources, edge_types and targets must have equal length")

        # np.lexsort: last key is primary
        fwd_order = np.lexsort((targets, edge_types, sources))
        self.fwd_targets = targets[fwd_order]
        self.fwd_edge_types = edge_types[fwd_order]
        self.fwd_offsets = self._offsets(sources[fwd_order])

        rev_order = np.lexsort((sources, edge_types, targets))
        self.rev_sources = sources[rev_order]
        self.rev_edge_types = edge_types[rev_order]
        self.rev_offsets = self._offsets(targets[rev_order])

        logger.debug(
            f"Built graph with {self.num_nodes:,} nodes, {self.num_edges:,} edges, "
            f"{len(edge_dict):,} edge types"
        )

    def _offsets(self, sorted_keys):
        if len(sorted_keys) == 0:
            return np.zeros(self.num_nodes + 1, dtype=np.int64)
        return np.searchsorted(sorted_keys, np.arange(self.num_nodes + 1)).astype(np.int64)

    @classmethod
    def from_triples(cls, triples):
        """Build a graph from ``(source_name, edge_type_name, target_name)`` triples."""
        node_dict = Dictionary()
        edge_dict = Dictionary()
        sources, edge_types, targets = [], [], []
        for source, edge_type, target in triples:
            sources.append(node_dict.get_index(source))
            edge_types.append(edge_dict.get_index(edge_type))
            targets.append(node_dict.get_index(target))
        return cls(node_dict, edge_dict, sources, edge_types, targets)

    @property
    def num_edges(self):
        return len(self.fwd_targets)

    # ------------------------------------------------------------------
    # Vocabulary
    # ------------------------------------------------------------------

    def get_edge_index(self, name: str) -> int:
        """Edge type id for ``name``. Raises KeyError for unknown edge types."""
        return self.edge_dict.lookup(name)

    def get_edge_name(self, edge_id: int) -> str:
        return self.edge_dict.get_string(edge_id)

    def get_node_idx(self, name: str):
        """Node index for ``name``, or None if the node is not in the graph."""
        return self.node_dict.get_index_if_present(name)

    def get_node_name(self, node_idx: int) -> str:
        return self.node_dict.get_string(node_idx)

    # ------------------------------------------------------------------
    # Neighbor queries
    # ------------------------------------------------------------------

    def _csr(self, reverse):
        if reverse:
            return self.rev_offsets, self.rev_edge_types, self.rev_sources
        return self.fwd_offsets, self.fwd_edge_types, self.fwd_targets

    def neighbors_by_edge(self, node_idx, edge_type, reverse):
        """Nodes reachable from ``node_idx`` over one edge of ``edge_type``.

        With ``reverse`` set, follows incoming edges of that type instead.
        Uses binary search inside the node's edge-type-sorted range.
        """
        offsets, types, neighbors = self._csr(reverse)
        start = int(offsets[node_idx])
        end = int(offsets[node_idx + 1])
        types_slice = types[start:end]
        left = int(np.searchsorted(types_slice, edge_type, side="left"))
        right = int(np.searchsorted(types_slice, edge_type, side="right"))
        return neighbors[start + left:start + right]

    def edges_at(self, node_idx):
        """All edges touching a node as ``(edge_type, reverse, neighbor_idx)`` tuples."""
        result = []
        for reverse in (False, True):
            offsets, types, neighbors = self._csr(reverse)
            start = int(offsets[node_idx])
            end = int(offsets[node_idx + 1])
            for pos in range(start, end):
                result.append((int(types[pos]), reverse, int(neighbors[pos])))
        return result

    def degree(self, node_idx):
        """Total number of incoming and outgoing edges at a node."""
        return int(
            self.fwd_offsets[node_idx + 1] - self.fwd_offsets[node_idx]
            + self.rev_offsets[node_idx + 1] - self.rev_offsets[node_idx]
        )
