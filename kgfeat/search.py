"""Walk a graph under the guidance of a feature matcher."""

import logging

from kgfeat.graph import Graph
from kgfeat.matchers import UNKNOWN, FeatureMatcher

logger = logging.getLogger(__name__)


def _step(graph: Graph, node_idx, matcher: FeatureMatcher, steps_taken):
    """Nodes reachable from ``node_idx`` in one step the matcher accepts."""
    allowed = matcher.allowed_edges(steps_taken)
    if allowed is UNKNOWN:
        candidates = [
            neighbor
            for edge_type, reverse, neighbor in graph.edges_at(node_idx)
            if matcher.edge_ok(edge_type, reverse, steps_taken)
        ]
    else:
        # Read only the edge-type slices the matcher can accept
        candidates = []
        for edge_type, reverse in allowed.values:
            candidates.extend(
                int(n) for n in graph.neighbors_by_edge(node_idx, edge_type, reverse)
            )
    return {n for n in candidates if matcher.node_ok(n, steps_taken + 1)}


def find_matching_nodes(graph: Graph, start_idx, matcher: FeatureMatcher, max_fanout=None):
    """Find the nodes a matcher's feature leads to from ``start_idx``.

    The walk advances the whole frontier one step at a time. At each step the
    matcher either enumerates the admissible edges, in which case only those
    adjacency slices are read, or the walker scans every edge at the node and
    asks ``edge_ok``.

    Args:
        graph: The Graph to walk
        start_idx: Index of the node the feature is anchored at
        matcher: Matcher for the feature
        max_fanout: Optional cap on the frontier size; larger frontiers are
            truncated (lowest node indices kept) with a warning

    Returns:
        Set of node indices where a complete match ends
    """
    if not matcher.node_ok(start_idx, 0):
        return set()

    frontier = {start_idx}
    steps_taken = 0
    while not matcher.is_finished(steps_taken):
        next_frontier = set()
        for node_idx in frontier:
            next_frontier |= _step(graph, node_idx, matcher, steps_taken)
        steps_taken += 1

        if not next_frontier:
            return set()
        if max_fanout is not None and len(next_frontier) > max_fanout:
            logger.warning(
                f"Frontier of {len(next_frontier):,} nodes after {steps_taken} steps "
                f"exceeds max_fanout={max_fanout:,}; truncating"
            )
            next_frontier = set(sorted(next_frontier)[:max_fanout])
        frontier = next_frontier

    return frontier
