"""Feature matchers: decide whether a graph traversal realizes a feature.

A matcher is built (generally) from a single feature and filters a graph
walk to the subgraphs that could have generated that feature. Matchers only
answer membership questions; they never compute feature probabilities.

Matchers hold no traversal state. Every query takes ``steps_taken``, the
number of edges the caller has already followed, so one matcher can serve
many in-flight walks from different threads at once.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from kgfeat.path_types import DELIMITER, PathDescriptor, PathParseError, PathTypeFactory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Enumerated:
    """A complete, enumerable set of admissible values at a step."""

    values: frozenset


class _Unknown:
    """No cheaply enumerable restriction exists; query each candidate instead."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNKNOWN"


UNKNOWN = _Unknown()


class FeatureMatcher:
    """Interface shared by all matcher variants."""

    def is_finished(self, steps_taken: int) -> bool:
        """Whether the whole feature has been matched after ``steps_taken`` steps."""
        raise NotImplementedError

    def edge_ok(self, edge_id: int, reverse: bool, steps_taken: int) -> bool:
        """Whether following this edge type in this direction keeps the walk consistent."""
        raise NotImplementedError

    def node_ok(self, node_id: int, steps_taken: int) -> bool:
        """Whether landing on this node after ``steps_taken`` steps is acceptable."""
        raise NotImplementedError

    def allowed_edges(self, steps_taken: int):
        """``Enumerated`` set of ``(edge_id, reverse)`` pairs, or ``UNKNOWN``.

        Querying ``edge_ok`` for every edge type at a node is wasteful when
        only one edge type can match. When the complete admissible set is
        cheap to compute it is returned here; ``UNKNOWN`` means the caller has
        to fall back to ``edge_ok`` on each present edge.
        """
        raise NotImplementedError

    def allowed_nodes(self, steps_taken: int):
        """Same contract as ``allowed_edges``, for node ids."""
        raise NotImplementedError


class EmptyFeatureMatcher(FeatureMatcher):
    """Matches nothing. Used as the sentinel when no matcher applies."""

    def is_finished(self, steps_taken):
        return True

    def edge_ok(self, edge_id, reverse, steps_taken):
        return False

    def node_ok(self, node_id, steps_taken):
        return False

    def allowed_edges(self, steps_taken):
        return UNKNOWN

    def allowed_nodes(self, steps_taken):
        return UNKNOWN

    def __repr__(self):
        return "EmptyFeatureMatcher()"


@dataclass(frozen=True)
class PathFeatureMatcher(FeatureMatcher):
    """Matches exactly one path type, step by step, with no node constraints."""

    path_type: PathDescriptor

    @property
    def num_hops(self):
        return self.path_type.num_hops

    def is_finished(self, steps_taken):
        return steps_taken >= self.path_type.num_hops

    def edge_ok(self, edge_id, reverse, steps_taken):
        return (
            0 <= steps_taken < self.path_type.num_hops
            and self.path_type.edge_type(steps_taken) == edge_id
            and self.path_type.reverse(steps_taken) == reverse
        )

    def node_ok(self, node_id, steps_taken):
        return True

    def allowed_edges(self, steps_taken):
        if 0 <= steps_taken < self.path_type.num_hops:
            return Enumerated(frozenset([self.path_type.steps[steps_taken]]))
        return UNKNOWN

    def allowed_nodes(self, steps_taken):
        return UNKNOWN


def create_matcher(feature: str, start_from_source: bool, graph) -> Optional[PathFeatureMatcher]:
    """Create a PathFeatureMatcher if ``feature`` looks like a plain path feature.

    Returns None, without raising, when the text is not a path feature or
    names edge types the graph does not have. This is the normal outcome when
    sniffing feature strings of other kinds.

    Args:
        feature: Feature text such as ``-a-_b-``
        start_from_source: Whether the feature is written relative to the
            source node of the pair. If False it is relative to the target and
            is re-expressed from the source before matching.
        graph: Graph providing the edge-type vocabulary

    Returns:
        A PathFeatureMatcher, or None
    """
    if not feature.startswith(DELIMITER) or not feature.endswith(DELIMITER):
        return None
    # The tokenizer drops trailing empty tokens, so this form would otherwise
    # parse without complaint.
    if feature.endswith(DELIMITER * 2):
        return None
    if len(feature) <= 2:
        return None

    factory = PathTypeFactory(graph)
    try:
        path_type = factory.from_human_readable_string(feature)
    except KeyError as e:
        logger.debug(f"Feature {feature!r} references unknown edge type {e}")
        return None
    except PathParseError as e:
        logger.debug(f"Feature {feature!r} is malformed: {e}")
        return None

    if not start_from_source:
        path_type = factory.concatenate_path_types(factory.empty_path_type(), path_type)
    return PathFeatureMatcher(path_type)
