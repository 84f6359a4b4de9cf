"""Path types: sequences of typed, directed edge steps.

A path type is written in human-readable form as ``-name1-name2-...-``, where
each name is an edge type from the graph's vocabulary. Prefixing a name with
``_`` means the edge is traversed against its direction, so ``-a-_b-`` reads
"follow an ``a`` edge forward, then a ``b`` edge backward".
"""

from dataclasses import dataclass
from typing import Tuple

DELIMITER = "-"
REVERSE_PREFIX = "_"


class PathParseError(ValueError):
    """Raised when a path type string has a malformed delimiter structure."""


@dataclass(frozen=True)
class PathDescriptor:
    """Immutable sequence of ``(edge_type_id, reverse)`` steps."""

    steps: Tuple[Tuple[int, bool], ...] = ()

    def __post_init__(self):
        steps = tuple((int(edge_id), bool(reverse)) for edge_id, reverse in self.steps)
        for edge_id, _ in steps:
            if edge_id < 0:
                raise ValueError(f"Edge type ids must be non-negative, got {edge_id}")
        object.__setattr__(self, "steps", steps)

    @classmethod
    def empty(cls):
        return cls(())

    @property
    def num_hops(self) -> int:
        return len(self.steps)

    def edge_type(self, index: int) -> int:
        return self.steps[index][0]

    def reverse(self, index: int) -> bool:
        return self.steps[index][1]

    def __add__(self, other):
        if not isinstance(other, PathDescriptor):
            return NotImplemented
        return PathDescriptor(self.steps + other.steps)

    def __len__(self):
        return len(self.steps)


class PathTypeFactory:
    """Creates and combines path types against a graph's edge vocabulary.

    The graph must provide ``get_edge_index(name)`` (raising KeyError for
    names it does not know) and ``get_edge_name(edge_id)``.
    """

    def __init__(self, graph):
        self.graph = graph

    def empty_path_type(self) -> PathDescriptor:
        return PathDescriptor.empty()

    def from_human_readable_string(self, description: str) -> PathDescriptor:
        """Parse ``-name1-_name2-...-`` into a PathDescriptor.

        Trailing empty tokens are ignored, so ``-a-b--`` parses the same as
        ``-a-b-``; callers that need to reject that form must check for it.

        Raises:
            PathParseError: the string does not start with the delimiter, or
                contains an empty step (``--``) or a bare reverse marker.
            KeyError: a step names an edge type the graph does not have.
        """
        if not description.startswith(DELIMITER):
            raise PathParseError(
                f"Path type must start with '{DELIMITER}': {description!r}"
            )
        tokens = description[1:].split(DELIMITER)
        while tokens and tokens[-1] == "":
            tokens.pop()

        steps = []
        for position, token in enumerate(tokens):
            if not token:
                raise PathParseError(
                    f"Empty step at position {position} in {description!r}"
                )
            reverse = token[0] == REVERSE_PREFIX
            name = token[1:] if reverse else token
            if not name:
                raise PathParseError(
                    f"Reverse marker without an edge name at position {position} "
                    f"in {description!r}"
                )
            steps.append((self.graph.get_edge_index(name), reverse))
        return PathDescriptor(tuple(steps))

    def to_human_readable_string(self, path: PathDescriptor) -> str:
        parts = [DELIMITER]
        for edge_id, reverse in path.steps:
            if reverse:
                parts.append(REVERSE_PREFIX)
            parts.append(self.graph.get_edge_name(edge_id))
            parts.append(DELIMITER)
        return "".join(parts)

    def concatenate_path_types(
        self, path_to_source: PathDescriptor, path_from_target: PathDescriptor
    ) -> PathDescriptor:
        """Join a path walked out of the source with one walked out of the target.

        Both halves meet at a shared middle node, so the target half is
        appended in reverse order with each step's direction flipped. With an
        empty first half this re-expresses a target-relative path as the
        equivalent path from the source.
        """
        flipped = tuple(
            (edge_id, not reverse) for edge_id, reverse in reversed(path_from_target.steps)
        )
        return PathDescriptor(path_to_source.steps + flipped)
