"""
Graph traversal helpers.

Feature graphs and provides tables are small adjacency mappings; these
helpers walk them iteratively so deep or cyclic inputs never hit the
recursion limit.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Hashable, Iterable, Set, TypeVar

T = TypeVar("T", bound=Hashable)


def traverse_depth(successors: Callable[[T], Iterable[T]], start: T) -> Set[T]:
    """Return every node reachable from ``start`` in one or more steps.

    ``start`` itself is only included when it lies on a cycle, which makes
    ``start in traverse_depth(...)`` a cycle check.

    Args:
        successors: Returns the direct successors of a node (empty when
            the node is unknown).
        start: Node to begin from.
    """
    remaining = deque([start])
    seen: Set[T] = set()
    while remaining:
        node = remaining.popleft()
        for successor in successors(node):
            if successor not in seen:
                seen.add(successor)
                remaining.append(successor)
    return seen
