"""
Forest building from flat parent-referencing rows.

    forest = build_forest(departments, id_of=lambda d: d.id,
                          parent_of=lambda d: d.parent_department_id)

Rules:
- roots and children keep input order
- a parent id that is missing from the input makes the node a root
- a node whose ancestor chain leads back to itself is made a root, so
  every input item appears exactly once in the forest
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Hashable, Iterable, Iterator, Sequence, TypeVar

from shared.config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class TreeNode(Generic[T]):
    item: T
    children: list["TreeNode[T]"] = field(default_factory=list)


def build_forest(
    items: Iterable[T],
    id_of: Callable[[T], Hashable],
    parent_of: Callable[[T], Hashable | None],
) -> list[TreeNode[T]]:
    nodes = [TreeNode(item) for item in items]

    index: dict[Hashable, int] = {}
    for position, node in enumerate(nodes):
        index.setdefault(id_of(node.item), position)

    # Position of the parent each node will hang from, None for roots
    parent_pos: list[int | None] = [index.get(parent_of(node.item)) for node in nodes]
    for position, node in enumerate(nodes):
        if parent_pos[position] is not None and _reaches(parent_pos, position):
            parent_pos[position] = None
            logger.warning(
                "Cyclic parent reference, node placed at root",
                node_id=id_of(node.item),
                parent_id=parent_of(node.item),
            )

    roots: list[TreeNode[T]] = []
    for position, node in enumerate(nodes):
        parent = parent_pos[position]
        if parent is None:
            roots.append(node)
        else:
            nodes[parent].children.append(node)
    return roots


def _reaches(parent_pos: Sequence[int | None], start: int) -> bool:
    """True if following parents from `start`'s parent arrives back at `start`."""
    visited = {start}
    current = parent_pos[start]
    while current is not None:
        if current == start:
            return True
        if current in visited:
            # A cycle further up that does not include `start`
            return False
        visited.add(current)
        current = parent_pos[current]
    return False


def iter_nodes(forest: Iterable[TreeNode[T]]) -> Iterator[tuple[TreeNode[T], int]]:
    """Depth-first, pre-order walk yielding (node, depth); roots have depth 0."""
    stack = [(node, 0) for node in reversed(list(forest))]
    while stack:
        node, depth = stack.pop()
        yield node, depth
        stack.extend((child, depth + 1) for child in reversed(node.children))


def count_nodes(forest: Iterable[TreeNode[T]]) -> int:
    return sum(1 for _ in iter_nodes(forest))


def max_depth(forest: Iterable[TreeNode[T]]) -> int:
    """Number of levels: 0 for an empty forest, 1 when there are only roots."""
    return max((depth + 1 for _, depth in iter_nodes(forest)), default=0)


def map_forest(
    forest: Sequence[TreeNode[T]],
    convert: Callable[[T, list[R]], R],
) -> list[R]:
    """
    Convert a forest bottom-up: `convert(item, converted_children)`.

    Used to turn nodes into nested response schemas.
    """
    converted: dict[int, R] = {}
    # Reverse pre-order visits every child before its parent
    for node, _ in reversed(list(iter_nodes(forest))):
        converted[id(node)] = convert(node.item, [converted[id(child)] for child in node.children])
    return [converted[id(root)] for root in forest]

