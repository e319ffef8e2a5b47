"""Search and toggle filters over an ``AssetTree``."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple

from domain_types import AssetTree, TreeNode

__all__ = [
    "FilterCriteria",
    "Predicate",
    "apply_filters",
    "filter_nodes",
    "has_energy_sensor",
    "is_critical",
    "text_match",
]

Predicate = Callable[[TreeNode], bool]

# (node, its children, next child index, surviving children, parent's list)
_Frame = Tuple[
    Optional[TreeNode], Sequence[TreeNode], List[int], List[TreeNode], List[TreeNode]
]

ENERGY_SENSOR = "energy"
CRITICAL_STATUS = "critical"


def text_match(query: str) -> Predicate:
    """Case-insensitive substring match against the node name."""

    needle = query.strip().casefold()

    def _matches(node: TreeNode) -> bool:
        return needle in (node.name or "").casefold()

    return _matches


def has_energy_sensor(node: TreeNode) -> bool:
    return node.sensor_type == ENERGY_SENSOR


def is_critical(node: TreeNode) -> bool:
    return node.status == CRITICAL_STATUS


@dataclass(frozen=True)
class FilterCriteria:
    """Active filters; every active one must hold for a direct match."""

    text: str = ""
    energy_sensor: bool = False
    critical: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.predicates())

    def predicates(self) -> list[Predicate]:
        active: list[Predicate] = []
        if self.text.strip():
            active.append(text_match(self.text))
        if self.energy_sensor:
            active.append(has_energy_sensor)
        if self.critical:
            active.append(is_critical)
        return active

    def matches(self, node: TreeNode) -> bool:
        return all(predicate(node) for predicate in self.predicates())


def filter_nodes(
    nodes: Sequence[TreeNode],
    predicates: Sequence[Predicate],
) -> list[TreeNode]:
    """Return copies of the nodes that match or lead to a match.

    Children are filtered first. A node is kept when it satisfies every
    predicate itself or when any of its children was kept; in both cases it
    only carries the surviving children. Uses an explicit stack so deep
    hierarchies do not hit the recursion limit.
    """

    kept: list[TreeNode] = []
    stack: list[_Frame] = [(None, nodes, [0], kept, kept)]
    while stack:
        node, children, cursor, survivors, siblings = stack[-1]
        if cursor[0] < len(children):
            child = children[cursor[0]]
            cursor[0] += 1
            stack.append((child, child.children, [0], [], survivors))
            continue
        stack.pop()
        if node is None:
            continue
        if survivors or all(predicate(node) for predicate in predicates):
            siblings.append(replace(node, children=survivors))
    return kept


def apply_filters(tree: AssetTree, criteria: FilterCriteria) -> AssetTree:
    """Derive the visible tree for ``criteria`` without touching ``tree``."""

    predicates = criteria.predicates()
    if not predicates:
        return tree
    root = replace(tree.root, children=filter_nodes(tree.nodes, predicates))
    return AssetTree(root=root)
