"""Immutable tree snapshots and structural diagnostics."""

from __future__ import annotations

import copy
from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Tuple

__all__ = ["TreeStats", "UITree", "tree_stats"]


@dataclass(frozen=True, slots=True)
class UITree:
    """Root key plus the flat key to element mapping handed to renderers.

    Elements reference their children by key, so the mapping may contain
    dangling references or elements with several parents. Snapshots are never
    mutated once built; every patch produces a new ``UITree``.
    """

    root: str = ""
    elements: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.elements, MappingProxyType):
            object.__setattr__(self, "elements", MappingProxyType(dict(self.elements)))

    def with_root(self, root: str) -> "UITree":
        return UITree(root=root, elements=self.elements)

    def with_elements(self, elements: Mapping[str, Any]) -> "UITree":
        return UITree(root=self.root, elements=elements)

    def to_dict(self) -> dict[str, Any]:
        """Return a detached, JSON-friendly copy of the tree."""
        return {
            "root": self.root,
            "elements": {key: copy.deepcopy(value) for key, value in self.elements.items()},
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "UITree":
        root = data.get("root")
        elements = data.get("elements")
        return cls(
            root=root if isinstance(root, str) else "",
            elements=dict(elements) if isinstance(elements, Mapping) else {},
        )


@dataclass(slots=True)
class TreeStats:
    """Reachability summary for a tree snapshot."""

    total: int = 0
    reachable: int = 0
    orphan_count: int = 0
    missing_child_refs: Tuple[Tuple[str, str], ...] = ()
    root_present: bool = False

    @property
    def dangling_count(self) -> int:
        return len(self.missing_child_refs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "reachable": self.reachable,
            "orphan_count": self.orphan_count,
            "root_present": self.root_present,
            "missing_child_refs": [
                {"parent": parent, "child": child} for parent, child in self.missing_child_refs
            ],
        }


def _child_keys(element: Any) -> list[str]:
    """Return the child keys listed by ``element``, ignoring malformed entries."""
    if not isinstance(element, Mapping):
        return []
    children = element.get("children")
    if not isinstance(children, (list, tuple)):
        return []
    return [child for child in children if isinstance(child, str)]


def tree_stats(tree: UITree | None) -> TreeStats:
    """Count reachable, orphaned and dangling entries of ``tree``.

    Reachability is a breadth-first walk from the root over children that
    exist. Missing child references are reported for every element, reachable
    or not, in mapping order.
    """
    if tree is None:
        return TreeStats()

    elements = tree.elements
    missing: list[Tuple[str, str]] = []
    for key, element in elements.items():
        for child in _child_keys(element):
            if child not in elements:
                missing.append((key, child))

    reachable: set[str] = set()
    root_present = bool(tree.root) and tree.root in elements
    if root_present:
        queue: deque[str] = deque([tree.root])
        while queue:
            key = queue.popleft()
            if key in reachable:
                continue
            reachable.add(key)
            for child in _child_keys(elements.get(key)):
                if child in elements and child not in reachable:
                    queue.append(child)

    return TreeStats(
        total=len(elements),
        reachable=len(reachable),
        orphan_count=sum(1 for key in elements if key not in reachable),
        missing_child_refs=tuple(missing),
        root_present=root_present,
    )
