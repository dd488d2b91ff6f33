"""Apply decoded patches to tree snapshots without mutating earlier snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping, Sequence, Tuple

from .errors import PatchApplyError
from .structured import Patch
from .tree import UITree

__all__ = [
    "ELEMENTS_PREFIX",
    "ROOT_PATH",
    "PatchResult",
    "PatchStatus",
    "apply_patch",
    "set_by_path",
    "try_apply_patch",
]

ROOT_PATH = "/root"
ELEMENTS_PREFIX = "/elements/"
_APPEND_SEGMENT = "-"


class PatchStatus(str, Enum):
    """Outcome of applying one patch."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PatchResult:
    """Tree produced by a patch together with how the patch was handled.

    ``tree`` is the input tree itself for skipped and failed patches.
    """

    status: PatchStatus
    tree: UITree
    patch: Patch
    reason: str | None = None

    @property
    def applied(self) -> bool:
        return self.status is PatchStatus.APPLIED


class _Skip(Exception):
    """Internal signal for patches that are valid but have nothing to do."""


def _list_index(container: Sequence[Any], segment: str, path: str) -> int:
    """Resolve ``segment`` to a list position; ``len`` means append."""
    if segment == _APPEND_SEGMENT:
        return len(container)
    if not (segment.isascii() and segment.isdigit()):
        raise PatchApplyError(
            f"Cannot set {path}: '{segment}' is not a list index.",
            details={"path": path, "segment": segment},
        )
    index = int(segment)
    if index > len(container):
        raise PatchApplyError(
            f"Cannot set {path}: index {index} is out of range.",
            details={"path": path, "segment": segment, "length": len(container)},
        )
    return index


def _next_container(child: Any, segment: str, path: str) -> Any:
    """Return the container to descend into; missing or scalar slots become objects."""
    if child is None:
        raise PatchApplyError(
            f"Cannot set {path}: '{segment}' is null.",
            details={"path": path, "segment": segment},
        )
    if not isinstance(child, (Mapping, list)):
        return {}
    return child


def _set_in(target: Any, segments: Sequence[str], value: Any, path: str) -> Any:
    """Copy every container along ``segments`` and write ``value`` at the end.

    The walk is iterative so path depth is bounded only by memory.
    """
    copies: List[Tuple[Any, Any]] = []
    current = target
    last = len(segments) - 1
    for depth, segment in enumerate(segments):
        if isinstance(current, Mapping):
            node: Any = dict(current)
            slot: Any = segment
            if depth < last:
                if segment in current:
                    child = _next_container(current[segment], segment, path)
                else:
                    child = {}
        elif isinstance(current, list):
            node = list(current)
            slot = _list_index(current, segment, path)
            if depth < last:
                child = _next_container(node[slot], segment, path) if slot < len(node) else {}
        else:
            kind = "null" if current is None else type(current).__name__
            raise PatchApplyError(
                f"Cannot set {path}: target is {kind}, not an object or array.",
                details={"path": path, "segment": segment},
            )
        copies.append((node, slot))
        if depth < last:
            current = child

    for node, slot in reversed(copies):
        if isinstance(node, list) and slot == len(node):
            node.append(value)
        else:
            node[slot] = value
        value = node
    return value


def set_by_path(target: Any, path: str, value: Any) -> Any:
    """Return a copy of ``target`` with ``value`` written at ``path``.

    Containers along the path are copied, everything else is shared with
    ``target``. Missing or scalar intermediate members of objects are replaced
    with new objects. Writing through ``null`` raises ``PatchApplyError``.
    """
    segments = path[1:].split("/") if path.startswith("/") else path.split("/")
    return _set_in(target, segments, value, path)


def _root_key(value: Any) -> str:
    """Coerce a root value to a key; null clears the root."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _split_element_path(path: str) -> tuple[str, str | None]:
    """Split ``/elements/{key}/{rest}`` into the key and the nested path."""
    key, separator, rest = path[len(ELEMENTS_PREFIX) :].partition("/")
    if not separator:
        return key, None
    return key, "/" + rest


def _apply(tree: UITree, patch: Patch) -> UITree:
    path = patch.path

    if patch.is_write:
        if path == ROOT_PATH:
            return tree.with_root(_root_key(patch.value))
        if not path.startswith(ELEMENTS_PREFIX):
            raise _Skip(f"unsupported path {path}")
        key, nested = _split_element_path(path)
        if not key:
            raise _Skip("missing element key")
        elements = dict(tree.elements)
        if nested is None:
            elements[key] = patch.value
            return tree.with_elements(elements)
        if key not in elements:
            raise _Skip(f"element '{key}' does not exist")
        try:
            elements[key] = set_by_path(elements[key], nested, patch.value)
        except PatchApplyError as error:
            error.details.setdefault("element", key)
            raise
        return tree.with_elements(elements)

    if patch.is_remove:
        if not path.startswith(ELEMENTS_PREFIX):
            raise _Skip(f"unsupported path {path}")
        key, nested = _split_element_path(path)
        if not key or nested is not None:
            raise _Skip(f"unsupported remove path {path}")
        if key not in tree.elements:
            raise _Skip(f"element '{key}' does not exist")
        elements = dict(tree.elements)
        del elements[key]
        return tree.with_elements(elements)

    raise _Skip(f"unsupported op {patch.op}")


def apply_patch(tree: UITree, patch: Patch) -> UITree:
    """Return the tree produced by ``patch``; raises ``PatchApplyError`` on failure.

    Patches with nothing to do (unknown op or path, nested writes to an
    element that does not exist yet, removing a missing element) return
    ``tree`` unchanged.
    """
    try:
        return _apply(tree, patch)
    except _Skip:
        return tree


def try_apply_patch(tree: UITree, patch: Patch) -> PatchResult:
    """Apply ``patch`` and report the outcome instead of raising."""
    try:
        updated = _apply(tree, patch)
    except _Skip as skip:
        return PatchResult(PatchStatus.SKIPPED, tree, patch, str(skip))
    except PatchApplyError as error:
        return PatchResult(PatchStatus.FAILED, tree, patch, str(error))
    return PatchResult(PatchStatus.APPLIED, updated, patch)
