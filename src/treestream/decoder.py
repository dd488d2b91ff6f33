"""Tolerant decoding of one patch record per line of streamed text."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from .structured import Patch

__all__ = [
    "DATA_PREFIX",
    "FENCE_PREFIX",
    "LineDecode",
    "SkipReason",
    "decode_patch_line",
    "inspect_patch_line",
]

DATA_PREFIX = "data:"
COMMENT_PREFIXES: tuple[str, ...] = ("//",)
FENCE_PREFIX = "```"

_TRAILING_COMMAS = re.compile(r",+\s*$")


class SkipReason(str, Enum):
    """Why a line did not yield a patch."""

    EMPTY = "empty"
    COMMENT = "comment"
    FENCE = "fence"
    INVALID_JSON = "invalid_json"
    NOT_A_PATCH = "not_a_patch"


@dataclass(frozen=True, slots=True)
class LineDecode:
    """Result of decoding a single line: a patch or the reason there is none."""

    patch: Patch | None = None
    reason: SkipReason | None = None


class _NonStandardConstant(ValueError):
    pass


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(f"Non-standard JSON constant: {name}")


def _loads(candidate: str) -> Any:
    """Parse strict JSON, rejecting NaN and Infinity literals."""
    return json.loads(candidate, parse_constant=_reject_constant)


def _coerce_patch(data: Any) -> Patch | None:
    """Build a ``Patch`` from decoded JSON when it has the expected shape."""
    if not isinstance(data, dict):
        return None
    op = data.get("op")
    path = data.get("path")
    if not isinstance(op, str) or not isinstance(path, str):
        return None
    return Patch(op=op, path=path, value=data.get("value"))


def _decode_record(text: str) -> tuple[Any, bool]:
    """Decode ``text`` directly, falling back to its outermost braces.

    Nesting too deep for the parser counts as undecodable.
    """
    try:
        return _loads(text), True
    except (ValueError, RecursionError):
        pass
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return _loads(text[start : end + 1]), True
        except (ValueError, RecursionError):
            pass
    return None, False


def inspect_patch_line(
    line: str,
    *,
    data_prefix: str = DATA_PREFIX,
    comment_prefixes: Sequence[str] = COMMENT_PREFIXES,
    fence_prefix: str = FENCE_PREFIX,
) -> LineDecode:
    """Decode ``line`` and explain the outcome. Never raises."""
    trimmed = line.strip()
    if not trimmed:
        return LineDecode(reason=SkipReason.EMPTY)
    if fence_prefix and trimmed.startswith(fence_prefix):
        return LineDecode(reason=SkipReason.FENCE)
    if any(prefix and trimmed.startswith(prefix) for prefix in comment_prefixes):
        return LineDecode(reason=SkipReason.COMMENT)

    if data_prefix and trimmed.startswith(data_prefix):
        trimmed = trimmed[len(data_prefix) :].strip()

    trimmed = _TRAILING_COMMAS.sub("", trimmed)
    if not trimmed:
        return LineDecode(reason=SkipReason.EMPTY)

    data, decoded = _decode_record(trimmed)
    if not decoded:
        return LineDecode(reason=SkipReason.INVALID_JSON)
    patch = _coerce_patch(data)
    if patch is None:
        return LineDecode(reason=SkipReason.NOT_A_PATCH)
    return LineDecode(patch=patch)


def decode_patch_line(
    line: str,
    *,
    data_prefix: str = DATA_PREFIX,
    comment_prefixes: Sequence[str] = COMMENT_PREFIXES,
    fence_prefix: str = FENCE_PREFIX,
) -> Patch | None:
    """Return the patch carried by ``line`` or ``None`` when there is none."""
    return inspect_patch_line(
        line,
        data_prefix=data_prefix,
        comment_prefixes=comment_prefixes,
        fence_prefix=fence_prefix,
    ).patch
