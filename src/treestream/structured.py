"""Typed payloads that describe patch records decoded from a stream."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

WRITE_OPS = frozenset({"set", "add", "replace"})
REMOVE_OP = "remove"


@dataclass(frozen=True, slots=True)
class Patch:
    """Single tree mutation addressed by a slash-delimited path.

    ``op`` is kept as the raw string so unknown operations survive decoding
    and are ignored at application time.
    """

    op: str
    path: str
    value: Any = None

    @property
    def is_write(self) -> bool:
        return self.op in WRITE_OPS

    @property
    def is_remove(self) -> bool:
        return self.op == REMOVE_OP
