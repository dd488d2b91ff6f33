"""Newline framing for text that arrives in arbitrary chunks."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["LineBuffer"]


@dataclass(slots=True)
class LineBuffer:
    """Accumulate deltas and surface each newline-terminated line exactly once."""

    fragment: str = ""

    def push(self, delta: str) -> list[str]:
        """Append ``delta`` and return the lines it completed, in order.

        The text after the last newline stays buffered until a later delta
        terminates it.
        """
        if not delta:
            return []
        combined = self.fragment + delta
        if "\n" not in delta:
            self.fragment = combined
            return []
        *lines, self.fragment = combined.split("\n")
        return lines

    def take_fragment(self) -> str:
        """Return the pending fragment and empty the buffer."""
        fragment, self.fragment = self.fragment, ""
        return fragment

    def clear(self) -> None:
        self.fragment = ""
