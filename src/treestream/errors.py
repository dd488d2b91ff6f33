"""Exception hierarchy shared by the tree streaming components."""

from __future__ import annotations

from typing import Any, Mapping

__all__ = [
    "ConfigError",
    "PatchApplyError",
    "TreePayloadError",
    "TreeStreamError",
]


class TreeStreamError(RuntimeError):
    """Base error raised by treestream with optional structured details."""

    def __init__(self, message: str, *, details: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = dict(details or {})


class PatchApplyError(TreeStreamError):
    """Raised when a patch value cannot be written at its target path."""


class ConfigError(TreeStreamError):
    """Raised when stream configuration is malformed."""


class TreePayloadError(TreeStreamError):
    """Raised when a pre-built tree payload fails validation."""
