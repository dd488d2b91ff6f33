"""Build live UI trees from streamed, newline-delimited JSON patches."""

from .buffer import LineBuffer
from .config import StreamConfig, load_config
from .decoder import LineDecode, SkipReason, decode_patch_line, inspect_patch_line
from .engine import PatchResult, PatchStatus, apply_patch, set_by_path, try_apply_patch
from .errors import ConfigError, PatchApplyError, TreePayloadError, TreeStreamError
from .schema import Catalog, ChatMessage, MessagePart
from .session import LineOutcome, StreamState, StreamSummary, TreeStream
from .structured import Patch
from .tree import TreeStats, UITree, tree_stats

__all__ = [
    "Catalog",
    "ChatMessage",
    "ConfigError",
    "LineBuffer",
    "LineDecode",
    "LineOutcome",
    "MessagePart",
    "Patch",
    "PatchApplyError",
    "PatchResult",
    "PatchStatus",
    "SkipReason",
    "StreamConfig",
    "StreamState",
    "StreamSummary",
    "TreePayloadError",
    "TreeStats",
    "TreeStream",
    "TreeStreamError",
    "UITree",
    "apply_patch",
    "decode_patch_line",
    "inspect_patch_line",
    "load_config",
    "set_by_path",
    "tree_stats",
    "try_apply_patch",
]
