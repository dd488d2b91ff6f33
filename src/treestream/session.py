"""Session controller that turns growing message text into tree snapshots."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError
from pydantic.type_adapter import TypeAdapter

from .buffer import LineBuffer
from .config import StreamConfig
from .decoder import SkipReason, inspect_patch_line
from .engine import PatchStatus, try_apply_patch
from .schema import ChatMessage
from .structured import Patch
from .telemetry import TelemetryChannel
from .tree import TreeStats, UITree, tree_stats

__all__ = [
    "LineOutcome",
    "StreamState",
    "StreamSummary",
    "TreeListener",
    "TreeStream",
]

LOGGER = logging.getLogger(__name__)

TreeListener = Callable[[UITree], None]


class StreamState(str, Enum):
    """Lifecycle of a session; there is no terminal state."""

    IDLE = "idle"
    STREAMING = "streaming"


@dataclass(frozen=True, slots=True)
class LineOutcome:
    """What happened to one line taken from the buffer."""

    line: str
    status: PatchStatus
    patch: Patch | None = None
    reason: str | None = None
    trailing: bool = False


@dataclass(slots=True)
class StreamSummary:
    """End-of-stream report returned by :meth:`TreeStream.finish`."""

    tree: UITree | None
    parse_error: str | None
    stats: TreeStats
    counts: Dict[str, int] = field(default_factory=dict)
    discarded_fragment: str = ""

    @property
    def dangling_refs(self) -> tuple[tuple[str, str], ...]:
        return self.stats.missing_child_refs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree": self.tree.to_dict() if self.tree is not None else None,
            "parse_error": self.parse_error,
            "stats": self.stats.to_dict(),
            "counts": dict(self.counts),
            "discarded_fragment": self.discarded_fragment,
        }


class TreeStream:
    """Own one tree and the accumulation state needed to build it from text.

    Every line is decoded and applied synchronously in arrival order. Failures
    never abort the session: unparseable lines and patches with nothing to do
    are skipped, and apply failures become :attr:`parse_error` while the tree
    keeps its last good state.
    """

    def __init__(self, config: StreamConfig | None = None) -> None:
        self._config = config or StreamConfig()
        self._buffer = LineBuffer()
        self._cursors: Dict[str, int] = {}
        self._tree: UITree | None = None
        self._parse_error: str | None = None
        self._state = StreamState.IDLE
        self._counts: Counter[str] = Counter()
        self._listeners: List[TreeListener] = []
        self._telemetry = TelemetryChannel(self._config.catalog.value)

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def tree(self) -> UITree | None:
        """Latest published snapshot, or ``None`` before the first one."""
        return self._tree

    @property
    def parse_error(self) -> str | None:
        """Most recent apply failure, for diagnostic display."""
        return self._parse_error

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def pending_fragment(self) -> str:
        return self._buffer.fragment

    def cursor(self, message_id: str) -> int:
        """Characters of ``message_id`` already consumed."""
        return self._cursors.get(message_id, 0)

    def subscribe(self, listener: TreeListener) -> Callable[[], None]:
        """Call ``listener`` with every published snapshot; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def sync(self, messages: Iterable[ChatMessage | Mapping[str, Any]]) -> List[LineOutcome]:
        """Consume the unseen text of every message with a configured role."""
        outcomes: List[LineOutcome] = []
        for raw in messages:
            message = self._coerce_message(raw)
            if message.role not in self._config.roles:
                continue
            outcomes.extend(self.update(message.id, message.text()))
        return outcomes

    def update(self, message_id: str, text: str) -> List[LineOutcome]:
        """Consume the part of ``text`` (the full message so far) not yet seen."""
        consumed = self._cursors.get(message_id, 0)
        if len(text) <= consumed:
            return []
        self._cursors[message_id] = len(text)
        return self.feed(text[consumed:])

    def feed(self, delta: str) -> List[LineOutcome]:
        """Append a raw delta, apply every completed line, then try the fragment."""
        if not delta:
            return []
        self._state = StreamState.STREAMING
        outcomes: List[LineOutcome] = []
        for line in self._buffer.push(delta):
            outcome = self._process_line(line)
            self._record(outcome)
            outcomes.append(outcome)
        if self._config.eager_trailing:
            trailing = self._apply_fragment()
            if trailing is not None:
                outcomes.append(trailing)
        return outcomes

    def finish(self) -> StreamSummary:
        """Signal that no more text will arrive and report on the final tree.

        The pending fragment is decoded once more as a last line. Whatever
        still cannot be decoded is discarded and reported. Children that never
        resolved are listed in the summary stats; they are not pruned.
        """
        discarded = ""
        if self._buffer.fragment:
            trailing = self._apply_fragment(final=True)
            if trailing is None or trailing.patch is None or trailing.status is PatchStatus.FAILED:
                discarded = self._buffer.take_fragment()

        stats = tree_stats(self._tree)
        summary = StreamSummary(
            tree=self._tree,
            parse_error=self._parse_error,
            stats=stats,
            counts=dict(self._counts),
            discarded_fragment=discarded,
        )
        self._telemetry.emit(
            "stream_finished",
            elements=stats.total,
            dangling=stats.missing_child_refs,
            orphans=stats.orphan_count,
            counts=summary.counts,
            parse_error=self._parse_error,
        )
        return summary

    def reset(self) -> None:
        """Drop the tree, buffered text, cursors and error; return to idle."""
        self._buffer.clear()
        self._cursors.clear()
        self._counts.clear()
        self._tree = None
        self._parse_error = None
        self._state = StreamState.IDLE
        self._telemetry.emit("stream_reset")

    def load_tree(self, tree: UITree) -> None:
        """Replace the tree wholesale with a pre-built one and publish it.

        Buffered text and the error are dropped; message cursors are kept so
        already-consumed text is not replayed on top of the loaded tree.
        """
        self._buffer.clear()
        self._parse_error = None
        self._state = StreamState.STREAMING
        self._telemetry.emit("tree_loaded", root=tree.root, elements=len(tree.elements))
        self._publish(tree)

    def _working_tree(self) -> UITree:
        return self._tree if self._tree is not None else UITree()

    def _apply_fragment(self, *, final: bool = False) -> Optional[LineOutcome]:
        """Try the buffered fragment as a complete line; clear it when it decodes.

        A fragment that stays buffered is retried on the next delta, so it is
        only recorded once consumed, or when ``final`` is set.
        """
        fragment = self._buffer.fragment
        if not fragment:
            return None
        outcome = self._process_line(fragment, trailing=True)
        consumed = outcome.patch is not None and outcome.status is not PatchStatus.FAILED
        if consumed:
            self._buffer.clear()
        if consumed or final:
            self._record(outcome)
        return outcome

    def _process_line(self, line: str, *, trailing: bool = False) -> LineOutcome:
        decoded = inspect_patch_line(
            line,
            data_prefix=self._config.data_prefix,
            comment_prefixes=self._config.comment_prefixes,
            fence_prefix=self._config.fence_prefix,
        )
        if decoded.patch is None:
            reason = decoded.reason.value if decoded.reason else None
            return LineOutcome(line, PatchStatus.SKIPPED, None, reason, trailing)

        result = try_apply_patch(self._working_tree(), decoded.patch)
        if result.status is PatchStatus.FAILED:
            self._parse_error = result.reason
        elif result.applied:
            self._publish(result.tree)
        return LineOutcome(line, result.status, decoded.patch, result.reason, trailing)

    def _record(self, outcome: LineOutcome) -> None:
        """Count ``outcome`` and report failures; called once per consumed line."""
        patch = outcome.patch
        if patch is None:
            if outcome.reason != SkipReason.EMPTY.value:
                self._counts["unparsed"] += 1
                LOGGER.debug("Skipping line (%s): %.80s", outcome.reason, outcome.line)
            return

        self._counts[outcome.status.value] += 1
        if outcome.status is PatchStatus.FAILED:
            LOGGER.warning("Failed to apply %s %s: %s", patch.op, patch.path, outcome.reason)
            self._telemetry.emit(
                "patch_failed",
                op=patch.op,
                path=patch.path,
                reason=outcome.reason,
                trailing=outcome.trailing,
            )
        elif outcome.status is PatchStatus.SKIPPED:
            LOGGER.debug("Skipped %s %s: %s", patch.op, patch.path, outcome.reason)

    def _publish(self, tree: UITree) -> None:
        self._tree = tree
        for listener in list(self._listeners):
            listener(tree)

    @staticmethod
    def _coerce_message(payload: ChatMessage | Mapping[str, Any]) -> ChatMessage:
        """Validate ``payload`` into a ``ChatMessage``."""
        if isinstance(payload, ChatMessage):
            return payload
        adapter = TypeAdapter(ChatMessage)
        try:
            return adapter.validate_python(payload)
        except ValidationError as error:
            raise ValueError(f"Message payload did not validate: {error}") from error
