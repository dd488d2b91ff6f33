"""Structured telemetry events emitted while streaming trees."""

from __future__ import annotations

import itertools
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["TELEMETRY_LOGGER", "TelemetryChannel", "emit_event"]

TELEMETRY_LOGGER = logging.getLogger("treestream.telemetry")

_SESSION_IDS = itertools.count(1)


def _jsonable(value: Any) -> Any:
    """Reduce ``value`` to JSON types; reports exposing ``to_dict`` are expanded."""
    if isinstance(value, Enum):
        return _jsonable(value.value)
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return _jsonable(to_dict())
    if isinstance(value, Mapping):
        return {str(key): _jsonable(child) for key, child in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(item) for item in value]
    if isinstance(value, Path):
        return value.as_posix()
    return str(value)


def emit_event(event: str, **fields: Any) -> None:
    """Log ``event`` and its fields as one compact JSON line."""
    if not TELEMETRY_LOGGER.isEnabledFor(logging.INFO):
        return
    record: Dict[str, Any] = {
        "event": event,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    record.update((key, _jsonable(value)) for key, value in fields.items())
    TELEMETRY_LOGGER.info(json.dumps(record, separators=(",", ":"), ensure_ascii=True))


class TelemetryChannel:
    """Emit events tagged with the catalog and session they belong to."""

    def __init__(self, catalog: str, session: str | None = None) -> None:
        self.catalog = catalog
        self.session = session or f"ts-{next(_SESSION_IDS)}"

    def emit(self, event: str, **fields: Any) -> None:
        emit_event(event, catalog=self.catalog, session=self.session, **fields)
