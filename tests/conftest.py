from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from treestream.session import TreeStream  # noqa: E402


def _patch_line(op: str, path: str, value: Any = None, *, with_value: bool = True) -> str:
    record: dict[str, Any] = {"op": op, "path": path}
    if with_value and op != "remove":
        record["value"] = value
    return json.dumps(record, separators=(",", ":"))


@pytest.fixture()
def patch_line() -> Callable[..., str]:
    """Render a single patch record as one compact JSON line (no newline)."""

    return _patch_line


@pytest.fixture()
def stream() -> TreeStream:
    """Fresh session with default settings."""

    return TreeStream()
