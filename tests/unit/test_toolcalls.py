from __future__ import annotations

import pytest

from treestream.errors import TreePayloadError
from treestream.schema import Catalog, ExpiryTtl
from treestream.session import TreeStream
from treestream.toolcalls import (
    build_todo_assistant_tree,
    parse_tree_payload,
    resolve_todo_suggestions,
    run_todo_tool,
    tree_from_tool_output,
)
from treestream.tree import tree_stats


def _render_ui_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "title": "Revenue",
        "registry": "dashboard",
        "tree": {
            "root": "card",
            "elements": {"card": {"key": "card", "type": "Card", "props": {"title": "Revenue"}}},
        },
        "dataSnapshot": {"analytics": {"revenue": 10}},
    }
    payload.update(overrides)
    return payload


def test_tree_from_tool_output_applies_defaults() -> None:
    output = tree_from_tool_output(_render_ui_payload())

    assert output.registry is Catalog.DASHBOARD
    assert output.mode == "snapshot"
    assert output.expiry_policy == "none"
    assert output.data_snapshot == {"analytics": {"revenue": 10}}
    assert output.ui_tree().root == "card"


def test_tree_from_tool_output_accepts_ttl_expiry() -> None:
    output = tree_from_tool_output(_render_ui_payload(expiryPolicy={"ttlMs": 5000}, mode="live"))

    assert isinstance(output.expiry_policy, ExpiryTtl)
    assert output.expiry_policy.ttl_ms == 5000
    assert output.mode == "live"


@pytest.mark.parametrize(
    "overrides",
    [
        {"registry": "spreadsheet"},
        {"tree": {"elements": {}}},
        {"title": ""},
        {"expiryPolicy": {"ttlMs": 0}},
    ],
)
def test_tree_from_tool_output_rejects_invalid_payloads(overrides: dict[str, object]) -> None:
    with pytest.raises(TreePayloadError) as info:
        tree_from_tool_output(_render_ui_payload(**overrides))

    assert info.value.details["errors"]


def test_loaded_tool_tree_replaces_streamed_tree() -> None:
    stream = TreeStream()
    stream.feed('{"op":"set","path":"/root","value":"streamed"}\n')

    stream.load_tree(tree_from_tool_output(_render_ui_payload()).ui_tree())

    assert stream.tree is not None
    assert stream.tree.root == "card"
    assert stream.parse_error is None


def test_parse_tree_payload_rejects_non_mapping() -> None:
    with pytest.raises(TreePayloadError):
        parse_tree_payload(["not", "a", "tree"])  # type: ignore[arg-type]


def test_resolve_suggestions_cleans_input() -> None:
    suggestions = resolve_todo_suggestions({"suggestions": ["  Walk dog ", "   ", "Pay rent"]})

    assert suggestions == ["Walk dog", "Pay rent"]


@pytest.mark.parametrize(
    ("payload", "first"),
    [
        ({"assistantMessage": "Plan my work week"}, "Review today's priorities"),
        ({"title": "Grocery run"}, "Buy groceries"),
        ({}, "Plan the top 3 tasks"),
        ({"suggestions": ["   "], "title": "Shopping"}, "Buy groceries"),
    ],
)
def test_resolve_suggestions_falls_back_on_keywords(payload: dict[str, object], first: str) -> None:
    suggestions = resolve_todo_suggestions(payload)

    assert suggestions[0] == first
    assert len(suggestions) == 4


def test_build_todo_assistant_tree_is_fully_connected() -> None:
    tree = build_todo_assistant_tree(suggestions=["Walk dog", "Pay rent"], title="Today")

    stats = tree_stats(tree)

    assert tree.root == "root"
    assert tree.elements["header"]["props"]["text"] == "Today"
    assert tree.elements["sug_1"]["props"]["bindPath"] == "/todoAssistant/suggestions/1/selected"
    assert "sug_0" in tree.elements["root"]["children"]
    assert stats.missing_child_refs == ()
    assert stats.orphan_count == 0
    assert stats.total == 12


@pytest.mark.parametrize("suggestion", ["", "x" * 81])
def test_todo_input_bounds_each_suggestion(suggestion: str) -> None:
    with pytest.raises(TreePayloadError):
        resolve_todo_suggestions({"suggestions": ["Walk dog", suggestion]})


def test_run_todo_tool_returns_suggestions_and_tree() -> None:
    output = run_todo_tool({"assistantMessage": "Busy work day", "suggestions": ["Email Sam"]})

    assert output.title == "Todo Assistant"
    assert output.assistant_message == "Busy work day"
    assert output.suggestions == ["Email Sam"]
    tree = output.ui_tree()
    assert tree.root == "root"
    assert tree.elements["sug_0"]["props"]["label"] == "Email Sam"
    assert tree.elements["suggestionsTitle"]["props"]["content"] == "Busy work day"
    assert tree_stats(tree).orphan_count == 0


def test_run_todo_tool_rejects_too_many_suggestions() -> None:
    with pytest.raises(TreePayloadError):
        run_todo_tool({"suggestions": [f"Task {index}" for index in range(7)]})
