"""Pre-built trees carried by completed tool calls."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError
from pydantic.type_adapter import TypeAdapter

from .errors import TreePayloadError
from .schema import RenderUiOutput, TodoUiInput, TodoUiOutput, TreePayload
from .tree import UITree

__all__ = [
    "MAX_SUGGESTIONS",
    "RENDER_UI_TOOL_NAME",
    "TODO_UI_TOOL_NAME",
    "build_todo_assistant_tree",
    "parse_tree_payload",
    "resolve_todo_suggestions",
    "run_todo_tool",
    "tree_from_tool_output",
]

RENDER_UI_TOOL_NAME = "render_ui"
TODO_UI_TOOL_NAME = "todo_ui"
MAX_SUGGESTIONS = 6

_FALLBACK_SUGGESTIONS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("work", "project", "meeting"),
        (
            "Review today's priorities",
            "Reply to important emails",
            "Prepare meeting notes",
            "Update project status",
        ),
    ),
    (
        ("shopping", "grocery", "buy"),
        (
            "Buy groceries",
            "Restock essentials",
            "Plan meals for tomorrow",
            "Check pantry inventory",
        ),
    ),
)
_DEFAULT_SUGGESTIONS = (
    "Plan the top 3 tasks",
    "Add one quick win",
    "Schedule a break",
    "Review unfinished tasks",
)


def _validate(model: type[Any], payload: Any) -> Any:
    if isinstance(payload, model):
        return payload
    adapter = TypeAdapter(model)
    try:
        return adapter.validate_python(payload)
    except ValidationError as error:
        raise TreePayloadError(
            f"Payload for {model.__name__} did not validate: {error}",
            details={"errors": error.errors(include_url=False)},
        ) from error


def tree_from_tool_output(payload: Mapping[str, Any] | RenderUiOutput) -> RenderUiOutput:
    """Validate the output (or input) of a ``render_ui`` call."""
    return _validate(RenderUiOutput, payload)


def parse_tree_payload(payload: Mapping[str, Any]) -> UITree:
    """Validate a bare ``{"root": ..., "elements": ...}`` mapping into a tree."""
    return _validate(TreePayload, payload).ui_tree()


def _fallback_suggestions(seed: Optional[str]) -> List[str]:
    lowered = (seed or "").lower()
    for keywords, suggestions in _FALLBACK_SUGGESTIONS:
        if any(keyword in lowered for keyword in keywords):
            return list(suggestions)
    return list(_DEFAULT_SUGGESTIONS)


def resolve_todo_suggestions(tool_input: Mapping[str, Any] | TodoUiInput) -> List[str]:
    """Return cleaned suggestions, or keyword-based fallbacks when none are usable."""
    request = _validate(TodoUiInput, tool_input)
    cleaned = [item.strip() for item in request.suggestions or [] if item.strip()]
    if cleaned:
        return cleaned[:MAX_SUGGESTIONS]
    return _fallback_suggestions(request.assistant_message or request.title)


def build_todo_assistant_tree(
    *,
    suggestions: Sequence[str],
    title: Optional[str] = None,
    assistant_message: Optional[str] = None,
) -> UITree:
    """Assemble the todo assistant screen with one checkbox per suggestion."""
    heading = title or "Todo Assistant"
    note = assistant_message or (
        "Here's your todo list. Toggle items, then add from suggestions or type your own."
    )
    suggestion_keys = [f"sug_{index}" for index in range(len(suggestions))]

    elements: Dict[str, Any] = {
        "root": {
            "key": "root",
            "type": "Stack",
            "props": {"gap": "md"},
            "children": [
                "header",
                "showCompleted",
                "table",
                "suggestionsTitle",
                *suggestion_keys,
                "newTodo",
                "actions",
            ],
        },
        "header": {"key": "header", "type": "Title", "props": {"text": heading}},
        "showCompleted": {
            "key": "showCompleted",
            "type": "Checkbox",
            "props": {"label": "Show completed", "bindPath": "/settings/showCompleted"},
        },
        "table": {
            "key": "table",
            "type": "Table",
            "props": {"dataPath": "/todos", "showCompletedPath": "/settings/showCompleted"},
        },
        "suggestionsTitle": {
            "key": "suggestionsTitle",
            "type": "Text",
            "props": {"content": note, "variant": "muted"},
        },
    }
    for index, (key, text) in enumerate(zip(suggestion_keys, suggestions)):
        elements[key] = {
            "key": key,
            "type": "Checkbox",
            "props": {
                "label": text,
                "bindPath": f"/todoAssistant/suggestions/{index}/selected",
            },
        }
    elements["newTodo"] = {
        "key": "newTodo",
        "type": "Input",
        "props": {
            "label": "Add a new todo",
            "bindPath": "/form/newTodo",
            "placeholder": "Type and tap Add",
        },
    }
    elements["actions"] = {
        "key": "actions",
        "type": "Stack",
        "props": {"gap": "sm", "direction": "horizontal"},
        "children": ["addSelected", "addCustom", "clearCompleted"],
    }
    elements["addSelected"] = {
        "key": "addSelected",
        "type": "Button",
        "props": {"label": "Add selected", "action": "todo_add_selected"},
    }
    elements["addCustom"] = {
        "key": "addCustom",
        "type": "Button",
        "props": {"label": "Add", "action": "todo_add_custom", "variant": "secondary"},
    }
    elements["clearCompleted"] = {
        "key": "clearCompleted",
        "type": "Button",
        "props": {"label": "Clear done", "action": "todo_clear_completed", "variant": "danger"},
    }
    return UITree(root="root", elements=elements)


def run_todo_tool(tool_input: Mapping[str, Any] | TodoUiInput) -> TodoUiOutput:
    """Answer a ``todo_ui`` call with resolved suggestions and the screen tree."""
    request = _validate(TodoUiInput, tool_input)
    suggestions = resolve_todo_suggestions(request)
    tree = build_todo_assistant_tree(
        suggestions=suggestions,
        title=request.title,
        assistant_message=request.assistant_message,
    )
    return TodoUiOutput(
        title=request.title or "Todo Assistant",
        assistant_message=request.assistant_message,
        suggestions=suggestions,
        tree=TreePayload(root=tree.root, elements=dict(tree.elements)),
    )
