"""Pydantic records for chat messages and pre-built tree payloads."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .tree import UITree


class RecordModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid", frozen=False, populate_by_name=True)


class Catalog(str, Enum):
    """Element catalogs a tree can be rendered against."""

    TODOLIST = "todolist"
    DASHBOARD = "dashboard"


class MessagePart(RecordModel):
    """One part of a chat message; only ``text`` parts carry patch lines."""

    model_config = ConfigDict(extra="allow")

    type: str
    text: Optional[str] = None


class ChatMessage(RecordModel):
    """Chat message whose text grows while the assistant is streaming."""

    model_config = ConfigDict(extra="ignore")

    id: str
    role: str
    parts: List[MessagePart] = Field(default_factory=list)

    def text(self) -> str:
        """Join the text parts in order."""
        return "".join(part.text or "" for part in self.parts if part.type == "text")


class TreePayload(RecordModel):
    """Serialized tree: a root key plus the key to element mapping."""

    root: str
    elements: Dict[str, Any] = Field(default_factory=dict)

    def ui_tree(self) -> UITree:
        return UITree(root=self.root, elements=self.elements)


class ExpiryTtl(RecordModel):
    ttl_ms: int = Field(alias="ttlMs", gt=0)


ExpiryPolicy = Union[Literal["none", "after_next_assistant", "after_consumed"], ExpiryTtl]


class RenderUiOutput(RecordModel):
    """Arguments or result of a completed ``render_ui`` tool call."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=60)
    registry: Catalog
    mode: Literal["live", "snapshot"] = "snapshot"
    tree: TreePayload
    data_snapshot: Optional[Dict[str, Any]] = Field(default=None, alias="dataSnapshot")
    expiry_policy: ExpiryPolicy = Field(default="none", alias="expiryPolicy")

    def ui_tree(self) -> UITree:
        return self.tree.ui_tree()


SuggestionText = Annotated[str, Field(min_length=1, max_length=80)]


class TodoUiInput(RecordModel):
    """Arguments of a ``todo_ui`` tool call."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=60)
    assistant_message: Optional[str] = Field(
        default=None, alias="assistantMessage", min_length=1, max_length=280
    )
    suggestions: Optional[List[SuggestionText]] = Field(default=None, max_length=6)


class TodoUiOutput(RecordModel):
    """Result of a ``todo_ui`` call: the resolved suggestions and the screen tree."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    assistant_message: Optional[str] = Field(default=None, alias="assistantMessage")
    suggestions: List[str] = Field(default_factory=list)
    tree: TreePayload

    def ui_tree(self) -> UITree:
        return self.tree.ui_tree()
