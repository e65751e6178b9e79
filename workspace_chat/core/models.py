"""Conversation data model: workspaces, chats and messages.

Every entity is a frozen dataclass and every sequence a tuple, so a state
value can be shared freely and each transition produces a new one with
``dataclasses.replace``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .constants import NEW_CHAT_TITLE


def generate_id() -> str:
    """Return a fresh unique identifier."""
    return uuid.uuid4().hex


class MessageRole(str, Enum):
    USER = "user"
    MODEL = "model"


def _require(data: Any, kind: type, what: str) -> Any:
    if not isinstance(data, kind):
        raise ValueError(f"{what} must be a {kind.__name__}, got {type(data).__name__}")
    return data


@dataclass(frozen=True)
class Message:
    """One turn of a conversation."""

    role: MessageRole
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, data: Any) -> Message:
        data = _require(data, dict, "message")
        return cls(
            role=MessageRole(data.get("role")),
            text=_require(data.get("text", ""), str, "message text"),
        )


@dataclass(frozen=True)
class Chat:
    """A single conversation and the model it talks to."""

    id: str
    model: str
    title: str = NEW_CHAT_TITLE
    messages: tuple[Message, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "model": self.model,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Chat:
        data = _require(data, dict, "chat")
        messages = _require(data.get("messages", []), list, "chat messages")
        return cls(
            id=_require(data.get("id"), str, "chat id"),
            title=_require(data.get("title", NEW_CHAT_TITLE), str, "chat title"),
            messages=tuple(Message.from_dict(m) for m in messages),
            model=_require(data.get("model", ""), str, "chat model"),
        )


@dataclass(frozen=True)
class Workspace:
    """A named group of chats, most recent first."""

    id: str
    name: str
    chats: tuple[Chat, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "chats": [c.to_dict() for c in self.chats],
        }

    @classmethod
    def from_dict(cls, data: Any) -> Workspace:
        data = _require(data, dict, "workspace")
        chats = _require(data.get("chats", []), list, "workspace chats")
        return cls(
            id=_require(data.get("id"), str, "workspace id"),
            name=_require(data.get("name"), str, "workspace name"),
            chats=tuple(Chat.from_dict(c) for c in chats),
        )


@dataclass(frozen=True)
class AppState:
    """Top-level client state.

    Invariant: ``active_chat_id`` is either None or the id of a chat inside
    the workspace named by ``active_workspace_id``.
    """

    workspaces: tuple[Workspace, ...] = ()
    active_workspace_id: str | None = None
    active_chat_id: str | None = None
    selected_model: str = ""
    notifications_enabled: bool = False


def workspaces_to_list(workspaces: tuple[Workspace, ...]) -> list[dict[str, Any]]:
    return [w.to_dict() for w in workspaces]


def workspaces_from_list(data: Any) -> tuple[Workspace, ...]:
    """Parse a serialized workspace list, raising ``ValueError`` if malformed."""
    items = _require(data, list, "workspaces")
    return tuple(Workspace.from_dict(w) for w in items)
