"""Shared constants for the conversation engine."""

from __future__ import annotations

APP_TITLE = "Gemini Chat"

# Models offered when the preferences file does not list any.
AVAILABLE_MODELS: tuple[str, ...] = ("gemini-2.5-flash",)
DEFAULT_MODEL = AVAILABLE_MODELS[0]

DEFAULT_WORKSPACE_NAME = "Personal Workspace"
NEW_CHAT_TITLE = "New Chat"

TITLE_MAX_LENGTH = 40
TITLE_ELLIPSIS = "..."

ERROR_PREFIX = "Error: "

NOTIFICATION_BODY = "Your new message is ready!"

# Persisted state keys (one JSON document, one entry per key).
KEY_WORKSPACES = "workspaces"
KEY_ACTIVE_WORKSPACE = "activeWorkspaceId"
KEY_SELECTED_MODEL = "selectedModel"
KEY_NOTIFICATIONS = "notificationsEnabled"


def format_model_name(model_id: str) -> str:
    """Turn ``gemini-2.5-flash`` into ``Gemini 2.5 Flash`` for display."""
    if not model_id:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in model_id.split("-"))
