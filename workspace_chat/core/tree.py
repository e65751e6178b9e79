"""Pure transformations of the workspace -> chat -> message tree.

Each operation takes an ``AppState`` and returns a new one; nothing here
mutates its input or performs I/O. Operations addressed by an unknown id
return the state unchanged (the very same object), which lets observers
skip work with an identity check.
"""

from __future__ import annotations

from dataclasses import replace

from .constants import TITLE_ELLIPSIS, TITLE_MAX_LENGTH
from .errors import ValidationError
from .models import AppState, Chat, Message, MessageRole, Workspace, generate_id

# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def find_workspace(state: AppState, workspace_id: str | None) -> Workspace | None:
    if workspace_id is None:
        return None
    for ws in state.workspaces:
        if ws.id == workspace_id:
            return ws
    return None


def find_chat(state: AppState, chat_id: str | None) -> tuple[Workspace, Chat] | None:
    """Locate a chat in any workspace, returning ``(workspace, chat)``."""
    if chat_id is None:
        return None
    for ws in state.workspaces:
        for chat in ws.chats:
            if chat.id == chat_id:
                return ws, chat
    return None


def active_workspace(state: AppState) -> Workspace | None:
    return find_workspace(state, state.active_workspace_id)


def active_chat(state: AppState) -> Chat | None:
    ws = active_workspace(state)
    if ws is None or state.active_chat_id is None:
        return None
    for chat in ws.chats:
        if chat.id == state.active_chat_id:
            return chat
    return None


def is_consistent(state: AppState) -> bool:
    """True when the active chat is unset or lives in the active workspace."""
    return state.active_chat_id is None or active_chat(state) is not None


def filter_chats(workspace: Workspace | None, query: str) -> list[Chat]:
    """Chats whose title contains *query*, case-insensitively."""
    if workspace is None:
        return []
    needle = query.lower()
    return [c for c in workspace.chats if needle in c.title.lower()]


def derive_title(text: str) -> str:
    """Chat title from the first user message."""
    if len(text) > TITLE_MAX_LENGTH:
        return text[:TITLE_MAX_LENGTH] + TITLE_ELLIPSIS
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _replace_workspace(state: AppState, new_ws: Workspace) -> AppState:
    return replace(
        state,
        workspaces=tuple(new_ws if ws.id == new_ws.id else ws for ws in state.workspaces),
    )


def _update_chat(state: AppState, chat_id: str, update) -> AppState:  # type: ignore[no-untyped-def]
    found = find_chat(state, chat_id)
    if found is None:
        return state
    ws, chat = found
    new_chat = update(chat)
    if new_chat is chat:
        return state
    chats = tuple(new_chat if c.id == chat_id else c for c in ws.chats)
    return _replace_workspace(state, replace(ws, chats=chats))


def _clean_name(name: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError("Workspace name cannot be empty.")
    return cleaned


# ---------------------------------------------------------------------------
# Chat operations
# ---------------------------------------------------------------------------


def create_chat(
    state: AppState, workspace_id: str, model: str
) -> tuple[AppState, str | None]:
    """Prepend an empty chat to *workspace_id*.

    Returns ``(state, None)`` unchanged when the workspace does not exist.
    """
    ws = find_workspace(state, workspace_id)
    if ws is None:
        return state, None
    chat = Chat(id=generate_id(), model=model)
    return _replace_workspace(state, replace(ws, chats=(chat, *ws.chats))), chat.id


def select_chat(state: AppState, chat_id: str | None) -> AppState:
    """Make *chat_id* active; only chats of the active workspace qualify."""
    if chat_id is None:
        return state if state.active_chat_id is None else replace(state, active_chat_id=None)
    ws = active_workspace(state)
    if ws is None or all(c.id != chat_id for c in ws.chats):
        return state
    if state.active_chat_id == chat_id:
        return state
    return replace(state, active_chat_id=chat_id)


def delete_chat(state: AppState, workspace_id: str, chat_id: str) -> AppState:
    """Remove a chat, keeping the selection at the same list position.

    When the deleted chat was active, the chat now sitting at
    ``min(old_index, len(remaining) - 1)`` becomes active, or nothing if
    the workspace is now empty.
    """
    ws = find_workspace(state, workspace_id)
    if ws is None:
        return state
    index = next((i for i, c in enumerate(ws.chats) if c.id == chat_id), -1)
    if index < 0:
        return state

    remaining = ws.chats[:index] + ws.chats[index + 1 :]
    new_state = _replace_workspace(state, replace(ws, chats=remaining))
    if state.active_chat_id != chat_id:
        return new_state
    if remaining:
        successor = remaining[min(index, len(remaining) - 1)]
        return replace(new_state, active_chat_id=successor.id)
    return replace(new_state, active_chat_id=None)


def append_user_message(state: AppState, chat_id: str, text: str) -> AppState:
    """Append a USER turn. The title is left alone until a reply succeeds."""
    message = Message(MessageRole.USER, text)
    return _update_chat(
        state, chat_id, lambda chat: replace(chat, messages=(*chat.messages, message))
    )


def put_model_text(state: AppState, chat_id: str, text: str) -> AppState:
    """Write *text* as the chat's trailing MODEL message.

    Replaces the last message in place if it is already a MODEL message,
    otherwise appends a new one.
    """

    def update(chat: Chat) -> Chat:
        message = Message(MessageRole.MODEL, text)
        if chat.messages and chat.messages[-1].role is MessageRole.MODEL:
            if chat.messages[-1] == message:
                return chat
            return replace(chat, messages=(*chat.messages[:-1], message))
        return replace(chat, messages=(*chat.messages, message))

    return _update_chat(state, chat_id, update)


def set_title(state: AppState, chat_id: str, title: str) -> AppState:
    return _update_chat(
        state,
        chat_id,
        lambda chat: chat if chat.title == title else replace(chat, title=title),
    )


# ---------------------------------------------------------------------------
# Workspace operations
# ---------------------------------------------------------------------------


def create_workspace(state: AppState, name: str) -> tuple[AppState, str]:
    """Append a new empty workspace and return its id."""
    ws = Workspace(id=generate_id(), name=_clean_name(name))
    return replace(state, workspaces=(*state.workspaces, ws)), ws.id


def rename_workspace(state: AppState, workspace_id: str, name: str) -> AppState:
    cleaned = _clean_name(name)
    ws = find_workspace(state, workspace_id)
    if ws is None or ws.name == cleaned:
        return state
    return _replace_workspace(state, replace(ws, name=cleaned))


def select_workspace(state: AppState, workspace_id: str) -> AppState:
    """Switch workspace; the active chat is always cleared."""
    if find_workspace(state, workspace_id) is None:
        return state
    if state.active_workspace_id == workspace_id and state.active_chat_id is None:
        return state
    return replace(state, active_workspace_id=workspace_id, active_chat_id=None)


def delete_workspace(state: AppState, workspace_id: str) -> AppState:
    """Remove a workspace.

    Deleting the active workspace activates the first remaining one and
    clears the active chat. Raises ``ValidationError`` when it is the only
    workspace left.
    """
    if find_workspace(state, workspace_id) is None:
        return state
    if len(state.workspaces) <= 1:
        raise ValidationError("You cannot delete the last workspace.")
    remaining = tuple(ws for ws in state.workspaces if ws.id != workspace_id)
    new_state = replace(state, workspaces=remaining)
    if state.active_workspace_id == workspace_id:
        new_state = replace(
            new_state, active_workspace_id=remaining[0].id, active_chat_id=None
        )
    return new_state


# ---------------------------------------------------------------------------
# Preferences held in state
# ---------------------------------------------------------------------------


def set_selected_model(state: AppState, model: str) -> AppState:
    if state.selected_model == model:
        return state
    return replace(state, selected_model=model)


def set_notifications_enabled(state: AppState, enabled: bool) -> AppState:
    if state.notifications_enabled == enabled:
        return state
    return replace(state, notifications_enabled=enabled)


# ---------------------------------------------------------------------------
# Repair
# ---------------------------------------------------------------------------


def normalize(state: AppState) -> AppState:
    """Re-establish the active-id invariant.

    A missing or unknown active workspace falls back to the first one; an
    active chat that does not resolve inside it is cleared.
    """
    new_state = state
    if find_workspace(new_state, new_state.active_workspace_id) is None:
        first = new_state.workspaces[0].id if new_state.workspaces else None
        new_state = replace(new_state, active_workspace_id=first, active_chat_id=None)
    if not is_consistent(new_state):
        new_state = replace(new_state, active_chat_id=None)
    return new_state
