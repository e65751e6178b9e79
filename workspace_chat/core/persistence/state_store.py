"""Durable key/value store for the workspace tree and small preferences."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ...log import logger
from .. import tree
from ..constants import (
    DEFAULT_WORKSPACE_NAME,
    KEY_ACTIVE_WORKSPACE,
    KEY_NOTIFICATIONS,
    KEY_SELECTED_MODEL,
    KEY_WORKSPACES,
)
from ..models import (
    AppState,
    Workspace,
    generate_id,
    workspaces_from_list,
    workspaces_to_list,
)
from ._base import JsonStore


def default_workspaces() -> tuple[Workspace, ...]:
    return (Workspace(id=generate_id(), name=DEFAULT_WORKSPACE_NAME),)


class StateStore(JsonStore):
    """Client state (``{workspaces, activeWorkspaceId, selectedModel, notificationsEnabled}``).

    All keys live in one JSON document that is read once and then kept in
    memory; each ``set`` rewrites the document.
    """

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self._data: dict[str, Any] | None = None

    def _cache(self) -> dict[str, Any]:
        if self._data is None:
            raw = self.load_raw()
            self._data = raw if isinstance(raw, dict) else {}
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._cache().get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Store one key. Failures are logged and reported as ``False``."""
        data = self._cache()
        missing = object()
        previous = data.get(key, missing)
        data[key] = value
        try:
            self.save_raw(data)
        except (OSError, TypeError, ValueError):
            logger.warning("failed to save %r to %s", key, self.path, exc_info=True)
            # Unserializable values must not poison later writes.
            if previous is missing:
                del data[key]
            else:
                data[key] = previous
            return False
        return True

    # -- typed state ----------------------------------------------------------

    def load_workspaces(self) -> tuple[Workspace, ...]:
        """Stored workspaces, or a single fresh default workspace.

        Unparseable data and an empty list both fall back to the default.
        """
        raw = self.get(KEY_WORKSPACES)
        if raw is not None:
            try:
                workspaces = workspaces_from_list(raw)
            except (ValueError, TypeError):
                logger.warning(
                    "stored workspaces in %s are corrupt; starting fresh",
                    self.path,
                    exc_info=True,
                )
            else:
                if workspaces:
                    return workspaces
        return default_workspaces()

    def load_state(self, default_model: str) -> AppState:
        """Build the startup state. The active chat is never restored."""
        active_id = self.get(KEY_ACTIVE_WORKSPACE)
        model = self.get(KEY_SELECTED_MODEL)
        notifications = self.get(KEY_NOTIFICATIONS, False)
        state = AppState(
            workspaces=self.load_workspaces(),
            active_workspace_id=active_id if isinstance(active_id, str) else None,
            selected_model=model if isinstance(model, str) and model else default_model,
            notifications_enabled=notifications is True or notifications == "true",
        )
        return tree.normalize(state)

    def save_state(self, state: AppState) -> None:
        """Write every key of *state*."""
        self.set(KEY_WORKSPACES, workspaces_to_list(state.workspaces))
        if state.active_workspace_id:
            self.set(KEY_ACTIVE_WORKSPACE, state.active_workspace_id)
        self.set(KEY_SELECTED_MODEL, state.selected_model)
        self.set(KEY_NOTIFICATIONS, state.notifications_enabled)


class StatePersister:
    """State observer that saves only the pieces that changed.

    Subscribe an instance to ``SessionManager.subscribe``.
    """

    def __init__(self, store: StateStore) -> None:
        self.store = store

    def __call__(self, old: AppState, new: AppState) -> None:
        if new.workspaces is not old.workspaces and new.workspaces != old.workspaces:
            self.store.set(KEY_WORKSPACES, workspaces_to_list(new.workspaces))
        if new.active_workspace_id != old.active_workspace_id and new.active_workspace_id:
            self.store.set(KEY_ACTIVE_WORKSPACE, new.active_workspace_id)
        if new.selected_model != old.selected_model:
            self.store.set(KEY_SELECTED_MODEL, new.selected_model)
        if new.notifications_enabled != old.notifications_enabled:
            self.store.set(KEY_NOTIFICATIONS, new.notifications_enabled)
