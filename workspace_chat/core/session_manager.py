"""Conversation session management for the client.

``SessionManager`` is the surface every frontend talks to. It owns the
current ``AppState`` value, replaces it wholesale on each change, and
tells subscribed observers (persistence, the UI) about every
replacement. It never decides when to persist; it only commits state.
"""

from __future__ import annotations

from collections.abc import Callable

from ..log import logger
from . import tree
from .binding import ProviderSessionBinding
from .coalescer import StreamCoalescer
from .constants import APP_TITLE, NOTIFICATION_BODY
from .errors import ProviderSessionError, ValidationError
from .features.notifications import PERMISSION_DEFAULT, PERMISSION_GRANTED, Notifier
from .models import AppState, Chat, Workspace
from .provider import ChatProvider

StateListener = Callable[[AppState, AppState], None]


class SessionManager:
    """Coordinates the conversation tree, the remote binding and the stream."""

    def __init__(
        self,
        provider: ChatProvider,
        state: AppState,
        *,
        notifier: Notifier | None = None,
        binding: ProviderSessionBinding | None = None,
    ) -> None:
        self._state = tree.normalize(state)
        self._listeners: list[StateListener] = []
        self.binding = binding or ProviderSessionBinding(provider)
        self.coalescer = StreamCoalescer(lambda: self._state, self._commit)
        self.notifier = notifier

        self.is_loading: bool = False
        self.last_error: str | None = None
        self.search_query: str = ""
        # Frontends replace this with their own focus check.
        self.is_view_focused: Callable[[], bool] = lambda: True

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def workspaces(self) -> tuple[Workspace, ...]:
        return self._state.workspaces

    @property
    def active_workspace(self) -> Workspace | None:
        return tree.active_workspace(self._state)

    @property
    def active_chat(self) -> Chat | None:
        return tree.active_chat(self._state)

    @property
    def filtered_chats(self) -> list[Chat]:
        return tree.filter_chats(self.active_workspace, self.search_query)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener(old, new)* after every state change.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: AppState) -> None:
        if new_state is self._state:
            return
        old_state, self._state = self._state, new_state
        for listener in list(self._listeners):
            listener(old_state, new_state)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> None:
        """Send *text* to the active chat and stream the reply into it.

        The user turn is appended before the network call. Failures end up
        as an ``Error: ...`` message in the chat and in ``last_error``;
        ``is_loading`` is always cleared afterwards.
        """
        text = text.strip()
        chat = self.active_chat
        if not text or chat is None:
            return
        if self.is_loading:
            logger.warning("send ignored: a reply is already streaming")
            return

        is_first_turn = not chat.messages
        self._commit(tree.append_user_message(self._state, chat.id, text))
        self.is_loading = True
        self.last_error = None
        try:
            await self.coalescer.drain(chat.id, self.binding.send(chat, text))
        except ProviderSessionError as exc:
            self.last_error = str(exc)
            logger.warning("reply for chat %s failed: %s", chat.id, exc)
        else:
            if is_first_turn:
                self._commit(tree.set_title(self._state, chat.id, tree.derive_title(text)))
        finally:
            self.is_loading = False
            self._notify_reply_ready()

    def _notify_reply_ready(self) -> None:
        if self.notifier is None or not self._state.notifications_enabled:
            return
        if self.notifier.permission != PERMISSION_GRANTED or self.is_view_focused():
            return
        try:
            self.notifier.notify(APP_TITLE, NOTIFICATION_BODY)
        except Exception:  # noqa: BLE001
            logger.debug("notification failed", exc_info=True)

    # ------------------------------------------------------------------
    # Navigation (every change of active chat drops the remote session)
    # ------------------------------------------------------------------

    def new_chat(self) -> str | None:
        """Create a chat in the active workspace with the selected model."""
        ws = self.active_workspace
        if ws is None:
            return None
        state, chat_id = tree.create_chat(self._state, ws.id, self._state.selected_model)
        if chat_id is not None:
            state = tree.select_chat(state, chat_id)
        self._commit(state)
        self.binding.reset()
        return chat_id

    def select_chat(self, chat_id: str) -> None:
        self._commit(tree.select_chat(self._state, chat_id))
        self.binding.reset()

    def delete_chat(self, chat_id: str) -> None:
        """Delete a chat of the active workspace."""
        ws = self.active_workspace
        if ws is not None:
            self._commit(tree.delete_chat(self._state, ws.id, chat_id))
        self.binding.reset()

    def select_workspace(self, workspace_id: str) -> None:
        self._commit(tree.select_workspace(self._state, workspace_id))
        self.binding.reset()

    def create_workspace(self, name: str) -> str:
        """Create a workspace and switch to it. Raises ``ValidationError``."""
        state, workspace_id = tree.create_workspace(self._state, name)
        self._commit(tree.select_workspace(state, workspace_id))
        self.binding.reset()
        return workspace_id

    def rename_workspace(self, workspace_id: str, name: str) -> None:
        self._commit(tree.rename_workspace(self._state, workspace_id, name))

    def delete_workspace(self, workspace_id: str) -> None:
        """Delete a workspace. Raises ``ValidationError`` for the last one."""
        try:
            new_state = tree.delete_workspace(self._state, workspace_id)
        except ValidationError:
            logger.info("refused to delete the last workspace")
            raise
        self._commit(new_state)
        self.binding.reset()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_selected_model(self, model: str) -> None:
        """Model used for chats created from now on."""
        model = model.strip()
        if not model:
            raise ValidationError("Model name cannot be empty.")
        self._commit(tree.set_selected_model(self._state, model))

    def set_search_query(self, query: str) -> None:
        self.search_query = query

    async def toggle_notifications(self) -> bool:
        """Flip notifications, asking for permission first if needed.

        Returns whether notifications are enabled afterwards.
        """
        if self.notifier is None:
            return False
        permission = self.notifier.permission
        if permission == PERMISSION_GRANTED:
            self._commit(
                tree.set_notifications_enabled(
                    self._state, not self._state.notifications_enabled
                )
            )
        elif permission == PERMISSION_DEFAULT:
            if await self.notifier.request_permission() == PERMISSION_GRANTED:
                self._commit(tree.set_notifications_enabled(self._state, True))
        return self.notifications_active

    async def restore_notifications(self) -> bool:
        """Resolve permission for notifications that were saved as enabled.

        Permission belongs to the process, not to the saved state, so a
        fresh notifier starts undecided. Call once at startup.
        """
        if self.notifier is None or not self._state.notifications_enabled:
            return False
        if self.notifier.permission == PERMISSION_DEFAULT:
            permission = await self.notifier.request_permission()
            logger.debug("restored notification permission: %s", permission)
        return self.notifications_active

    @property
    def notifications_active(self) -> bool:
        """Enabled in state and actually permitted."""
        return (
            self._state.notifications_enabled
            and self.notifier is not None
            and self.notifier.permission == PERMISSION_GRANTED
        )
