"""Main Workspace Chat application (Textual frontend)."""

from __future__ import annotations

from rich.markup import escape
from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.widgets import Input, Label, ListItem, ListView, Static

from .core.constants import APP_TITLE, ERROR_PREFIX, format_model_name
from .core.errors import ValidationError
from .core.models import AppState, Chat, Message, MessageRole
from .core.session_manager import SessionManager
from .preferences import Preferences

# ── Widget Classes ──────────────────────────────────────────────────


class MessageView(Static):
    """One chat message; the trailing one is updated in place while streaming."""

    def __init__(self, message: Message) -> None:
        super().__init__(escape(message.text), classes="chat-message")
        self.chat_message = message
        self._apply_role_classes()

    def _apply_role_classes(self) -> None:
        is_user = self.chat_message.role is MessageRole.USER
        self.set_class(is_user, "user-message")
        self.set_class(not is_user, "assistant-message")
        self.set_class(
            not is_user and self.chat_message.text.startswith(ERROR_PREFIX), "error-message"
        )

    def show(self, message: Message) -> None:
        if message == self.chat_message:
            return
        self.chat_message = message
        self.update(escape(message.text))
        self._apply_role_classes()


class SystemMessage(Static):
    """Slash command output."""

    def __init__(self, content: str) -> None:
        super().__init__(escape(content), classes="chat-message system-message")


class ChatListItem(ListItem):
    """Sidebar entry remembering which chat it stands for."""

    def __init__(self, chat: Chat, active: bool) -> None:
        super().__init__(Label(escape(chat.title)), classes="chat-item")
        self.chat_id = chat.id
        self.set_class(active, "active-chat")


_UNRENDERED = object()


# ── Main Application ────────────────────────────────────────────────


class WorkspaceChatApp(App):
    """Terminal client for workspaces of streamed model chats."""

    CSS_PATH = "styles.tcss"
    TITLE = APP_TITLE

    BINDINGS = [
        Binding("ctrl+n", "new_chat", "New chat", show=True, priority=True),
        Binding("ctrl+b", "toggle_sidebar", "Sidebar", show=True, priority=True),
        Binding("ctrl+d", "delete_chat", "Delete chat", show=True, priority=True),
        Binding("ctrl+w", "next_workspace", "Next workspace", show=True, priority=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(self, manager: SessionManager, prefs: Preferences | None = None) -> None:
        super().__init__()
        self.manager = manager
        self._prefs = prefs or Preferences()
        self._focused = True
        self._unsubscribe = None
        self._sidebar_signature: tuple | None = None
        self._rendered_key: object = _UNRENDERED
        self._message_widgets: list[MessageView] = []
        manager.is_view_focused = lambda: self._focused

    # ── Layout ──────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        with Horizontal(id="main-container"):
            with Vertical(id="sidebar"):
                yield Static("", id="workspace-title")
                yield Input(placeholder="Search chats", id="chat-search")
                yield ListView(id="chat-list")
            with Vertical(id="chat-area"):
                yield ScrollableContainer(id="chat-view")
                yield Input(
                    placeholder="Type a message (/help for commands)", id="chat-input"
                )
                with Horizontal(id="status-bar"):
                    yield Static("", id="status-workspace")
                    yield Static("Ready", id="status-state")
                    yield Static("", id="status-model")

    def on_mount(self) -> None:
        self._unsubscribe = self.manager.subscribe(self._on_state_changed)
        self._refresh_all()
        self.query_one("#chat-input", Input).focus()
        self._restore_notifications_worker()

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ── Focus tracking (for notifications) ──────────────────────

    def on_app_focus(self, event: events.AppFocus) -> None:
        self._focused = True

    def on_app_blur(self, event: events.AppBlur) -> None:
        self._focused = False

    # ── State → widgets ─────────────────────────────────────────

    def _on_state_changed(self, old: AppState, new: AppState) -> None:
        self._refresh_all()

    def _refresh_all(self) -> None:
        self._refresh_sidebar()
        self._render_chat()
        self._update_status_bar()

    def _refresh_sidebar(self) -> None:
        """Rebuild the chat list only when what it shows has changed."""
        ws = self.manager.active_workspace
        chats = self.manager.filtered_chats
        active_id = self.manager.state.active_chat_id
        signature = (
            ws.id if ws else None,
            ws.name if ws else "",
            active_id,
            tuple((c.id, c.title) for c in chats),
        )
        if signature == self._sidebar_signature:
            return
        self._sidebar_signature = signature

        title = f" {ws.name}" if ws else " No workspace"
        self.query_one("#workspace-title", Static).update(escape(title))
        list_view = self.query_one("#chat-list", ListView)
        list_view.clear()
        if chats:
            list_view.extend(ChatListItem(c, c.id == active_id) for c in chats)
        else:
            list_view.append(ListItem(Label("No chats"), classes="empty-list"))

    def _render_chat(self) -> None:
        """Sync the chat view with the active chat's messages.

        Messages only ever get appended or have the last one replaced, so an
        unchanged chat means: update the last widget, mount the rest.
        """
        chat = self.manager.active_chat
        key = (self.manager.state.active_workspace_id, chat.id if chat else None)
        messages = chat.messages if chat else ()
        chat_view = self.query_one("#chat-view", ScrollableContainer)

        if key != self._rendered_key or len(messages) < len(self._message_widgets):
            chat_view.remove_children()
            self._message_widgets = []
            self._rendered_key = key
            if chat is None:
                chat_view.mount(Static(self._welcome_text(), classes="welcome-screen"))
                return

        if self._message_widgets:
            index = len(self._message_widgets) - 1
            self._message_widgets[index].show(messages[index])

        new_widgets = [MessageView(m) for m in messages[len(self._message_widgets) :]]
        if new_widgets:
            chat_view.mount_all(new_widgets)
            self._message_widgets.extend(new_widgets)
        if self._message_widgets:
            self._message_widgets[-1].scroll_visible()

    def _welcome_text(self) -> str:
        ws = self.manager.active_workspace
        lines = [
            APP_TITLE,
            "",
            f"Workspace: {ws.name}" if ws else "No workspace selected.",
            "Ctrl+N to start a chat.  Ctrl+B toggles the sidebar.",
            "Type /help for commands.",
        ]
        return escape("\n".join(lines))

    def _update_status_bar(self) -> None:
        ws = self.manager.active_workspace
        chat = self.manager.active_chat
        model = chat.model if chat else self.manager.state.selected_model
        self.query_one("#status-workspace", Static).update(escape(ws.name if ws else ""))
        self.query_one("#status-model", Static).update(escape(format_model_name(model)))

    def _update_status(self, state: str = "Ready") -> None:
        self.query_one("#status-state", Static).update(escape(state))

    def _add_system_message(self, text: str) -> None:
        chat_view = self.query_one("#chat-view", ScrollableContainer)
        msg = SystemMessage(text)
        chat_view.mount(msg)
        msg.scroll_visible()

    def _warn(self, exc: ValidationError) -> None:
        self.notify(str(exc), severity="warning")

    # ── Sidebar events ──────────────────────────────────────────

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        chat_id = getattr(event.item, "chat_id", None)
        if chat_id is not None:
            self.manager.select_chat(chat_id)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "chat-search":
            self.manager.set_search_query(event.value)
            self._refresh_sidebar()

    # ── Actions ─────────────────────────────────────────────────

    def action_new_chat(self) -> None:
        if self.manager.new_chat() is None:
            self.notify("No active workspace.", severity="warning")
            return
        self.query_one("#chat-input", Input).focus()

    def action_delete_chat(self) -> None:
        chat = self.manager.active_chat
        if chat is not None:
            self.manager.delete_chat(chat.id)

    def action_next_workspace(self) -> None:
        workspaces = self.manager.workspaces
        if len(workspaces) < 2:
            return
        ids = [ws.id for ws in workspaces]
        current = self.manager.state.active_workspace_id
        index = ids.index(current) if current in ids else -1
        self.manager.select_workspace(ids[(index + 1) % len(ids)])

    def action_toggle_sidebar(self) -> None:
        sidebar = self.query_one("#sidebar")
        sidebar.display = not sidebar.display

    # ── Input Handling ──────────────────────────────────────────

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id != "chat-input":
            return
        text = event.value.strip()
        if not text:
            return
        if text.startswith("/"):
            event.input.value = ""
            self._handle_slash_command(text)
            return
        if self.manager.is_loading:
            return
        if self.manager.active_chat is None:
            self.notify("Start a chat first (Ctrl+N).", severity="warning")
            return
        event.input.value = ""
        self._start_processing()
        self._send_message_worker(text)

    def _start_processing(self) -> None:
        inp = self.query_one("#chat-input", Input)
        inp.disabled = True
        self._update_status("Streaming...")

    def _finish_processing(self) -> None:
        inp = self.query_one("#chat-input", Input)
        inp.disabled = False
        inp.focus()
        if self.manager.last_error:
            self._update_status(f"{ERROR_PREFIX}{self.manager.last_error}")
        else:
            self._update_status("Ready")

    @work(exclusive=True, group="send")
    async def _send_message_worker(self, text: str) -> None:
        try:
            await self.manager.send_message(text)
        finally:
            self._finish_processing()

    @work(group="settings")
    async def _restore_notifications_worker(self) -> None:
        await self.manager.restore_notifications()

    @work(group="settings")
    async def _toggle_notifications_worker(self) -> None:
        enabled = await self.manager.toggle_notifications()
        self._add_system_message(f"Notifications {'on' if enabled else 'off'}.")

    # ── Slash Commands ──────────────────────────────────────────

    def _handle_slash_command(self, text: str) -> None:
        """Route a slash command to the appropriate handler."""
        parts = text.strip().split(None, 1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        handlers = {
            "/help": self._cmd_help,
            "/new": self._cmd_new,
            "/delete": self._cmd_delete,
            "/model": self._cmd_model,
            "/notify": self._cmd_notify,
            "/workspaces": self._cmd_workspaces,
            "/workspace": self._cmd_workspace,
            "/quit": self._cmd_quit,
        }

        handler = handlers.get(cmd)
        if handler is None:
            self._add_system_message(
                f"Unknown command: {cmd}\nType /help for available commands."
            )
            return
        try:
            handler(arg)
        except ValidationError as exc:
            self._warn(exc)

    def _cmd_help(self, arg: str) -> None:
        self._add_system_message(
            "Commands\n"
            "\n"
            "  /new                       New chat\n"
            "  /delete                    Delete the current chat\n"
            "  /model [name]              Show or set the model for new chats\n"
            "  /notify                    Toggle completion notifications\n"
            "  /workspaces                List workspaces\n"
            "  /workspace new <name>      Create and switch to a workspace\n"
            "  /workspace rename <name>   Rename the current workspace\n"
            "  /workspace delete          Delete the current workspace\n"
            "  /workspace switch <name>   Switch workspace\n"
            "  /quit                      Quit\n"
            "\n"
            "Key Bindings\n"
            "\n"
            "  Ctrl+N   New chat        Ctrl+D   Delete chat\n"
            "  Ctrl+B   Toggle sidebar  Ctrl+W   Next workspace\n"
            "  Ctrl+Q   Quit"
        )

    def _cmd_new(self, arg: str) -> None:
        self.action_new_chat()

    def _cmd_delete(self, arg: str) -> None:
        self.action_delete_chat()

    def _cmd_model(self, arg: str) -> None:
        available = self._prefs.model.available
        if not arg:
            selected = self.manager.state.selected_model
            lines = ["Models\n"]
            for model in available:
                marker = "*" if model == selected else " "
                lines.append(f"  {marker} {model}  ({format_model_name(model)})")
            if selected not in available:
                lines.append(f"  * {selected}  ({format_model_name(selected)})")
            lines.append("\nNew chats use the model marked with *.")
            self._add_system_message("\n".join(lines))
            return
        if arg not in available:
            raise ValidationError(
                f"Unknown model {arg!r}. Available: {', '.join(available)}"
            )
        self.manager.set_selected_model(arg)
        self._update_status_bar()
        self._add_system_message(f"New chats will use {format_model_name(arg)}.")

    def _cmd_notify(self, arg: str) -> None:
        self._toggle_notifications_worker()

    def _cmd_workspaces(self, arg: str) -> None:
        active_id = self.manager.state.active_workspace_id
        lines = ["Workspaces\n"]
        for ws in self.manager.workspaces:
            marker = "*" if ws.id == active_id else " "
            lines.append(f"  {marker} {ws.name}  ({len(ws.chats)} chats)")
        self._add_system_message("\n".join(lines))

    def _cmd_workspace(self, arg: str) -> None:
        sub, _, name = arg.partition(" ")
        sub = sub.lower()
        name = name.strip()
        ws = self.manager.active_workspace
        if sub == "new":
            self.manager.create_workspace(name)
        elif sub == "rename":
            if ws is not None:
                self.manager.rename_workspace(ws.id, name)
        elif sub == "delete":
            if ws is not None:
                self.manager.delete_workspace(ws.id)
        elif sub == "switch":
            target = next(
                (w for w in self.manager.workspaces if w.name.lower() == name.lower()),
                None,
            )
            if target is None:
                raise ValidationError(f"No workspace named {name!r}.")
            self.manager.select_workspace(target.id)
        else:
            self._add_system_message(
                "Usage: /workspace new|rename|delete|switch <name>"
            )

    def _cmd_quit(self, arg: str) -> None:
        self.call_later(self.exit)


# ── Entry Point ─────────────────────────────────────────────────────


def run_app(manager: SessionManager, prefs: Preferences | None = None) -> None:
    """Run the Workspace Chat application."""
    app = WorkspaceChatApp(manager, prefs)
    app.run()
