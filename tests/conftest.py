"""Shared test fixtures for the workspace-chat test suite."""

from __future__ import annotations

import asyncio

import pytest

from workspace_chat.core.features.notifications import PERMISSION_DEFAULT
from workspace_chat.core.models import AppState, Chat, Message, MessageRole, Workspace
from workspace_chat.core.session_manager import SessionManager


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the config directory at tmp_path so nothing touches the real one."""
    home = tmp_path / "home"
    monkeypatch.setenv("WORKSPACE_CHAT_HOME", str(home))
    return home


# -- Fake provider --------------------------------------------------------------


class FakeSession:
    """Scripted remote session.

    ``fragments`` are yielded in order. If ``error`` is set it is raised
    after the fragments. ``gate`` (an asyncio.Event) pauses the stream
    after ``gate_after`` fragments until the test sets it.
    """

    def __init__(self, fragments=(), error=None, gate=None, gate_after=1):
        self.fragments = list(fragments)
        self.error = error
        self.gate = gate
        self.gate_after = gate_after
        self.sent: list[str] = []

    async def send_streaming(self, text):
        self.sent.append(text)
        for i, fragment in enumerate(self.fragments):
            yield fragment
            if i + 1 == self.gate_after and self.gate is not None:
                await self.gate.wait()
        if self.error is not None:
            raise self.error


class FakeProvider:
    """Hands out queued FakeSessions and records every create_session call."""

    def __init__(self):
        self.calls: list[tuple[str, list[Message]]] = []
        self.queue: list[FakeSession] = []
        self.create_error: Exception | None = None
        self.default_fragments = ["ok"]

    def script(self, *fragments, error=None, gate=None, gate_after=1) -> FakeSession:
        session = FakeSession(fragments, error=error, gate=gate, gate_after=gate_after)
        self.queue.append(session)
        return session

    def create_session(self, model, history):
        self.calls.append((model, list(history)))
        if self.create_error is not None:
            raise self.create_error
        if self.queue:
            return self.queue.pop(0)
        return FakeSession(self.default_fragments)


class FakeNotifier:
    """Notifier with a settable permission that records notifications."""

    def __init__(self, permission=PERMISSION_DEFAULT, grant_to="granted"):
        self._permission = permission
        self.grant_to = grant_to
        self.sent: list[tuple[str, str]] = []
        self.requests = 0

    @property
    def permission(self):
        return self._permission

    async def request_permission(self):
        self.requests += 1
        if self._permission == PERMISSION_DEFAULT:
            self._permission = self.grant_to
        return self._permission

    def notify(self, title, body):
        self.sent.append((title, body))


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def notifier():
    return FakeNotifier()


# -- State fixtures ---------------------------------------------------------------


def user(text: str) -> Message:
    return Message(MessageRole.USER, text)


def model(text: str) -> Message:
    return Message(MessageRole.MODEL, text)


@pytest.fixture
def empty_state() -> AppState:
    """One empty workspace, active, no chat selected."""
    ws = Workspace(id="ws-1", name="Personal Workspace")
    return AppState(
        workspaces=(ws,),
        active_workspace_id="ws-1",
        selected_model="gemini-2.5-flash",
    )


@pytest.fixture
def populated_state() -> AppState:
    """Two workspaces; ws-1 holds chats c1..c3 (c2 active), ws-2 holds c4."""
    ws1 = Workspace(
        id="ws-1",
        name="Personal Workspace",
        chats=(
            Chat(id="c1", model="gemini-2.5-flash", title="Trip plans"),
            Chat(
                id="c2",
                model="gemini-2.5-flash",
                title="Python help",
                messages=(user("hi"), model("hello")),
            ),
            Chat(id="c3", model="gemini-2.5-flash", title="Recipes"),
        ),
    )
    ws2 = Workspace(
        id="ws-2",
        name="Work",
        chats=(Chat(id="c4", model="gemini-2.5-pro", title="Standup notes"),),
    )
    return AppState(
        workspaces=(ws1, ws2),
        active_workspace_id="ws-1",
        active_chat_id="c2",
        selected_model="gemini-2.5-flash",
    )


@pytest.fixture
def manager(provider, notifier, empty_state) -> SessionManager:
    return SessionManager(provider, empty_state, notifier=notifier)


async def collect(agen) -> list[str]:
    return [item async for item in agen]


async def settle() -> None:
    """Let pending tasks run a step."""
    for _ in range(5):
        await asyncio.sleep(0)
