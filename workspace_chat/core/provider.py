"""Remote provider interface and the Gemini implementation.

The engine only sees two protocols: a provider that creates sessions from
a seed history, and a session that streams text fragments for one new
user turn. ``google-genai`` is imported lazily so the engine (and its
tests) never need it unless the Gemini provider is actually built.
"""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from .errors import ConfigurationError
from .models import Message

if TYPE_CHECKING:
    from google import genai

API_KEY_VARIABLES = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


class ChatSession(Protocol):
    """A live remote conversation holding its own history."""

    def send_streaming(self, text: str) -> AsyncIterator[str]: ...


class ChatProvider(Protocol):
    """Factory for remote sessions."""

    def create_session(self, model: str, history: Sequence[Message]) -> ChatSession: ...


def find_api_key(environ: dict[str, str] | None = None) -> str | None:
    """Return the first provider credential found in the environment."""
    env = os.environ if environ is None else environ
    for name in API_KEY_VARIABLES:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


class GeminiSession:
    """Wraps a ``google-genai`` async chat."""

    def __init__(self, chat: Any) -> None:
        self._chat = chat

    async def send_streaming(self, text: str) -> AsyncIterator[str]:
        stream = await self._chat.send_message_stream(text)
        async for chunk in stream:
            yield chunk.text or ""


class GeminiProvider:
    """Creates Gemini chat sessions through ``google-genai``."""

    def __init__(self, api_key: str | None = None, client: genai.Client | None = None) -> None:
        if client is None:
            api_key = api_key or find_api_key()
            if not api_key:
                raise ConfigurationError(
                    "No API key found. Set one of: " + ", ".join(API_KEY_VARIABLES)
                )
            from google import genai

            client = genai.Client(api_key=api_key)
        self._client = client

    def create_session(self, model: str, history: Sequence[Message]) -> GeminiSession:
        from google.genai import types

        contents = [
            types.Content(role=m.role.value, parts=[types.Part(text=m.text)])
            for m in history
        ]
        chat = self._client.aio.chats.create(model=model, history=contents)
        return GeminiSession(chat)
