"""Binding between the active chat and one live remote session.

The binding owns a single session handle plus the key it was built for:
the chat's model, the chat's id and the history the remote side is known
to hold. ``ensure_bound`` reuses the session only while all three still
match the chat being sent to; otherwise it seeds a fresh one from the
chat's messages.

State machine::

    Unbound --ensure_bound--> Bound(model, chat, history)
    Bound --reset() / key mismatch / transport error--> Unbound

There is no retry state: a failure always lands in Unbound and the next
send rebuilds from scratch.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence

from ..log import logger
from .errors import ProviderSessionError
from .models import Chat, Message, MessageRole
from .provider import ChatProvider, ChatSession


def normalize_history(messages: Sequence[Message]) -> list[Message]:
    """Collapse runs of same-role messages, keeping the first of each run.

    Providers reject seed histories that do not strictly alternate between
    user and model turns. This is lossy: two genuine consecutive user
    messages (for instance a retry after an empty reply) keep only the
    earlier one in the remote history.
    """
    result: list[Message] = []
    for message in messages:
        if result and result[-1].role is message.role:
            continue
        result.append(message)
    return result


def _describe(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class ProviderSessionBinding:
    """Holds the current remote session for whichever chat is being sent to."""

    def __init__(self, provider: ChatProvider) -> None:
        self._provider = provider
        self._session: ChatSession | None = None
        self._model: str | None = None
        self._chat_id: str | None = None
        self._history: tuple[Message, ...] = ()

    # -- introspection ---------------------------------------------------------

    @property
    def is_bound(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> ChatSession | None:
        return self._session

    @property
    def bound_model(self) -> str | None:
        return self._model

    @property
    def bound_chat_id(self) -> str | None:
        return self._chat_id

    def matches(self, chat: Chat) -> bool:
        """True when the bound session can serve *chat* as-is."""
        return (
            self._session is not None
            and self._model == chat.model
            and self._chat_id == chat.id
            and self._history == chat.messages
        )

    # -- lifecycle -------------------------------------------------------------

    def reset(self) -> None:
        """Drop the bound session and its key."""
        if self._session is not None:
            logger.debug("unbinding remote session for chat %s", self._chat_id)
        self._session = None
        self._model = None
        self._chat_id = None
        self._history = ()

    def ensure_bound(self, chat: Chat) -> ChatSession:
        """Return a session whose remote history matches *chat*.

        Builds a new one (seeded with the normalized messages) when nothing
        is bound or the model, chat or history no longer match.
        """
        if self._session is not None and self.matches(chat):
            return self._session

        self.reset()
        history = normalize_history(chat.messages)
        try:
            session = self._provider.create_session(chat.model, history)
        except Exception as exc:
            logger.warning("failed to create session for chat %s: %s", chat.id, exc)
            raise ProviderSessionError(_describe(exc)) from exc

        logger.debug(
            "bound chat %s to model %s with %d seed messages",
            chat.id,
            chat.model,
            len(history),
        )
        self._session = session
        self._model = chat.model
        self._chat_id = chat.id
        self._history = chat.messages
        return session

    async def send(self, chat: Chat, text: str) -> AsyncIterator[str]:
        """Stream the reply to *text*, sent on top of *chat*'s history.

        *chat* is the snapshot taken before the new user turn was appended
        locally. Any failure invalidates the binding and surfaces as
        ``ProviderSessionError``. If the binding is reset while the stream
        is still running, the stream drains normally but never writes back
        into the binding.
        """
        session = self.ensure_bound(chat)
        total = ""
        try:
            async for fragment in session.send_streaming(text):
                total += fragment
                yield fragment
        except Exception as exc:
            if self._session is session:
                self.reset()
            logger.warning("stream failed for chat %s: %s", chat.id, exc)
            raise ProviderSessionError(_describe(exc)) from exc

        if self._session is session:
            turns = [Message(MessageRole.USER, text)]
            if total:
                turns.append(Message(MessageRole.MODEL, total))
            self._history = (*chat.messages, *turns)
