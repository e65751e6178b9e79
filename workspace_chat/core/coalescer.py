"""Fold a stream of reply fragments into a chat's message list."""

from __future__ import annotations

from collections.abc import AsyncIterable, Callable

from ..log import logger
from . import tree
from .constants import ERROR_PREFIX
from .models import AppState


class StreamCoalescer:
    """Applies fragments to one chat as a single growing MODEL message.

    State is read through *read_state* before every write, never cached,
    and all writes are addressed by chat id. A chat that stops being the
    active one keeps receiving its reply.
    """

    def __init__(
        self,
        read_state: Callable[[], AppState],
        commit: Callable[[AppState], None],
    ) -> None:
        self._read_state = read_state
        self._commit = commit

    async def drain(self, chat_id: str, fragments: AsyncIterable[str]) -> str:
        """Consume *fragments* into *chat_id* and return the full reply.

        The MODEL message is created on the first non-empty fragment, so an
        empty stream leaves no placeholder behind. If the stream raises, the
        in-progress MODEL message (or a new one) becomes ``Error: ...`` and
        the exception propagates.
        """
        total = ""
        try:
            async for fragment in fragments:
                if not fragment:
                    continue
                total += fragment
                self._commit(tree.put_model_text(self._read_state(), chat_id, total))
        except Exception as exc:
            description = str(exc) or type(exc).__name__
            logger.debug("stream into chat %s ended with error", chat_id, exc_info=True)
            self._commit(
                tree.put_model_text(
                    self._read_state(), chat_id, f"{ERROR_PREFIX}{description}"
                )
            )
            raise
        return total
