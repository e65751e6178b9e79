"""Completion notifications.

Terminal notifications via OSC escape sequences, wrapped in a small
permission model: a notifier starts in ``default``, and asking for
permission grants it only when there is a real terminal to write to.
"""

from __future__ import annotations

import sys
from typing import Protocol

from ...log import logger

PERMISSION_GRANTED = "granted"
PERMISSION_DENIED = "denied"
PERMISSION_DEFAULT = "default"


def send_terminal_notification(title: str, body: str = "") -> None:
    """Send a terminal notification via OSC escape sequences.

    - OSC 9: iTerm2, WezTerm, kitty
    - OSC 777: rxvt-unicode
    - BEL: universal fallback

    Writes to sys.__stdout__ to bypass Textual's stdout capture.
    """
    out = sys.__stdout__
    if out is None:
        return
    try:
        out.write(f"\033]9;{title}: {body}\a")
        out.write(f"\033]777;notify;{title};{body}\a")
        out.write("\a")
        out.flush()
    except OSError:
        logger.debug("Terminal notification write failed", exc_info=True)


def play_bell() -> None:
    """Write BEL to the real terminal."""
    out = sys.__stdout__
    if out is None:
        return
    try:
        out.write("\a")
        out.flush()
    except OSError:
        logger.debug("Terminal bell write failed", exc_info=True)


class Notifier(Protocol):
    @property
    def permission(self) -> str: ...

    async def request_permission(self) -> str: ...

    def notify(self, title: str, body: str) -> None: ...


class TerminalNotifier:
    """Notifier that writes escape sequences to the controlling terminal."""

    def __init__(self, sound_enabled: bool = False, permission: str = PERMISSION_DEFAULT) -> None:
        self.sound_enabled = sound_enabled
        self._permission = permission

    @property
    def permission(self) -> str:
        return self._permission

    async def request_permission(self) -> str:
        if self._permission == PERMISSION_DEFAULT:
            out = sys.__stdout__
            is_tty = out is not None and out.isatty()
            self._permission = PERMISSION_GRANTED if is_tty else PERMISSION_DENIED
            logger.info("notification permission %s", self._permission)
        return self._permission

    def notify(self, title: str, body: str) -> None:
        if self._permission != PERMISSION_GRANTED:
            return
        send_terminal_notification(title, body)
        if self.sound_enabled:
            play_bell()
