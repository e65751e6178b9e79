"""Optional side-effect collaborators used by the session manager."""

from .notifications import (
    PERMISSION_DEFAULT,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    Notifier,
    TerminalNotifier,
    play_bell,
    send_terminal_notification,
)

__all__ = [
    "PERMISSION_DEFAULT",
    "PERMISSION_DENIED",
    "PERMISSION_GRANTED",
    "Notifier",
    "TerminalNotifier",
    "play_bell",
    "send_terminal_notification",
]
