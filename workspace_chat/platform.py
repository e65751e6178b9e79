"""Filesystem locations for Workspace Chat.

Every other module asks here instead of building paths itself.
"""

from __future__ import annotations

import os
from pathlib import Path

HOME_ENV_VAR = "WORKSPACE_CHAT_HOME"


def app_home() -> Path:
    """Return the config/data directory (``~/.workspace-chat`` by default).

    ``$WORKSPACE_CHAT_HOME`` overrides it.
    """
    override = os.environ.get(HOME_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".workspace-chat"


def app_file(name: str, home: Path | None = None) -> Path:
    """Return ``<home>/<name>`` for a data file."""
    return (home or app_home()) / name


def preferences_path(home: Path | None = None) -> Path:
    return app_file("preferences.yaml", home)


def state_path(home: Path | None = None) -> Path:
    return app_file("state.json", home)


def log_path(home: Path | None = None) -> Path:
    return app_file("workspace-chat.log", home)
