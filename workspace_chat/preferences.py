"""User preferences for Workspace Chat.

Loads settings from ~/.workspace-chat/preferences.yaml.
Falls back to sensible defaults if the file doesn't exist or is invalid.
Creates a default file on first run so users can discover and edit it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .core.constants import AVAILABLE_MODELS, DEFAULT_MODEL
from .log import logger
from .platform import preferences_path

_DEFAULT_YAML = """\
# Workspace Chat Preferences
# Delete this file to reset to defaults.

model:
  default: "gemini-2.5-flash"    # model for new chats until you pick another
  available:                     # models offered by /model
    - "gemini-2.5-flash"

notifications:
  sound_enabled: false           # terminal bell with completion notifications

storage:
  data_dir: ""                   # where state.json lives (empty = this folder)

logging:
  level: "INFO"                  # DEBUG, INFO, WARNING or ERROR
"""

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class ModelPreferences:
    """Which models the client offers and starts with."""

    default: str = DEFAULT_MODEL
    available: list[str] = field(default_factory=lambda: list(AVAILABLE_MODELS))


@dataclass
class NotificationPreferences:
    """Settings for terminal completion notifications."""

    sound_enabled: bool = False


@dataclass
class Preferences:
    """Top-level preferences."""

    model: ModelPreferences = field(default_factory=ModelPreferences)
    notifications: NotificationPreferences = field(
        default_factory=NotificationPreferences
    )
    data_dir: str = ""  # Empty means the preferences directory
    log_level: str = "INFO"


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to sensible defaults if the file doesn't exist or is invalid.
    Creates a default preferences file on first run.
    """
    path = path or preferences_path()
    prefs = Preferences()

    if not path.exists():
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("could not write default preferences to %s", path, exc_info=True)
        return prefs

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError):
        logger.warning("invalid preferences file %s; using defaults", path, exc_info=True)
        return prefs
    if not isinstance(data, dict):
        logger.warning("preferences file %s is not a mapping; using defaults", path)
        return prefs

    if isinstance(data.get("model"), dict):
        mdata = data["model"]
        if isinstance(mdata.get("available"), list):
            models = [str(m).strip() for m in mdata["available"] if str(m or "").strip()]
            if models:
                prefs.model.available = models
        if mdata.get("default"):
            prefs.model.default = str(mdata["default"]).strip()
        elif prefs.model.default not in prefs.model.available:
            prefs.model.default = prefs.model.available[0]
    if isinstance(data.get("notifications"), dict):
        ndata = data["notifications"]
        if "sound_enabled" in ndata:
            prefs.notifications.sound_enabled = bool(ndata["sound_enabled"])
    if isinstance(data.get("storage"), dict):
        prefs.data_dir = str(data["storage"].get("data_dir") or "")
    if isinstance(data.get("logging"), dict):
        level = str(data["logging"].get("level") or "").upper()
        if level in _LOG_LEVELS:
            prefs.log_level = level

    return prefs
