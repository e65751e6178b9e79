"""Base JSON persistence store."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from ...log import logger


class JsonStore:
    """JSON document on disk, replaced atomically on every write."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load_raw(self) -> Any:
        """Read and parse the JSON file, returning ``{}`` if missing or unreadable."""
        try:
            if self.path.exists():
                return json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("failed to load JSON store from %s", self.path, exc_info=True)
        return {}

    def save_raw(self, data: Any) -> None:
        """Write *data* as pretty-printed JSON, creating parents as needed.

        The file is written next to its destination and moved into place,
        so readers never see a half-written document.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(data, indent=2, ensure_ascii=False)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(text, encoding="utf-8")
        os.replace(tmp, self.path)
