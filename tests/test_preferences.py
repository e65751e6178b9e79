"""Tests for workspace_chat.preferences.

All file I/O uses tmp_path so nothing touches the real user config.
"""

from __future__ import annotations

from pathlib import Path

import yaml

from workspace_chat.core.constants import DEFAULT_MODEL
from workspace_chat.preferences import Preferences, load_preferences


class TestDefaults:
    def test_dataclass_defaults(self):
        prefs = Preferences()
        assert prefs.model.default == DEFAULT_MODEL
        assert prefs.model.available == [DEFAULT_MODEL]
        assert prefs.notifications.sound_enabled is False
        assert prefs.data_dir == ""
        assert prefs.log_level == "INFO"

    def test_missing_file_created(self, tmp_path):
        path = tmp_path / "sub" / "preferences.yaml"
        prefs = load_preferences(path)
        assert path.exists()
        assert prefs.model.default == DEFAULT_MODEL

    def test_generated_file_loads_back(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        load_preferences(path)
        data = yaml.safe_load(path.read_text())
        assert data["model"]["default"] == DEFAULT_MODEL
        assert load_preferences(path) == Preferences()


class TestLoading:
    def test_full_file(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "model": {
                        "default": "gemini-2.5-pro",
                        "available": ["gemini-2.5-flash", "gemini-2.5-pro"],
                    },
                    "notifications": {"sound_enabled": True},
                    "storage": {"data_dir": "~/chats"},
                    "logging": {"level": "debug"},
                }
            )
        )
        prefs = load_preferences(path)
        assert prefs.model.default == "gemini-2.5-pro"
        assert prefs.model.available == ["gemini-2.5-flash", "gemini-2.5-pro"]
        assert prefs.notifications.sound_enabled is True
        assert prefs.data_dir == "~/chats"
        assert prefs.log_level == "DEBUG"

    def test_default_falls_back_to_first_available(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text("model:\n  available: [gemini-2.0-pro]\n")
        prefs = load_preferences(path)
        assert prefs.model.default == "gemini-2.0-pro"

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text("model: [unclosed\n")
        assert load_preferences(path) == Preferences()

    def test_non_mapping_uses_defaults(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text("- just\n- a list\n")
        assert load_preferences(path) == Preferences()

    def test_unknown_log_level_ignored(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text("logging:\n  level: LOUD\n")
        assert load_preferences(path).log_level == "INFO"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "preferences.yaml"
        path.write_text("")
        assert load_preferences(path) == Preferences()

    def test_default_path_honours_home_override(self, isolated_home):
        load_preferences()
        assert (isolated_home / "preferences.yaml").exists()

    def test_non_ascii_file_read_as_utf8(self, tmp_path, monkeypatch):
        encodings = []
        read_text = Path.read_text

        def spy(self, *args, **kwargs):
            encodings.append(kwargs.get("encoding"))
            return read_text(self, *args, **kwargs)

        monkeypatch.setattr(Path, "read_text", spy)
        path = tmp_path / "preferences.yaml"
        path.write_bytes("storage:\n  data_dir: ~/Données/café\n".encode("utf-8"))
        assert load_preferences(path).data_dir == "~/Données/café"
        assert encodings == ["utf-8"]
