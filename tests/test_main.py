"""Tests for the __main__ entry point."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from workspace_chat import __version__
from workspace_chat.__main__ import main


@pytest.fixture
def no_api_key(monkeypatch):
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestVersion:
    def test_version_flag(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert f"workspace-chat {__version__}" in capsys.readouterr().out


class TestMissingCredentials:
    def test_exits_with_message(self, no_api_key, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1
        assert "No API key found" in capsys.readouterr().err


class TestDoctor:
    def test_reports_missing_key(self, no_api_key, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--doctor"])
        assert exc_info.value.code == 1
        out = capsys.readouterr().out
        assert "Environment Doctor" in out
        assert "GEMINI_API_KEY" in out


class TestStartup:
    def test_runs_app_with_loaded_state(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        data_dir = tmp_path / "data"

        with patch("workspace_chat.core.provider.GeminiProvider") as provider_cls, patch(
            "workspace_chat.app.run_app"
        ) as run_app:
            main(["--data-dir", str(data_dir), "--model", "gemini-2.5-pro"])

        provider_cls.assert_called_once_with()
        manager, prefs = run_app.call_args.args
        assert manager.state.selected_model == "gemini-2.5-pro"
        assert len(manager.workspaces) == 1

        saved = json.loads((data_dir / "state.json").read_text())
        assert saved["selectedModel"] == "gemini-2.5-pro"
        assert saved["activeWorkspaceId"] == manager.state.active_workspace_id

    def test_state_changes_persist(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        data_dir = tmp_path / "data"

        def fake_run_app(manager, prefs):
            manager.create_workspace("Research")

        with patch("workspace_chat.core.provider.GeminiProvider"), patch(
            "workspace_chat.app.run_app", side_effect=fake_run_app
        ):
            main(["--data-dir", str(data_dir)])

        saved = json.loads((data_dir / "state.json").read_text())
        assert [w["name"] for w in saved["workspaces"]] == [
            "Personal Workspace",
            "Research",
        ]

    def test_crash_exits_nonzero(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "test-key")
        with patch("workspace_chat.core.provider.GeminiProvider"), patch(
            "workspace_chat.app.run_app", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["--data-dir", str(tmp_path)])
        assert exc_info.value.code == 1
