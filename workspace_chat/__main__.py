"""Entry point for the Workspace Chat CLI."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from . import __version__
from .core.errors import ConfigurationError
from .log import logger, setup_logging
from .platform import app_home, log_path, preferences_path, state_path

# ---------------------------------------------------------------------------
# Environment health checks
# ---------------------------------------------------------------------------

_REQUIRED_LIBS = [
    ("textual", "textual"),
    ("yaml", "PyYAML"),
    ("google.genai", "google-genai"),
]


def _run_doctor(data_dir: Path) -> None:
    """Print a detailed environment health report and exit."""
    import importlib

    from .core.provider import API_KEY_VARIABLES, find_api_key

    print("Workspace Chat -- Environment Doctor\n")

    print(f"  Python:   {sys.executable} ({sys.version.split()[0]})")

    print()
    all_ok = True
    for mod_name, pkg_name in _REQUIRED_LIBS:
        try:
            mod = importlib.import_module(mod_name)
            ver = getattr(mod, "__version__", "installed")
            print(f"  [ok] {pkg_name:30s}  {ver}")
        except ImportError:
            print(f"  [!!] {pkg_name:30s}  NOT IMPORTABLE")
            all_ok = False

    print()
    if find_api_key():
        print(f"  [ok] {'API key':30s}  found")
    else:
        print(f"  [!!] {'API key':30s}  set one of {', '.join(API_KEY_VARIABLES)}")
        all_ok = False

    prefs_file = preferences_path()
    marker = "ok" if prefs_file.exists() else "--"
    print(f"  [{marker}] {'Preferences':30s}  {prefs_file}")
    state_file = state_path(data_dir)
    marker = "ok" if state_file.exists() else "--"
    print(f"  [{marker}] {'State file':30s}  {state_file}")

    print()
    print("  All checks passed." if all_ok else "  Some checks failed.")
    sys.exit(0 if all_ok else 1)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workspace Chat")
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"workspace-chat {__version__}",
    )
    parser.add_argument(
        "--model",
        "-m",
        type=str,
        help="Model for new chats (overrides the saved choice)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        help="Directory holding state.json (default: preferences or ~/.workspace-chat)",
    )
    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Check environment health and exit",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Run Workspace Chat."""
    args = _build_parser().parse_args(argv)

    from .preferences import load_preferences

    prefs = load_preferences()
    data_dir = args.data_dir or (
        Path(prefs.data_dir).expanduser() if prefs.data_dir else app_home()
    )
    setup_logging(prefs.log_level, log_path(data_dir))

    if args.doctor:
        _run_doctor(data_dir)
        return

    from .core.features.notifications import TerminalNotifier
    from .core.persistence import StatePersister, StateStore
    from .core.provider import GeminiProvider
    from .core.session_manager import SessionManager
    from .core import tree

    try:
        provider = GeminiProvider()
    except ConfigurationError as exc:
        logger.error("configuration error: %s", exc)
        print(f"workspace-chat: {exc}", file=sys.stderr)
        sys.exit(1)

    store = StateStore(state_path(data_dir))
    state = store.load_state(default_model=prefs.model.default)
    if args.model:
        state = tree.set_selected_model(state, args.model.strip())
    store.save_state(state)

    manager = SessionManager(
        provider,
        state,
        notifier=TerminalNotifier(sound_enabled=prefs.notifications.sound_enabled),
    )
    manager.subscribe(StatePersister(store))
    logger.info("starting with %d workspace(s)", len(state.workspaces))

    try:
        from .app import run_app

        run_app(manager, prefs)
    except (KeyboardInterrupt, SystemExit):
        pass
    except Exception:
        logger.debug("Fatal error in workspace-chat", exc_info=True)
        import traceback

        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
