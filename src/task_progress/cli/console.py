# src/task_progress/cli/console.py

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..core.state import AppState, LoadingObserver, LoadingState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)

FILL = "#"
EMPTY = "-"


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def render_bar(view: LoadingState, width: int = 30) -> str:
    """
    One-line text rendering of a loading state, e.g.

        [###############---------------]  50.0%  Importing leads (2 tasks)
    """
    width = max(1, int(width))
    filled = int(round(width * view.progress / 100.0))
    filled = min(width, max(0, filled))
    bar = FILL * filled + EMPTY * (width - filled)
    caption = view.caption if view.is_loading else "idle"
    return f"[{bar}] {view.progress:5.1f}%  {caption}"


def attach_console_bar(state: AppState, *, stream=None) -> LoadingObserver:
    """
    Subscribe a printer that writes the bar on every registry notification.

    The observer is stored on state so the caller can close it on shutdown.
    """
    out = stream if stream is not None else sys.stdout
    width = int(getattr(state.settings, "bar_width", 30))
    default_label = str(getattr(state.settings, "default_label", "Loading..."))

    def _print(view: LoadingState) -> None:
        out.write(render_bar(view, width) + "\n")
        out.flush()

    observer = LoadingObserver(state.registry, default_label=default_label, on_change=_print)
    state.observer = observer
    return observer


def run_console_loop(state: AppState) -> None:
    logger.info("Console started.")
    print(f"[{_ts_local()}] [CONSOLE] Drive the registry with slash commands. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            with state.lock:
                cmd_response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is None:
            cmd_response = "Commands start with '/'. Use /help to list available commands."

        print(f"[{_ts_local()}] {cmd_response}")

    logger.info("Console finished.")
