# src/task_progress/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, attaches the console loading bar, then either:
- runs the interactive slash-command console (default), or
- runs simulated producers until they finish (--demo).
"""

from __future__ import annotations

import argparse
import logging
import signal
import threading

from ..config import get_settings
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state
from .console import attach_console_bar, run_console_loop
from .demo import start_demo

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        if state.observer is not None:
            state.observer.close()
    except Exception:
        logger.debug("Observer close failed.", exc_info=True)

    try:
        state.registry.close()
    except Exception:
        logger.debug("Registry close failed.", exc_info=True)

    leftover = state.registry.get_tasks()
    if leftover:
        logger.warning("Exiting with %d unfinished task(s): %s", len(leftover), ", ".join(t.id for t in leftover))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task-progress",
        description="Console front-end for the task progress registry.",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Run simulated producers and render the loading bar until they finish.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Console log level (default: TASK_PROGRESS_LOG_LEVEL or INFO).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(args.log_level or getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    attach_console_bar(state)

    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if args.demo:
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError):
        # Not in the main thread, or the platform lacks the signal.
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if args.demo:
            threads = start_demo(state, stop_main)
            for t in threads:
                while t.is_alive() and not stop_main.is_set():
                    t.join(timeout=0.2)
                    # no-op unless TASK_PROGRESS_MAX_TASK_AGE_SECONDS is set
                    state.registry.evict_stale()
            stop_main.set()
            for t in threads:
                t.join(timeout=5.0)
        else:
            run_console_loop(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
