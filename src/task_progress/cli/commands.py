# src/task_progress/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from ..core.state import AppState, LoadingState

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /begin, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _parse_number(raw: str) -> float | None:
    try:
        return float(raw.rstrip("%"))
    except ValueError:
        return None


def _split_weight(args: list[str]) -> tuple[list[str], float | None, str | None]:
    """Pull a `weight=N` / `w=N` token out of the argument list."""
    rest: list[str] = []
    weight: float | None = None
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep and key.lower() in ("w", "weight"):
            weight = _parse_number(value)
            if weight is None:
                return rest, None, f"Invalid weight: {value!r}"
            continue
        rest.append(arg)
    return rest, weight, None


def format_task_line(task) -> str:
    label = task.label or "(no label)"
    return f"{task.id:<8} {task.progress:6.1f}%  w={task.weight:g}  {label}"


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_begin(state: AppState, args: list[str]) -> str:
    """
    /begin <label>            -> start a task (weight 1)
    /begin <label> weight=3   -> start a weighted task
    """
    rest, weight, error = _split_weight(args)
    if error:
        return error
    label = " ".join(rest)
    try:
        task_id = state.registry.begin(label, weight=1.0 if weight is None else weight)
    except ValueError as e:
        return f"Cannot start task: {e}"
    return f"Started {task_id}: {label or '(no label)'}"


def cmd_update(state: AppState, args: list[str]) -> str:
    """
    /update <id> <progress>          -> set progress
    /update <id> <progress> <label>  -> set progress and relabel
    """
    if len(args) < 2:
        return "Usage: /update <id> <progress> [label]"

    task_id = args[0]
    progress = _parse_number(args[1])
    if progress is None:
        return f"Invalid progress: {args[1]!r}"

    label = " ".join(args[2:]) if len(args) > 2 else None
    try:
        ok = state.registry.update(task_id, progress, label)
    except ValueError as e:
        return f"Cannot update task: {e}"
    if not ok:
        return f"No active task {task_id}."
    task = state.registry.get_task(task_id)
    return f"Updated {format_task_line(task)}" if task else f"Updated {task_id}."


def cmd_end(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /end <id>"
    task_id = args[0]
    if state.registry.end(task_id):
        return f"Ended {task_id}."
    return f"No active task {task_id}."


def cmd_complete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /complete <id>"
    task_id = args[0]
    if state.registry.complete(task_id):
        return f"Completed {task_id}."
    return f"No active task {task_id}."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.registry.get_tasks()
    if not tasks:
        return "No active tasks."
    lines = [f"Active tasks ({len(tasks)}):"]
    lines.extend(f"  {format_task_line(t)}" for t in tasks)
    return "\n".join(lines)


def cmd_progress(state: AppState, args: list[str]) -> str:
    default_label = getattr(state.settings, "default_label", "Loading...")
    view = LoadingState.from_tasks(state.registry.get_tasks(), default_label)
    if not view.is_loading:
        return f"Idle ({view.progress:.1f}%)."
    return f"{view.progress:.1f}% - {view.caption}"


def cmd_clear(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit and state.registry.is_loading():
        with contextlib.suppress(Exception):
            emit(f"Clearing {len(state.registry)} task(s)...")
    removed = state.registry.clear()
    logger.info("Cleared %d task(s) from console", removed)
    return f"Removed {removed} task(s)."


def cmd_evict(state: AppState, args: list[str]) -> str:
    """
    /evict            -> evict tasks older than the configured max age
    /evict <seconds>  -> evict tasks idle for longer than <seconds>
    """
    max_age: float | None = None
    if args:
        max_age = _parse_number(args[0])
        if max_age is None:
            return f"Invalid age: {args[0]!r}"

    evicted = state.registry.evict_stale(max_age)
    if not evicted:
        return "Nothing to evict."
    return "Evicted: " + ", ".join(t.id for t in evicted)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("begin", cmd_begin, help_text="Start a task: /begin <label> [weight=N].", aliases=["start"])
registry.register("update", cmd_update, help_text="Report progress: /update <id> <0-100> [label].")
registry.register("end", cmd_end, help_text="Remove a task immediately: /end <id>.", aliases=["stop"])
registry.register("complete", cmd_complete, help_text="Finish a task (100%, then removed): /complete <id>.")
registry.register("tasks", cmd_tasks, help_text="List active tasks in start order.")
registry.register("progress", cmd_progress, help_text="Show aggregate progress and the current label.")
registry.register("clear", cmd_clear, help_text="Remove all tasks.")
registry.register("evict", cmd_evict, help_text="Evict stuck tasks: /evict [max_age_seconds].")
