# src/task_progress/core/ports.py

"""
Ports (interfaces) used by the core.

The registry depends on these small callables/Protocols instead of reaching for
time and threading directly. This keeps timing swappable and makes testing easier.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from .models import Task

TaskListener = Callable[[list[Task]], None]
# Receives the full ordered list of active tasks after every mutation.

Unsubscribe = Callable[[], None]

Clock = Callable[[], float]
# Monotonic seconds; time.monotonic in production.


class Timer(Protocol):
    """The subset of threading.Timer the registry uses for delayed removal."""

    daemon: bool

    def start(self) -> None: ...
    def cancel(self) -> None: ...


class TimerFactory(Protocol):
    def __call__(self, interval: float, function: Callable[[], None]) -> Timer: ...
