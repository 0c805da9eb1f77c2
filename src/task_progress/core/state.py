# src/task_progress/core/state.py

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from .models import Task
from .registry import TaskProgressRegistry, overall_progress

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Loading..."


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    registry: TaskProgressRegistry
    observer: LoadingObserver | None = None

    # Held by the console while a slash command runs.
    lock: threading.Lock = field(default_factory=threading.Lock)


@dataclass(frozen=True, slots=True)
class LoadingState:
    """
    What a loading bar needs to draw, derived from one notified task list.

    - is_loading: anything active at all
    - progress: aggregate weighted progress (100 when idle)
    - primary: earliest still-active task, whose label is shown
    - caption: label plus "(N tasks)" when more than one task runs
    """

    tasks: tuple[Task, ...]
    progress: float
    label: str

    @classmethod
    def from_tasks(cls, tasks: Sequence[Task], default_label: str = DEFAULT_LABEL) -> LoadingState:
        items = tuple(tasks)
        label = items[0].label if items and items[0].label else default_label
        return cls(tasks=items, progress=overall_progress(items), label=label)

    @classmethod
    def idle(cls, default_label: str = DEFAULT_LABEL) -> LoadingState:
        return cls.from_tasks((), default_label)

    @property
    def is_loading(self) -> bool:
        return bool(self.tasks)

    @property
    def primary(self) -> Task | None:
        return self.tasks[0] if self.tasks else None

    @property
    def caption(self) -> str:
        if len(self.tasks) > 1:
            return f"{self.label} ({len(self.tasks)} tasks)"
        return self.label


class LoadingObserver:
    """
    Keeps the most recent LoadingState for a registry.

    Subscribes on construction and seeds itself from the registry's current
    tasks, since subscribing alone delivers nothing. Call close() (or use it as
    a context manager) when updates are no longer needed.
    """

    def __init__(
        self,
        registry: TaskProgressRegistry,
        *,
        default_label: str = DEFAULT_LABEL,
        on_change=None,
    ) -> None:
        self._default_label = default_label
        self._on_change = on_change
        self._lock = threading.Lock()
        self._state = LoadingState.idle(default_label)
        self._notified = False
        self._unsubscribe = registry.subscribe(self._handle)

        # A notification that raced with subscribe() is newer than this read.
        seed = LoadingState.from_tasks(registry.get_tasks(), default_label)
        with self._lock:
            if not self._notified:
                self._state = seed

    @property
    def state(self) -> LoadingState:
        with self._lock:
            return self._state

    def _handle(self, tasks: list[Task]) -> None:
        new_state = LoadingState.from_tasks(tasks, self._default_label)
        with self._lock:
            was_loading = self._state.is_loading
            self._state = new_state
            self._notified = True

        if was_loading and not new_state.is_loading:
            logger.debug("Loading finished")
        if self._on_change is not None:
            self._on_change(new_state)

    def close(self) -> None:
        self._unsubscribe()

    def __enter__(self) -> LoadingObserver:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
