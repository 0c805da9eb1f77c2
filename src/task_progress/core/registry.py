# src/task_progress/core/registry.py

"""
Task progress registry.

A single in-process store of "what is currently loading":
- producers begin / update / complete / end tasks from any thread,
- consumers subscribe once and get the full ordered task list on every mutation,
- aggregate progress is computed on demand (weighted mean, 100 when idle).

Thread-safety:
- tasks and subscriptions live behind one RLock
- notifications are delivered while the lock is held, in subscription order,
  so every subscriber sees the same mutations in the same order
- callbacks may call back into the registry on the same thread; a mutation made
  from inside a callback is delivered after the current notification round,
  and reads made during a round (get_tasks, get_overall_progress, ...) see the
  snapshot being delivered
"""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Iterable

from .models import PROGRESS_MAX, PROGRESS_MIN, Task, check_weight, clamp_progress
from .ports import Clock, TaskListener, Timer, TimerFactory, Unsubscribe

logger = logging.getLogger(__name__)


def overall_progress(tasks: Iterable[Task]) -> float:
    """
    Weighted mean of task progress.

    An empty collection reads as fully settled (100): consumers treat the value
    as "how close to done", and nothing outstanding means done.
    """
    acc = 0.0
    total_weight = 0.0
    for task in tasks:
        acc += task.progress * task.weight
        total_weight += task.weight

    if total_weight <= 0:
        return PROGRESS_MAX
    return min(PROGRESS_MAX, max(PROGRESS_MIN, acc / total_weight))


class _Subscription:
    __slots__ = ("callback", "active")

    def __init__(self, callback: TaskListener) -> None:
        self.callback = callback
        self.active = True


class TaskProgressRegistry:
    """
    Registry of active tasks with synchronous subscriber fan-out.

    Create one per process in the composition root and hand it to producers and
    consumers; tests build their own isolated instances.

    Unknown ids are never an error: update/end/complete on a task that is not
    active return False and change nothing, so two code paths racing to finish
    the same task are harmless.
    """

    def __init__(
        self,
        *,
        id_prefix: str = "t",
        linger_seconds: float = 0.0,
        max_task_age_seconds: float = 0.0,
        clock: Clock = time.monotonic,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        self._id_prefix = id_prefix
        self._linger_seconds = max(0.0, float(linger_seconds))
        self._max_task_age_seconds = max(0.0, float(max_task_age_seconds))
        self._clock = clock
        self._timer_factory = timer_factory

        self._lock = threading.RLock()
        self._tasks: dict[str, Task] = {}
        self._subscriptions: list[_Subscription] = []
        self._ids = itertools.count(1)
        self._generations = itertools.count(1)
        # task id -> (generation, timer) for complete() with a linger delay
        self._removals: dict[str, tuple[int, Timer]] = {}

        self._pending: deque[tuple[Task, ...]] = deque()
        self._delivering = False
        # snapshot handed to subscribers in the round running right now
        self._current: tuple[Task, ...] | None = None

    # ---- producer API ----

    def begin(
        self,
        label: str = "",
        initial_progress: float = 0.0,
        weight: float = 1.0,
        *,
        task_id: str | None = None,
    ) -> str:
        """
        Register a new task and return its id.

        A caller-supplied task_id that is already active restarts that task in
        place: it keeps its position but becomes a new task (progress, label,
        weight and timestamps are replaced).
        """
        progress = clamp_progress(initial_progress)
        w = check_weight(weight)
        if task_id is not None and not str(task_id):
            raise ValueError("task_id must be a non-empty string")

        with self._lock:
            tid = self._next_id() if task_id is None else str(task_id)
            self._cancel_removal(tid)

            now = self._clock()
            restarted = tid in self._tasks
            # dict assignment keeps the original position for an existing key
            self._tasks[tid] = Task(
                id=tid,
                label=label or "",
                progress=progress,
                weight=w,
                started_at=now,
                updated_at=now,
                generation=next(self._generations),
            )
            logger.debug(
                "Task %s %s label=%r progress=%.1f weight=%s active=%d",
                tid,
                "restarted" if restarted else "begun",
                label,
                progress,
                w,
                len(self._tasks),
            )
            self._notify()
            return tid

    def update(self, task_id: str, progress: float, label: str | None = None) -> bool:
        """Set progress (and optionally label) of an active task. Returns False if unknown."""
        value = clamp_progress(progress)

        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.debug("update ignored: task %s is not active", task_id)
                return False

            self._tasks[task_id] = task.with_update(progress=value, label=label, now=self._clock())
            self._notify()
            return True

    def end(self, task_id: str) -> bool:
        """Remove a task. Returns False if it was not active."""
        with self._lock:
            task = self._tasks.pop(task_id, None)
            if task is None:
                logger.debug("end ignored: task %s is not active", task_id)
                return False

            self._cancel_removal(task_id)
            logger.debug("Task %s ended active=%d", task_id, len(self._tasks))
            self._notify()
            return True

    def complete(self, task_id: str) -> bool:
        """
        Mark a task as done (progress 100), then retire it.

        With linger_seconds > 0 the task stays visible at 100 for that long so a
        bar can show the finish; the delayed removal only applies to this exact
        task, not to a later task that reuses the id.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                logger.debug("complete ignored: task %s is not active", task_id)
                return False

            self._tasks[task_id] = task.with_update(progress=PROGRESS_MAX, label=None, now=self._clock())
            self._notify()

            if self._linger_seconds <= 0:
                return self.end(task_id)

            if task_id in self._removals:
                # already scheduled by an earlier complete()
                return True

            generation = task.generation
            timer = self._timer_factory(
                self._linger_seconds,
                lambda: self._remove_after_linger(task_id, generation),
            )
            timer.daemon = True
            self._removals[task_id] = (generation, timer)
            timer.start()
            return True

    def clear(self) -> int:
        """Drop every active task. Returns the number of tasks removed."""
        with self._lock:
            removed = len(self._tasks)
            for _, timer in self._removals.values():
                timer.cancel()
            self._removals.clear()
            if not removed:
                return 0

            self._tasks.clear()
            logger.debug("Cleared %d task(s)", removed)
            self._notify()
            return removed

    def evict_stale(self, max_age_seconds: float | None = None) -> list[Task]:
        """
        Remove tasks whose producer has not touched them for longer than max_age_seconds.

        Falls back to the registry default; a non-positive age disables eviction.
        Subscribers get a single notification for the whole sweep.
        """
        age_limit = self._max_task_age_seconds if max_age_seconds is None else float(max_age_seconds)
        if age_limit <= 0:
            return []

        with self._lock:
            now = self._clock()
            stale = [t for t in self._tasks.values() if t.age(now) > age_limit]
            if not stale:
                return []

            for task in stale:
                del self._tasks[task.id]
                self._cancel_removal(task.id)
                logger.warning(
                    "Evicted stuck task %s label=%r progress=%.1f idle=%.1fs",
                    task.id,
                    task.label,
                    task.progress,
                    task.age(now),
                )
            self._notify()
            return stale

    # ---- consumer API ----

    def subscribe(self, callback: TaskListener) -> Unsubscribe:
        """
        Register a listener; returns a callable that releases it.

        Subscribing does not deliver the current state; call get_tasks() for that.
        Releasing is idempotent, and once it returns the listener is never called again.
        """
        if not callable(callback):
            raise TypeError(f"listener must be callable, got {type(callback).__name__}")

        sub = _Subscription(callback)
        with self._lock:
            self._subscriptions.append(sub)

        def unsubscribe() -> None:
            with self._lock:
                if not sub.active:
                    return
                sub.active = False
                self._subscriptions.remove(sub)

        return unsubscribe

    # Reads inside a callback see the state being delivered, not a mutation queued behind it.

    def get_overall_progress(self) -> float:
        with self._lock:
            return overall_progress(self._visible())

    def get_tasks(self) -> list[Task]:
        with self._lock:
            return list(self._visible())

    def get_task(self, task_id: str) -> Task | None:
        with self._lock:
            if self._current is None:
                return self._tasks.get(task_id)
            return next((t for t in self._current if t.id == task_id), None)

    def is_loading(self) -> bool:
        with self._lock:
            return bool(self._visible())

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._visible())

    def close(self) -> None:
        """Cancel pending delayed removals (shutdown hook). Tasks stay as they are."""
        with self._lock:
            for _, timer in self._removals.values():
                timer.cancel()
            self._removals.clear()

    # ---- internals (lock held) ----

    def _visible(self) -> tuple[Task, ...]:
        if self._current is not None:
            return self._current
        return tuple(self._tasks.values())

    def _next_id(self) -> str:
        while True:
            candidate = f"{self._id_prefix}{next(self._ids)}"
            if candidate not in self._tasks:
                return candidate

    def _cancel_removal(self, task_id: str) -> None:
        entry = self._removals.pop(task_id, None)
        if entry is not None:
            entry[1].cancel()

    def _remove_after_linger(self, task_id: str, generation: int) -> None:
        with self._lock:
            entry = self._removals.get(task_id)
            if entry is not None and entry[0] == generation:
                del self._removals[task_id]

            task = self._tasks.get(task_id)
            if task is None or task.generation != generation:
                return

            del self._tasks[task_id]
            logger.debug("Task %s retired after linger active=%d", task_id, len(self._tasks))
            self._notify()

    def _notify(self) -> None:
        self._pending.append(tuple(self._tasks.values()))
        if self._delivering:
            return

        self._delivering = True
        try:
            while self._pending:
                self._deliver(self._pending.popleft())
        finally:
            self._delivering = False
            self._pending.clear()

    def _deliver(self, snapshot: tuple[Task, ...]) -> None:
        self._current = snapshot
        try:
            for sub in list(self._subscriptions):
                if not sub.active:
                    continue
                try:
                    sub.callback(list(snapshot))
                except Exception:
                    logger.exception("Task listener %r failed; continuing with the rest", sub.callback)
        finally:
            self._current = None
