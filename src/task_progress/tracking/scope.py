# src/task_progress/tracking/scope.py

from __future__ import annotations

import functools
import inspect
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from ..core.registry import TaskProgressRegistry

logger = logging.getLogger(__name__)


class TaskHandle:
    """
    Producer-side handle for one task.

    Once complete() or end() has been called the handle is retired and further
    calls are no-ops, so a later task reusing the same id is never touched.
    """

    def __init__(self, registry: TaskProgressRegistry, task_id: str) -> None:
        self._registry = registry
        self.id = task_id
        self._retired = False

    @property
    def retired(self) -> bool:
        return self._retired

    def update(self, progress: float, label: str | None = None) -> bool:
        if self._retired:
            return False
        return self._registry.update(self.id, progress, label)

    def complete(self) -> bool:
        if self._retired:
            return False
        self._retired = True
        return self._registry.complete(self.id)

    def end(self) -> bool:
        if self._retired:
            return False
        self._retired = True
        return self._registry.end(self.id)

    def __repr__(self) -> str:
        return f"TaskHandle(id={self.id!r}, retired={self._retired})"


@contextmanager
def track_task(
    registry: TaskProgressRegistry,
    label: str = "",
    *,
    weight: float = 1.0,
    task_id: str | None = None,
) -> Iterator[TaskHandle]:
    """
    Begin a task for the duration of a block.

    Normal exit completes the task; any exception (cancellation included) ends
    it and propagates. The body may retire the handle itself.
    """
    handle = TaskHandle(registry, registry.begin(label, weight=weight, task_id=task_id))
    try:
        yield handle
    except BaseException:
        handle.end()
        raise
    else:
        handle.complete()


def tracked(
    registry: TaskProgressRegistry,
    label: str | None = None,
    *,
    weight: float = 1.0,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Decorator: run each call of the function inside track_task().

    Works for plain and async functions. The label defaults to the function's
    qualified name.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        task_label = label if label is not None else func.__qualname__

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with track_task(registry, task_label, weight=weight):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            with track_task(registry, task_label, weight=weight):
                return func(*args, **kwargs)

        return wrapper

    return decorator
