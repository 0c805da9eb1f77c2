# src/task_progress/tracking/feed.py

"""
Asyncio bridge.

Registry notifications are synchronous and may fire on any thread. The feed
hands each one to the consuming event loop with call_soon_threadsafe, so async
consumers can simply `async for state in watch_loading(registry)`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from ..core.models import Task
from ..core.registry import TaskProgressRegistry
from ..core.state import DEFAULT_LABEL, LoadingState

logger = logging.getLogger(__name__)


async def watch_loading(
    registry: TaskProgressRegistry,
    *,
    default_label: str = DEFAULT_LABEL,
    include_current: bool = True,
) -> AsyncIterator[LoadingState]:
    """
    Yield a LoadingState for every registry notification.

    With include_current the current state is yielded first; a mutation racing
    with the subscription may then show up twice, which is harmless for a
    state-based consumer. The subscription is released when the generator is
    closed (break, aclose() or cancellation).
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[LoadingState] = asyncio.Queue()

    def _on_tasks(tasks: list[Task]) -> None:
        state = LoadingState.from_tasks(tasks, default_label)
        try:
            loop.call_soon_threadsafe(queue.put_nowait, state)
        except RuntimeError:
            # Loop already closed; the consumer is gone.
            logger.debug("Dropping loading update: event loop is closed")

    unsubscribe = registry.subscribe(_on_tasks)
    try:
        if include_current:
            yield LoadingState.from_tasks(registry.get_tasks(), default_label)
        while True:
            yield await queue.get()
    finally:
        unsubscribe()


async def wait_until_idle(
    registry: TaskProgressRegistry,
    *,
    timeout: float | None = None,
) -> None:
    """Return once no task is active. Raises TimeoutError after `timeout` seconds."""
    async with asyncio.timeout(timeout):
        feed = watch_loading(registry)
        try:
            async for state in feed:
                if not state.is_loading:
                    return
        finally:
            await feed.aclose()
