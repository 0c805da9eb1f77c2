"""
Process-wide registry of in-flight tasks with aggregated progress.

Components:
- core.registry: TaskProgressRegistry (begin / update / complete / end / subscribe)
- core.state: LoadingState view model and LoadingObserver
- tracking.scope: track_task() / tracked() for guaranteed cleanup
- tracking.feed: watch_loading() for asyncio consumers
"""

from .core.models import Task
from .core.registry import TaskProgressRegistry, overall_progress
from .core.state import LoadingObserver, LoadingState
from .tracking.feed import wait_until_idle, watch_loading
from .tracking.scope import TaskHandle, track_task, tracked

__all__ = [
    "LoadingObserver",
    "LoadingState",
    "Task",
    "TaskHandle",
    "TaskProgressRegistry",
    "overall_progress",
    "track_task",
    "tracked",
    "wait_until_idle",
    "watch_loading",
]
