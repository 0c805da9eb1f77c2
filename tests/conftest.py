# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from task_progress.core.registry import TaskProgressRegistry
from task_progress.core.state import AppState

from .fakes import FakeClock, FakeTimerFactory


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="task-progress-test",
        log_level="DEBUG",
        log_dir=tmp_path / "logs",
        id_prefix="t",
        complete_linger_seconds=0.0,
        max_task_age_seconds=0.0,
        default_label="Loading...",
        bar_width=10,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture()
def registry(clock: FakeClock, timers: FakeTimerFactory) -> TaskProgressRegistry:
    """Isolated registry with a controllable clock and timers."""
    return TaskProgressRegistry(clock=clock, timer_factory=timers)


@pytest.fixture()
def state(settings: SimpleNamespace, registry: TaskProgressRegistry) -> AppState:
    return AppState(settings=settings, registry=registry)
