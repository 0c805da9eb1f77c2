# src/task_progress/cli/demo.py

"""
Simulated producers for the console demo.

Each producer runs in its own thread, reports progress in steps and always
retires its task through track_task(), including when it is stopped early.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from ..core.state import AppState
from ..tracking.scope import track_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DemoJob:
    label: str
    steps: int
    step_seconds: float
    weight: float = 1.0
    start_delay: float = 0.0


DEFAULT_JOBS: tuple[DemoJob, ...] = (
    DemoJob("Importing leads", steps=10, step_seconds=0.3),
    DemoJob("Syncing contacts", steps=6, step_seconds=0.5, start_delay=0.8),
    DemoJob("Generating reply", steps=4, step_seconds=0.4, weight=2.0, start_delay=1.5),
)


class DemoCancelled(Exception):
    pass


def run_job(state: AppState, job: DemoJob, stop: threading.Event) -> None:
    if stop.wait(job.start_delay):
        return

    try:
        with track_task(state.registry, job.label, weight=job.weight) as handle:
            for step in range(1, job.steps + 1):
                if stop.wait(job.step_seconds):
                    raise DemoCancelled(job.label)
                handle.update(100.0 * step / job.steps)
    except DemoCancelled:
        logger.info("Demo job stopped early: %s", job.label)
    else:
        logger.info("Demo job finished: %s", job.label)


def start_demo(
    state: AppState,
    stop: threading.Event,
    jobs: tuple[DemoJob, ...] = DEFAULT_JOBS,
) -> list[threading.Thread]:
    threads = [
        threading.Thread(target=run_job, args=(state, job, stop), name=f"demo-{i}", daemon=True)
        for i, job in enumerate(jobs, start=1)
    ]
    for t in threads:
        t.start()
    logger.info("Demo started with %d producer(s).", len(threads))
    return threads
