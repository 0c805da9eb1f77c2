# src/task_progress/core/models.py

from __future__ import annotations

import math
from dataclasses import dataclass, replace

PROGRESS_MIN = 0.0
PROGRESS_MAX = 100.0


def clamp_progress(value: float) -> float:
    """Coerce a reported progress value into [0, 100]. NaN is rejected."""
    v = float(value)
    if math.isnan(v):
        raise ValueError("progress must be a number, got NaN")
    return min(PROGRESS_MAX, max(PROGRESS_MIN, v))


def check_weight(value: float) -> float:
    w = float(value)
    if math.isnan(w) or math.isinf(w) or w <= 0:
        raise ValueError(f"weight must be a positive finite number, got {value!r}")
    return w


@dataclass(frozen=True, slots=True)
class Task:
    """
    Immutable snapshot of one in-flight unit of work.

    The registry never mutates a Task; every update stores a new snapshot, so a
    list handed to a subscriber can be kept without further copying.

    Notes:
    - progress is not required to be monotonic (a producer may report a retry).
    - generation tells apart two tasks that reused the same id one after another.
    """

    id: str
    label: str
    progress: float
    weight: float
    started_at: float
    updated_at: float
    generation: int

    def with_update(self, *, progress: float, label: str | None, now: float) -> Task:
        if label is None:
            return replace(self, progress=progress, updated_at=now)
        return replace(self, progress=progress, label=label, updated_at=now)

    def age(self, now: float) -> float:
        """Seconds since the producer last touched this task."""
        return max(0.0, now - self.updated_at)
