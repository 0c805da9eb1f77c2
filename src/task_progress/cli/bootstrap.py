# src/task_progress/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- builds the single TaskProgressRegistry for the process,
- wires it into AppState, which is then passed to producers and consumers.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.registry import TaskProgressRegistry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def build_registry(settings) -> TaskProgressRegistry:
    return TaskProgressRegistry(
        id_prefix=getattr(settings, "id_prefix", "t"),
        linger_seconds=getattr(settings, "complete_linger_seconds", 0.0),
        max_task_age_seconds=getattr(settings, "max_task_age_seconds", 0.0),
    )


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    registry = build_registry(settings)
    logger.debug(
        "Registry ready id_prefix=%s linger=%.2fs max_age=%.1fs",
        getattr(settings, "id_prefix", "t"),
        getattr(settings, "complete_linger_seconds", 0.0),
        getattr(settings, "max_task_age_seconds", 0.0),
    )
    return AppState(settings=settings, registry=registry)
