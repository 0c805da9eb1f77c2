# src/task_progress/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process.
- Nothing required at import time; every value has a default.
- Composition root accepts injected settings so tests never touch the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASK_PROGRESS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Path

    # ---- Registry ----
    id_prefix: str
    complete_linger_seconds: float
    max_task_age_seconds: float

    # ---- Presentation ----
    default_label: str
    bar_width: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-progress").strip() or "task-progress"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip().upper() or "INFO"
        log_dir = _env_path(_k("LOG_DIR"), Path(".local/task_progress"))

        id_prefix = _env(_k("ID_PREFIX"), "t").strip() or "t"

        # Negative values make no sense for durations; treat them as "off".
        complete_linger_seconds = max(0.0, _env_float(_k("COMPLETE_LINGER_SECONDS"), 0.0))
        max_task_age_seconds = max(0.0, _env_float(_k("MAX_TASK_AGE_SECONDS"), 0.0))

        default_label = _env(_k("DEFAULT_LABEL"), "Loading...")
        bar_width = max(5, _env_int(_k("BAR_WIDTH"), 30))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_dir=log_dir,
            id_prefix=id_prefix,
            complete_linger_seconds=complete_linger_seconds,
            max_task_age_seconds=max_task_age_seconds,
            default_label=default_label,
            bar_width=bar_width,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv(override=False)
    return Settings.from_env()
