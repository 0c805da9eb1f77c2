# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from task_progress.config import Settings


def _clear_env(monkeypatch) -> None:
    for suffix in (
        "APP_NAME",
        "LOG_LEVEL",
        "LOG_DIR",
        "ID_PREFIX",
        "COMPLETE_LINGER_SECONDS",
        "MAX_TASK_AGE_SECONDS",
        "DEFAULT_LABEL",
        "BAR_WIDTH",
    ):
        monkeypatch.delenv(f"TASK_PROGRESS_{suffix}", raising=False)


def test_defaults(monkeypatch) -> None:
    _clear_env(monkeypatch)
    s = Settings.from_env()
    assert s.app_name == "task-progress"
    assert s.log_level == "INFO"
    assert s.log_dir == Path(".local/task_progress")
    assert s.id_prefix == "t"
    assert s.complete_linger_seconds == 0.0
    assert s.max_task_age_seconds == 0.0
    assert s.default_label == "Loading..."
    assert s.bar_width == 30


def test_env_overrides(monkeypatch, tmp_path: Path) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("TASK_PROGRESS_LOG_LEVEL", "debug")
    monkeypatch.setenv("TASK_PROGRESS_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TASK_PROGRESS_ID_PREFIX", "job-")
    monkeypatch.setenv("TASK_PROGRESS_COMPLETE_LINGER_SECONDS", "0.3")
    monkeypatch.setenv("TASK_PROGRESS_MAX_TASK_AGE_SECONDS", "600")
    monkeypatch.setenv("TASK_PROGRESS_BAR_WIDTH", "50")

    s = Settings.from_env()
    assert s.log_level == "DEBUG"
    assert s.log_dir == tmp_path
    assert s.id_prefix == "job-"
    assert s.complete_linger_seconds == 0.3
    assert s.max_task_age_seconds == 600.0
    assert s.bar_width == 50


def test_bad_values_fall_back(monkeypatch) -> None:
    _clear_env(monkeypatch)
    monkeypatch.setenv("TASK_PROGRESS_COMPLETE_LINGER_SECONDS", "soon")
    monkeypatch.setenv("TASK_PROGRESS_MAX_TASK_AGE_SECONDS", "-5")
    monkeypatch.setenv("TASK_PROGRESS_BAR_WIDTH", "2")
    monkeypatch.setenv("TASK_PROGRESS_ID_PREFIX", "   ")

    s = Settings.from_env()
    assert s.complete_linger_seconds == 0.0
    assert s.max_task_age_seconds == 0.0
    assert s.bar_width == 5
    assert s.id_prefix == "t"
