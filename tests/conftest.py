# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpilot.core.state import AppState
from taskpilot.tasks.task_service import TaskService
from taskpilot.tasks.task_store import TaskStore

from .fakes import FakeClock

BASE_TIME = datetime(2026, 3, 10, 9, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskpilot-test",
        log_level="DEBUG",
        console_enabled=False,
        reminders_enabled=False,
        data_dir=tmp_path,
        tasks_file_path=tmp_path / "data" / "tasks.csv",
        reminder_initial_delay_seconds=0.0,
        reminder_interval_seconds=0.01,
        default_snooze_minutes=15,
        default_reminder_lead_minutes=60,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(BASE_TIME)


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_file_path)


@pytest.fixture()
def service(store: TaskStore, clock: FakeClock) -> TaskService:
    """
    Lifecycle service on a real file-backed store with a controllable clock.

    NOTE: We keep the real TaskStore here because file round-trips are part
    of what we want to test.
    """
    return TaskService(store, clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, service: TaskService) -> AppState:
    return AppState(settings=settings, tasks=service)
