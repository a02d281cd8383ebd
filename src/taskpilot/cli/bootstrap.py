# src/taskpilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, lifecycle service and reminder runner into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import NotificationSink
from ..core.state import AppState
from ..tasks.reminders import ReminderRunner
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_file_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, sink: NotificationSink | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    The reminder runner is only built when a sink is given; it is not started here.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    service = TaskService(TaskStore(settings.tasks_file_path))

    reminders = None
    if sink is not None:
        reminders = ReminderRunner(
            service,
            sink,
            initial_delay_seconds=settings.reminder_initial_delay_seconds,
            interval_seconds=settings.reminder_interval_seconds,
            default_lead_minutes=settings.default_reminder_lead_minutes,
        )

    return AppState(settings=settings, tasks=service, reminders=reminders)
