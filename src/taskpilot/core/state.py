# src/taskpilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.reminders import ReminderRunner
from ..tasks.task_service import TaskService


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    tasks: TaskService
    reminders: ReminderRunner | None = None
