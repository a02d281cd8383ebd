# src/taskpilot/tasks/suggestions.py

"""
"What to do next" ordering.

Each task gets an additive integer score; tasks are sorted best-first by
score, then due (earliest first, undated last), then priority rank
(CRITICAL first), then estimate (shortest first).

Recomputed from scratch on every call.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from .task_models import Task, TaskPriority, TaskStatus

TERMINAL_SCORE = -1000

PRIORITY_WEIGHTS = {
    TaskPriority.CRITICAL: 100,
    TaskPriority.HIGH: 70,
    TaskPriority.MEDIUM: 30,
    TaskPriority.LOW: 0,
}

OVERDUE_BONUS = 100
# (max minutes until due, bonus), checked in order
DUE_WINDOWS = ((60, 40), (240, 25), (24 * 60, 10))
# (max estimate minutes, bonus): short tasks build momentum
ESTIMATE_WINDOWS = ((30, 10), (60, 5))
# (min age in days, bonus): avoid procrastinating on old tasks
AGE_WINDOWS = ((7, 20), (3, 10))
IN_PROGRESS_BONUS = 15


def _whole_minutes(delta_seconds: float) -> int:
    return int(delta_seconds / 60)


def score(task: Task, now: datetime) -> int:
    if task.status.is_terminal:
        return TERMINAL_SCORE

    s = PRIORITY_WEIGHTS[task.priority or TaskPriority.MEDIUM]

    if task.due_at is not None:
        minutes = _whole_minutes((task.due_at - now).total_seconds())
        if minutes < 0:
            s += OVERDUE_BONUS
        else:
            for limit, bonus in DUE_WINDOWS:
                if minutes <= limit:
                    s += bonus
                    break

    est = max(1, task.estimated_minutes)
    for limit, bonus in ESTIMATE_WINDOWS:
        if est <= limit:
            s += bonus
            break

    if task.created_at is not None:
        days = (now - task.created_at).days
        for min_days, bonus in AGE_WINDOWS:
            if days >= min_days:
                s += bonus
                break

    if task.status == TaskStatus.IN_PROGRESS:
        s += IN_PROGRESS_BONUS

    return s


def suggest(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """Return a new list ordered best-first. The input is not modified."""
    if now is None:
        now = datetime.now()

    def key(t: Task):
        return (
            -score(t, now),
            t.due_at is None,
            t.due_at or datetime.min,
            (t.priority or TaskPriority.MEDIUM).rank,
            t.estimated_minutes,
        )

    return sorted(tasks, key=key)
