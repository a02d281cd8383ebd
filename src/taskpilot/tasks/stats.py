# src/taskpilot/tasks/stats.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from .task_models import Task, TaskStatus


@dataclass(slots=True, frozen=True)
class TaskStats:
    total: int
    active: int
    completed: int
    cancelled: int
    overdue: int
    avg_estimate_minutes: float
    avg_completion: timedelta | None


def build_stats(tasks: Iterable[Task], now: datetime | None = None) -> TaskStats:
    if now is None:
        now = datetime.now()
    items = list(tasks)

    completed = [t for t in items if t.status == TaskStatus.COMPLETED]
    active = [t for t in items if t.is_active]
    overdue = [t for t in active if t.due_at is not None and t.due_at < now]

    avg_est = sum(t.estimated_minutes for t in items) / len(items) if items else 0.0

    durations = [
        t.completed_at - t.created_at
        for t in completed
        if t.created_at is not None and t.completed_at is not None
    ]
    avg_completion = sum(durations, timedelta()) / len(durations) if durations else None

    return TaskStats(
        total=len(items),
        active=len(active),
        completed=len(completed),
        cancelled=sum(1 for t in items if t.status == TaskStatus.CANCELLED),
        overdue=len(overdue),
        avg_estimate_minutes=avg_est,
        avg_completion=avg_completion,
    )


def humanize_duration(value: timedelta | None) -> str:
    if value is None:
        return "-"
    total_minutes = int(value.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def stats_report(tasks: Iterable[Task], now: datetime | None = None) -> str:
    st = build_stats(tasks, now)
    return (
        "Task stats:\n"
        f"  Total: {st.total}\n"
        f"  Active (pending/in progress): {st.active}\n"
        f"  Completed: {st.completed}\n"
        f"  Cancelled: {st.cancelled}\n"
        f"  Overdue: {st.overdue}\n"
        f"  Average estimate: {st.avg_estimate_minutes:.1f} min\n"
        f"  Average time to complete: {humanize_duration(st.avg_completion)}"
    )
