# tests/test_stats.py

from __future__ import annotations

from datetime import datetime, timedelta

from taskpilot.tasks.stats import build_stats, humanize_duration, stats_report
from taskpilot.tasks.task_models import Task, TaskStatus

NOW = datetime(2026, 3, 10, 9, 0)


def test_build_stats_counts_and_averages() -> None:
    tasks = [
        Task(id="a", title="a", estimated_minutes=10, created_at=NOW - timedelta(hours=3),
             completed_at=NOW - timedelta(hours=1), status=TaskStatus.COMPLETED),
        Task(id="b", title="b", estimated_minutes=20, created_at=NOW - timedelta(hours=5),
             completed_at=NOW - timedelta(hours=1), status=TaskStatus.COMPLETED),
        Task(id="c", title="c", estimated_minutes=30, due_at=NOW - timedelta(minutes=1)),
        Task(id="d", title="d", estimated_minutes=60, status=TaskStatus.IN_PROGRESS),
        Task(id="e", title="e", estimated_minutes=30, status=TaskStatus.CANCELLED,
             due_at=NOW - timedelta(days=1)),
    ]

    st = build_stats(tasks, NOW)
    assert st.total == 5
    assert st.active == 2
    assert st.completed == 2
    assert st.cancelled == 1
    assert st.overdue == 1
    assert st.avg_estimate_minutes == 30.0
    assert st.avg_completion == timedelta(hours=3)


def test_empty_report() -> None:
    report = stats_report([], NOW)
    assert "Total: 0" in report
    assert "Average time to complete: -" in report


def test_humanize_duration() -> None:
    assert humanize_duration(timedelta(minutes=45)) == "45m"
    assert humanize_duration(timedelta(hours=2, minutes=5, seconds=30)) == "2h 5m"
    assert humanize_duration(None) == "-"
