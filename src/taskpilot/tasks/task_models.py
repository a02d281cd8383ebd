# src/taskpilot/tasks/task_models.py

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

DEFAULT_ESTIMATE_MINUTES = 30
DEFAULT_REMINDER_LEAD_MINUTES = 60

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    PENDING -> IN_PROGRESS -> COMPLETED
    PENDING | IN_PROGRESS -> CANCELLED

    COMPLETED and CANCELLED are terminal.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


class TaskPriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """CRITICAL=0 .. LOW=3 (lower is more important)."""
        return _PRIORITY_RANK[self]

    @classmethod
    def parse(cls, raw: str | None, default: TaskPriority | None = None) -> TaskPriority | None:
        if raw is None or not str(raw).strip():
            return default
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return default


_PRIORITY_RANK = {
    TaskPriority.CRITICAL: 0,
    TaskPriority.HIGH: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 3,
}


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    due_at: datetime | None = None
    estimated_minutes: int = DEFAULT_ESTIMATE_MINUTES
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime | None = None
    completed_at: datetime | None = None
    tags: list[str] = field(default_factory=list)

    category: str | None = None
    actual_minutes: int | None = None
    reminder_lead_minutes: int | None = None  # None -> DEFAULT_REMINDER_LEAD_MINUTES
    sort_order: int | None = None
    recurrence: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)

    @property
    def lead_minutes(self) -> int:
        if self.reminder_lead_minutes is None:
            return DEFAULT_REMINDER_LEAD_MINUTES
        return max(1, int(self.reminder_lead_minutes))

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip().lower()
        return any(t.lower() == wanted for t in self.tags)


# ---- input normalisation (never rejects, always substitutes a default) ----


def truncate_to_minute(value: datetime) -> datetime:
    return value.replace(second=0, microsecond=0)


def format_timestamp(value: datetime | None) -> str:
    return "" if value is None else value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(raw: str) -> datetime:
    """Strict parser used by the file decoder (raises ValueError)."""
    return datetime.strptime(raw.strip(), TIMESTAMP_FORMAT)


def parse_due(raw: str | datetime | None) -> datetime | None:
    """Caller-facing due parser: malformed input means "no due date"."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return truncate_to_minute(raw)
    text = str(raw).strip()
    if not text:
        return None
    try:
        return parse_timestamp(text)
    except ValueError:
        return None


def parse_priority(raw: str | TaskPriority | None) -> TaskPriority:
    if isinstance(raw, TaskPriority):
        return raw
    return TaskPriority.parse(raw, TaskPriority.MEDIUM) or TaskPriority.MEDIUM


def parse_estimate(raw: int | str | None, default: int = DEFAULT_ESTIMATE_MINUTES) -> int:
    """
    Estimate in minutes, always >= 1.

    Unparsable input falls back to `default`; numbers below 1 clamp to 1.
    """
    if raw is None:
        value = default
    elif isinstance(raw, bool):
        value = default
    elif isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = default
    return max(1, value)


def normalize_tags(raw: str | Iterable[str] | None) -> list[str]:
    """
    Lowercase, trimmed tags in input order.

    Accepts a ';'-separated string or an iterable of strings. Every value is
    split on ';' as well, so a stored tag never contains the column separator.
    """
    if raw is None:
        return []
    parts = [raw] if isinstance(raw, str) else list(raw)
    out: list[str] = []
    for part in parts:
        for piece in str(part).split(";"):
            value = piece.strip().lower()
            if value:
                out.append(value)
    return out
