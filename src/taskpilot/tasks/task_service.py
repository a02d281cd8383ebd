# src/taskpilot/tasks/task_service.py

"""
Task lifecycle service.

The only place that applies state transitions. Every operation runs inside
the store's lock, so read-modify-write sequences are atomic with respect to
the reminder loop and any other caller.

Unknown ids are reported as False/None, never raised. Malformed numeric or
enum input is replaced with documented defaults (see task_models.parse_*).
TaskPersistenceError from the store propagates unchanged.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timedelta

from .task_models import (
    Task,
    TaskPriority,
    TaskStatus,
    normalize_tags,
    parse_due,
    parse_estimate,
    parse_priority,
    truncate_to_minute,
)
from .task_store import TaskStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

NOON = time(12, 0)


def _nulls_last(value):
    return (value is None, value)


def display_order_key(task: Task):
    """(sort_order asc, None last; created_at asc, None last)."""
    return (_nulls_last(task.sort_order), _nulls_last(task.created_at))


def _created_order_key(task: Task):
    return _nulls_last(task.created_at)


class TaskService:
    def __init__(self, store: TaskStore, *, clock: Clock = datetime.now) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> TaskStore:
        return self._store

    def now(self) -> datetime:
        return truncate_to_minute(self._clock())

    def _mutate(self, task_id: str, op: str, fn: Callable[[Task], None]) -> bool:
        with self._store.locked():
            task = self._store.find_by_id(task_id)
            if task is None:
                logger.debug("%s: task not found id=%s", op, task_id)
                return False
            fn(task)
            self._store.upsert(task)
        logger.debug("%s: task id=%s status=%s", op, task_id, task.status.value)
        return True

    # ---- queries ----

    def get(self, task_id: str) -> Task | None:
        return self._store.find_by_id(task_id)

    def list_all(self) -> list[Task]:
        return sorted(self._store.find_all(), key=display_order_key)

    def filter(
        self,
        status: str | TaskStatus | None = None,
        priority: str | TaskPriority | None = None,
        tag: str | None = None,
    ) -> list[Task]:
        """Tasks matching every given predicate (case-insensitive), oldest first."""
        status_s = str(status).strip().upper() if status else ""
        priority_s = str(priority).strip().upper() if priority else ""
        tag_s = tag.strip() if tag else ""

        out = []
        for t in self._store.find_all():
            if status_s and t.status.value != status_s:
                continue
            if priority_s and (t.priority is None or t.priority.value != priority_s):
                continue
            if tag_s and not t.has_tag(tag_s):
                continue
            out.append(t)
        out.sort(key=_created_order_key)
        return out

    def list_active(self) -> list[Task]:
        return [t for t in self._store.find_all() if t.is_active]

    def list_overdue(self) -> list[Task]:
        now = self._clock()
        return [t for t in self.list_active() if t.due_at is not None and t.due_at < now]

    def list_due_within(self, minutes: int) -> list[Task]:
        now = self._clock()
        threshold = now + timedelta(minutes=int(minutes))
        return [
            t
            for t in self.list_active()
            if t.due_at is not None and now <= t.due_at < threshold
        ]

    # ---- creation ----

    def create(
        self,
        title: str | None,
        description: str | None = "",
        priority: str | TaskPriority | None = None,
        due_at: str | datetime | None = None,
        estimated_minutes: int | str | None = None,
        raw_tags: str | Iterable[str] | None = None,
        *,
        reminder_lead_minutes: int | None = None,
        category: str | None = None,
        recurrence: str | None = None,
    ) -> Task:
        task = Task(
            id=str(uuid.uuid4()),
            title=title or "",
            description=description or "",
            priority=parse_priority(priority),
            due_at=parse_due(due_at),
            estimated_minutes=parse_estimate(estimated_minutes),
            status=TaskStatus.PENDING,
            created_at=self.now(),
            completed_at=None,
            tags=normalize_tags(raw_tags),
            category=category or None,
            reminder_lead_minutes=reminder_lead_minutes,
            recurrence=recurrence or None,
        )
        self._store.upsert(task)
        logger.info("Task created id=%s priority=%s due=%s", task.id, task.priority.value, task.due_at)
        return task

    # ---- transitions ----

    def complete(self, task_id: str) -> bool:
        now = self.now()

        def apply(t: Task) -> None:
            t.status = TaskStatus.COMPLETED
            t.completed_at = now

        return self._mutate(task_id, "complete", apply)

    def start(self, task_id: str) -> bool:
        def apply(t: Task) -> None:
            t.status = TaskStatus.IN_PROGRESS

        return self._mutate(task_id, "start", apply)

    def cancel(self, task_id: str) -> bool:
        def apply(t: Task) -> None:
            t.status = TaskStatus.CANCELLED

        return self._mutate(task_id, "cancel", apply)

    def delete(self, task_id: str) -> bool:
        removed = self._store.delete_by_id(task_id)
        if removed:
            logger.info("Task deleted id=%s", task_id)
        else:
            logger.debug("delete: task not found id=%s", task_id)
        return removed

    def batch_complete_by_tag(self, tag: str) -> int:
        """Complete every not-yet-completed task carrying `tag`. Returns how many changed."""
        if not tag or not tag.strip():
            return 0
        now = self.now()
        with self._store.locked():
            changed = []
            for t in self._store.find_all():
                if t.status != TaskStatus.COMPLETED and t.has_tag(tag):
                    t.status = TaskStatus.COMPLETED
                    t.completed_at = now
                    changed.append(t)
            self._store.upsert_many(changed)
        logger.info("Batch-completed %d task(s) tagged %r", len(changed), tag)
        return len(changed)

    # ---- scheduling ----

    def snooze(self, task_id: str, minutes: int) -> bool:
        delta = timedelta(minutes=max(1, int(minutes)))
        now = self.now()

        def apply(t: Task) -> None:
            anchor = t.due_at if t.due_at is not None else now
            t.due_at = anchor + delta

        return self._mutate(task_id, "snooze", apply)

    def reschedule_date(self, task_id: str, new_date: date, time_of_day: time | None = None) -> bool:
        def apply(t: Task) -> None:
            tod = time_of_day
            if tod is None:
                tod = t.due_at.time() if t.due_at is not None else NOON
            t.due_at = truncate_to_minute(datetime.combine(new_date, tod))

        return self._mutate(task_id, "reschedule", apply)

    def update(
        self,
        task_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
        priority: str | TaskPriority | None = None,
        due_at: str | datetime | None = None,
        estimated_minutes: int | str | None = None,
        tags: str | Iterable[str] | None = None,
        category: str | None = None,
        actual_minutes: int | None = None,
        reminder_lead_minutes: int | None = None,
        recurrence: str | None = None,
    ) -> bool:
        """
        Partial update: None leaves a field unchanged.

        An unparsable priority/due/estimate is treated as "not specified".
        Tags, when given, replace the whole tag list.
        """
        new_priority = None
        if priority is not None:
            new_priority = (
                priority if isinstance(priority, TaskPriority) else TaskPriority.parse(priority)
            )
        new_due = parse_due(due_at)

        new_estimate = None
        if estimated_minutes is not None and _looks_numeric(estimated_minutes):
            new_estimate = parse_estimate(estimated_minutes)

        def apply(t: Task) -> None:
            if title is not None:
                t.title = title
            if description is not None:
                t.description = description
            if new_priority is not None:
                t.priority = new_priority
            if new_due is not None:
                t.due_at = new_due
            if new_estimate is not None:
                t.estimated_minutes = new_estimate
            if tags is not None:
                t.tags = normalize_tags(tags)
            if category is not None:
                t.category = category or None
            if actual_minutes is not None:
                t.actual_minutes = max(1, int(actual_minutes))
            if reminder_lead_minutes is not None:
                t.reminder_lead_minutes = max(1, int(reminder_lead_minutes))
            if recurrence is not None:
                t.recurrence = recurrence or None

        return self._mutate(task_id, "update", apply)

    def update_duration(self, task_id: str, minutes: int) -> bool:
        """Record how long the task actually took."""
        return self.update(task_id, actual_minutes=minutes)

    def reorder(self, from_id: str, to_id: str) -> bool:
        """
        Move `from_id` to just before `to_id` in display order, then renumber
        sort_order densely (0..n-1) for every task. One file write per call.
        """
        with self._store.locked():
            tasks = self.list_all()
            ids = [t.id for t in tasks]
            if from_id not in ids or to_id not in ids:
                logger.debug("reorder: unknown id from=%s to=%s", from_id, to_id)
                return False

            from_idx = ids.index(from_id)
            to_idx = ids.index(to_id)
            moving = tasks.pop(from_idx)
            if to_idx > from_idx:
                to_idx -= 1
            tasks.insert(to_idx, moving)

            for i, t in enumerate(tasks):
                t.sort_order = i
            self._store.upsert_many(tasks)

        logger.debug("reorder: moved %s before %s", from_id, to_id)
        return True


def _looks_numeric(raw: int | str) -> bool:
    if isinstance(raw, bool):
        return False
    if isinstance(raw, int):
        return True
    try:
        int(str(raw).strip())
    except ValueError:
        return False
    return True
