# src/taskpilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import os
import threading
from collections.abc import Iterable, Iterator
from dataclasses import replace
from pathlib import Path

from .csv_codec import read_records, write_rows
from .task_models import (
    DEFAULT_ESTIMATE_MINUTES,
    Task,
    TaskPriority,
    TaskStatus,
    format_timestamp,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

HEADER: tuple[str, ...] = (
    "id",
    "title",
    "description",
    "priority",
    "dueDateTime",
    "estimatedMinutes",
    "status",
    "createdAt",
    "completedAt",
    "tags",
    "category",
    "actualMinutes",
    "reminderBeforeMinutes",
    "sortOrder",
    "recurrence",
)

# Columns 0..8 must be present; the rest were added over time and may be missing.
_REQUIRED_COLUMNS = 9


class TaskPersistenceError(RuntimeError):
    """Writing the task file failed. The triggering operation did not take effect."""


class CorruptRowError(ValueError):
    pass


# ---- row codec ----


def _opt_str(cols: list[str], idx: int) -> str | None:
    if idx >= len(cols) or cols[idx] == "":
        return None
    return cols[idx]


def _opt_int(cols: list[str], idx: int) -> int | None:
    raw = _opt_str(cols, idx)
    return None if raw is None else int(raw)


def _opt_ts(raw: str):
    return None if raw == "" else parse_timestamp(raw)


def task_to_row(task: Task) -> list[str]:
    return [
        task.id,
        task.title or "",
        task.description or "",
        (task.priority or TaskPriority.MEDIUM).value,
        format_timestamp(task.due_at),
        str(task.estimated_minutes),
        (task.status or TaskStatus.PENDING).value,
        format_timestamp(task.created_at),
        format_timestamp(task.completed_at),
        ";".join(task.tags or []),
        task.category or "",
        "" if task.actual_minutes is None else str(task.actual_minutes),
        "" if task.reminder_lead_minutes is None else str(task.reminder_lead_minutes),
        "" if task.sort_order is None else str(task.sort_order),
        task.recurrence or "",
    ]


def row_to_task(cols: list[str]) -> Task:
    """
    Positional decoder. Raises CorruptRowError when a column cannot be parsed.

    Empty priority/status/estimate columns fall back to MEDIUM/PENDING/30,
    matching what the writer would have produced for a fresh task.
    """
    if len(cols) < _REQUIRED_COLUMNS or not cols[0]:
        raise CorruptRowError(f"expected at least {_REQUIRED_COLUMNS} columns, got {len(cols)}")

    try:
        priority = TaskPriority(cols[3]) if cols[3] else TaskPriority.MEDIUM
        status = TaskStatus(cols[6]) if cols[6] else TaskStatus.PENDING
        estimate = max(1, int(cols[5])) if cols[5] else DEFAULT_ESTIMATE_MINUTES

        tags_raw = _opt_str(cols, 9) or ""
        tags = [t.strip() for t in tags_raw.split(";") if t.strip()]

        return Task(
            id=cols[0],
            title=cols[1],
            description=cols[2],
            priority=priority,
            due_at=_opt_ts(cols[4]),
            estimated_minutes=estimate,
            status=status,
            created_at=_opt_ts(cols[7]),
            completed_at=_opt_ts(cols[8]),
            tags=tags,
            category=_opt_str(cols, 10),
            actual_minutes=_opt_int(cols, 11),
            reminder_lead_minutes=_opt_int(cols, 12),
            sort_order=_opt_int(cols, 13),
            recurrence=_opt_str(cols, 14),
        )
    except ValueError as e:
        raise CorruptRowError(str(e)) from e


def copy_task(task: Task) -> Task:
    return replace(task, tags=list(task.tags))


class TaskFile:
    """
    Flat-file record store: one CSV file with a fixed header.

    Reads tolerate corrupt rows (they are skipped); writes replace the whole
    file atomically (temp file + os.replace) and raise TaskPersistenceError
    on failure.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _ensure_file(self) -> None:
        if self._path.exists():
            return
        logger.info("Task file %s missing, creating it with header only", self._path)
        self.rewrite_all([])

    def load(self) -> list[Task]:
        self._ensure_file()

        tasks: list[Task] = []
        seen: set[str] = set()
        skipped = 0

        with open(self._path, "rb") as fh:
            records = read_records(fh)
            next(records, None)  # header

            for record in records:
                cols = record.fields
                if record.error is not None:
                    skipped += 1
                    logger.warning(
                        "Skipping unreadable task row %d in %s: %s", record.line, self._path, record.error
                    )
                    continue
                if not cols or all(c == "" for c in cols):
                    continue
                try:
                    task = row_to_task(cols)
                except CorruptRowError as e:
                    skipped += 1
                    logger.warning("Skipping corrupt task row %d in %s: %s", record.line, self._path, e)
                    continue
                if task.id in seen:
                    skipped += 1
                    logger.warning("Skipping duplicate task id=%s in %s", task.id, self._path)
                    continue
                seen.add(task.id)
                tasks.append(task)

        logger.debug("Loaded %d tasks from %s (skipped=%d)", len(tasks), self._path, skipped)
        return tasks

    def rewrite_all(self, tasks: Iterable[Task]) -> None:
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8", newline="") as fh:
                write_rows(fh, [HEADER, *(task_to_row(t) for t in tasks)])
            os.replace(tmp, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise TaskPersistenceError(f"Failed to save {self._path}") from e


class TaskStore:
    """
    In-memory task directory backed by a TaskFile.

    Thread-safety:
    - one RLock guards both the list and the file
    - callers needing read-modify-write atomicity wrap it in `locked()`
    - tasks handed out are copies; mutate them and `upsert()` to commit
    """

    def __init__(self, path: str | Path = "tasks.csv") -> None:
        self._file = TaskFile(path)
        self._lock = threading.RLock()
        with self._lock:
            self._tasks: list[Task] = self._file.load()
        logger.info("TaskStore ready file=%s total=%s", self._file.path, len(self._tasks))

    @property
    def path(self) -> Path:
        return self._file.path

    @contextlib.contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def _commit(self, new_tasks: list[Task]) -> None:
        """Persist `new_tasks` and make it the current list. Nothing changes on failure."""
        self._file.rewrite_all(new_tasks)
        self._tasks = new_tasks

    # ---- reads ----

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def find_all(self) -> list[Task]:
        with self._lock:
            return [copy_task(t) for t in self._tasks]

    def find_by_id(self, task_id: str) -> Task | None:
        with self._lock:
            for t in self._tasks:
                if t.id == task_id:
                    return copy_task(t)
            return None

    # ---- writes ----

    def upsert(self, task: Task) -> None:
        self.upsert_many([task])

    def upsert_many(self, tasks: Iterable[Task]) -> None:
        incoming = [copy_task(t) for t in tasks]
        if not incoming:
            return
        with self._lock:
            new_tasks = list(self._tasks)
            index = {t.id: i for i, t in enumerate(new_tasks)}
            for t in incoming:
                if not t.id:
                    raise ValueError("task id is required")
                pos = index.get(t.id)
                if pos is None:
                    index[t.id] = len(new_tasks)
                    new_tasks.append(t)
                else:
                    new_tasks[pos] = t
            self._commit(new_tasks)
            logger.debug("Upserted %d task(s)", len(incoming))

    def delete_by_id(self, task_id: str) -> bool:
        with self._lock:
            new_tasks = [t for t in self._tasks if t.id != task_id]
            if len(new_tasks) == len(self._tasks):
                return False
            self._commit(new_tasks)
            logger.debug("Deleted task id=%s", task_id)
            return True
