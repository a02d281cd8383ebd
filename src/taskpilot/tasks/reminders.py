# src/taskpilot/tasks/reminders.py

from __future__ import annotations

"""
Reminder loop.

A small polling loop that:
- reads a snapshot of active tasks (the store lock is held only for that read),
- classifies each dated task as DUE_SOON / OVERDUE / nothing,
- emits one event per category change through an injected sink.

Last-notified state lives in memory only; after a restart a task may be
announced once more.
"""

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from ..core.ports import NotificationSink, TaskSnapshotSource
from .task_models import DEFAULT_REMINDER_LEAD_MINUTES, Task, format_timestamp

logger = logging.getLogger(__name__)


class ReminderCategory(StrEnum):
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"


@dataclass(slots=True, frozen=True)
class ReminderEvent:
    task_id: str
    title: str
    due_at: datetime
    category: ReminderCategory

    @property
    def text(self) -> str:
        due = format_timestamp(self.due_at)
        if self.category == ReminderCategory.OVERDUE:
            return f"[reminder][overdue] {self.title} was due {due}"
        return f"[reminder][due soon] {self.title} is due {due}"


def classify(
    task: Task,
    now: datetime,
    default_lead_minutes: int = DEFAULT_REMINDER_LEAD_MINUTES,
) -> ReminderCategory | None:
    """
    OVERDUE when past due, DUE_SOON inside the lead window, else None.

    `default_lead_minutes` applies to tasks without their own lead.
    """
    if task.due_at is None or task.status.is_terminal:
        return None
    if task.due_at < now:
        return ReminderCategory.OVERDUE
    if task.reminder_lead_minutes is None:
        lead_minutes = max(1, int(default_lead_minutes))
    else:
        lead_minutes = task.lead_minutes
    lead_seconds = lead_minutes * 60
    if (task.due_at - now).total_seconds() <= lead_seconds:
        return ReminderCategory.DUE_SOON
    return None


@dataclass(slots=True)
class ReminderTracker:
    """Per-task last-notified category. Owned by a single loop, not shared."""

    last: dict[str, ReminderCategory] = field(default_factory=dict)
    default_lead_minutes: int = DEFAULT_REMINDER_LEAD_MINUTES

    def copy(self) -> ReminderTracker:
        return ReminderTracker(dict(self.last), self.default_lead_minutes)

    def scan(self, tasks: Iterable[Task], now: datetime) -> list[ReminderEvent]:
        events: list[ReminderEvent] = []
        seen: set[str] = set()

        for task in tasks:
            seen.add(task.id)
            category = classify(task, now, self.default_lead_minutes)
            if category is None:
                # Leaving the window (snoozed, rescheduled) re-arms the reminder.
                self.last.pop(task.id, None)
                continue
            if self.last.get(task.id) == category:
                continue
            self.last[task.id] = category
            events.append(
                ReminderEvent(
                    task_id=task.id,
                    title=task.title,
                    due_at=task.due_at,
                    category=category,
                )
            )

        for gone in set(self.last) - seen:
            del self.last[gone]

        return events


async def run_reminder_loop(
        service: TaskSnapshotSource,
        sink: NotificationSink,
        *,
        initial_delay_seconds: float = 5.0,
        interval_seconds: float = 30.0,
        tracker: ReminderTracker | None = None,
        clock: Callable[[], datetime] = datetime.now,
) -> None:
    """
    Polling reminder loop.

    First tick after initial_delay_seconds, then every interval_seconds.
    A failing tick is logged and the loop keeps going.

    To stop the loop, cancel the coroutine/task.
    """
    delay_s = max(0.0, float(initial_delay_seconds))
    sleep_s = max(0.01, float(interval_seconds))
    tracker = tracker or ReminderTracker()

    await asyncio.sleep(delay_s)

    while True:
        try:
            tasks = service.list_active()
            events = tracker.scan(tasks, clock())
        except Exception:
            logger.exception("reminder scan failed")
            events = []

        for event in events:
            try:
                await sink.notify(event)
                logger.info("Reminder %s task_id=%s", event.category.value, event.task_id)
            except Exception:
                logger.exception("reminder notify failed task_id=%s", event.task_id)

        await asyncio.sleep(sleep_s)


class ReminderRunner:
    """
    Runs the reminder loop on its own event loop in a daemon thread
    (the console REPL blocks the main thread on input()).

    start() is a no-op while running; stop() cancels the loop without waiting
    for an in-flight tick and is a no-op when already stopped.

    The tracker carries over between runs. A restart first waits up to
    `handover_timeout_seconds` for the previous thread to exit; if it is still
    busy, the new run gets its own copy of the tracker.
    """

    def __init__(
        self,
        service: TaskSnapshotSource,
        sink: NotificationSink,
        *,
        initial_delay_seconds: float = 5.0,
        interval_seconds: float = 30.0,
        default_lead_minutes: int = DEFAULT_REMINDER_LEAD_MINUTES,
        handover_timeout_seconds: float = 5.0,
    ) -> None:
        self._service = service
        self._sink = sink
        self._initial_delay_seconds = initial_delay_seconds
        self._interval_seconds = interval_seconds
        self._handover_timeout_seconds = handover_timeout_seconds
        self._tracker = ReminderTracker(default_lead_minutes=default_lead_minutes)

        self._guard = threading.Lock()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task[None] | None = None
        self._last_thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        with self._guard:
            return self._thread is not None

    def start(self) -> None:
        with self._guard:
            if self._thread is not None:
                return

            previous = self._last_thread
            if previous is not None and previous.is_alive():
                previous.join(timeout=self._handover_timeout_seconds)
                if previous.is_alive():
                    logger.warning("Previous reminder loop still busy; starting with a copy of its state.")
                    self._tracker = self._tracker.copy()

            tracker = self._tracker
            ready = threading.Event()
            loop = asyncio.new_event_loop()
            task_holder: dict[str, asyncio.Task[None]] = {}

            def runner() -> None:
                asyncio.set_event_loop(loop)
                task = loop.create_task(
                    run_reminder_loop(
                        self._service,
                        self._sink,
                        initial_delay_seconds=self._initial_delay_seconds,
                        interval_seconds=self._interval_seconds,
                        tracker=tracker,
                    )
                )
                task_holder["task"] = task
                ready.set()
                try:
                    loop.run_until_complete(task)
                except asyncio.CancelledError:
                    pass
                except Exception:
                    logger.exception("Reminder loop crashed.")
                finally:
                    with contextlib.suppress(Exception):
                        loop.close()

            t = threading.Thread(target=runner, name="reminder-loop", daemon=True)
            t.start()
            ready.wait(timeout=5.0)

            self._thread = t
            self._loop = loop
            self._task = task_holder.get("task")
            logger.info("Reminder loop started (interval=%ss).", self._interval_seconds)

    def stop(self) -> None:
        with self._guard:
            if self._thread is None:
                return
            loop, task = self._loop, self._task
            self._last_thread = self._thread
            self._thread = None
            self._loop = None
            self._task = None

        if loop is not None and task is not None:
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError:
                logger.debug("Reminder loop already closed.", exc_info=True)
        logger.info("Reminder loop stopped.")

    def join(self, timeout: float | None = None) -> None:
        """Wait for a previously stopped loop thread to exit (tests/shutdown)."""
        thread = self._last_thread
        if thread is not None:
            thread.join(timeout=timeout)
