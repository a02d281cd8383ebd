# tests/test_reminders.py

from __future__ import annotations

import asyncio
import threading
import time
from datetime import datetime, timedelta

import pytest

from taskpilot.cli.bootstrap import create_initial_state
from taskpilot.tasks.reminders import (
    ReminderCategory,
    ReminderRunner,
    ReminderTracker,
    classify,
    run_reminder_loop,
)
from taskpilot.tasks.task_models import Task, TaskPriority, TaskStatus
from taskpilot.tasks.task_service import TaskService

from .fakes import FakeClock, FakeSink, FakeSnapshotSource

NOW = datetime(2026, 3, 10, 9, 0)


def _task(task_id: str, due: datetime | None, **kw) -> Task:
    return Task(id=task_id, title=task_id, due_at=due, created_at=NOW, **kw)


def test_classify_windows() -> None:
    assert classify(_task("a", None), NOW) is None
    assert classify(_task("b", NOW - timedelta(minutes=1)), NOW) == ReminderCategory.OVERDUE
    assert classify(_task("c", NOW + timedelta(minutes=60)), NOW) == ReminderCategory.DUE_SOON
    assert classify(_task("d", NOW + timedelta(minutes=61)), NOW) is None
    assert classify(_task("e", NOW), NOW) == ReminderCategory.DUE_SOON


def test_classify_respects_custom_lead_and_terminal_status() -> None:
    wide = _task("wide", NOW + timedelta(hours=3), reminder_lead_minutes=240)
    narrow = _task("narrow", NOW + timedelta(minutes=10), reminder_lead_minutes=0)
    done = _task("done", NOW - timedelta(hours=1), status=TaskStatus.COMPLETED)

    assert classify(wide, NOW) == ReminderCategory.DUE_SOON
    assert classify(narrow, NOW) is None  # lead clamps to 1 minute
    assert classify(done, NOW) is None


def test_due_soon_then_overdue_emits_exactly_two_events() -> None:
    task = _task("t1", NOW + timedelta(minutes=30), priority=TaskPriority.HIGH, estimated_minutes=20)
    tracker = ReminderTracker()

    events = []
    now = NOW - timedelta(hours=2)
    while now < NOW + timedelta(hours=1):
        events.extend(tracker.scan([task], now))
        now += timedelta(seconds=30)

    assert [e.category for e in events] == [ReminderCategory.DUE_SOON, ReminderCategory.OVERDUE]
    assert all(e.task_id == "t1" for e in events)


def test_leaving_the_window_rearms_the_reminder() -> None:
    task = _task("t", NOW + timedelta(minutes=30))
    tracker = ReminderTracker()

    assert len(tracker.scan([task], NOW)) == 1
    task.due_at = NOW + timedelta(hours=5)  # snoozed
    assert tracker.scan([task], NOW) == []
    task.due_at = NOW + timedelta(minutes=10)
    assert len(tracker.scan([task], NOW)) == 1


def test_event_text_mentions_title_and_due() -> None:
    task = _task("Pay rent", NOW - timedelta(minutes=5))
    (event,) = ReminderTracker().scan([task], NOW)
    assert "Pay rent" in event.text
    assert "2026-03-10 08:55" in event.text


@pytest.mark.asyncio
async def test_loop_notifies_once_per_transition(service: TaskService, clock: FakeClock) -> None:
    task = service.create("T1", "", "HIGH", clock() + timedelta(minutes=30), 20, None)
    sink = FakeSink()

    runner = asyncio.create_task(
        run_reminder_loop(
            service,
            sink,
            initial_delay_seconds=0.0,
            interval_seconds=0.01,
            clock=clock,
        )
    )

    await asyncio.sleep(0.05)
    assert [e.category for e in sink.events] == [ReminderCategory.DUE_SOON]

    clock.advance(minutes=31)
    await asyncio.sleep(0.05)

    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert [(e.task_id, e.category) for e in sink.events] == [
        (task.id, ReminderCategory.DUE_SOON),
        (task.id, ReminderCategory.OVERDUE),
    ]


@pytest.mark.asyncio
async def test_loop_survives_a_failing_snapshot() -> None:
    class Flaky(FakeSnapshotSource):
        def list_active(self):
            self.calls += 1
            if self.calls == 1:
                raise RuntimeError("boom")
            return list(self.tasks)

    source = Flaky(tasks=[_task("t", datetime.now() - timedelta(minutes=5))])
    sink = FakeSink()

    runner = asyncio.create_task(
        run_reminder_loop(source, sink, initial_delay_seconds=0.0, interval_seconds=0.01)
    )
    await asyncio.sleep(0.05)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert source.calls >= 2
    assert [e.category for e in sink.events] == [ReminderCategory.OVERDUE]


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_runner_start_stop_is_idempotent() -> None:
    source = FakeSnapshotSource()
    runner = ReminderRunner(source, FakeSink(), initial_delay_seconds=0.0, interval_seconds=0.01)

    runner.stop()  # not running yet: no-op
    runner.start()
    runner.start()  # already running: no second loop
    assert runner.running
    assert _wait_for(lambda: source.calls >= 2)

    runner.stop()
    runner.stop()
    assert not runner.running
    runner.join(timeout=2.0)

    calls_after_stop = source.calls
    time.sleep(0.05)
    assert source.calls == calls_after_stop


def test_runner_can_restart_after_stop() -> None:
    source = FakeSnapshotSource(tasks=[_task("t", datetime.now() + timedelta(minutes=5))])
    sink = FakeSink()
    runner = ReminderRunner(source, sink, initial_delay_seconds=0.0, interval_seconds=0.01)

    runner.start()
    assert _wait_for(lambda: len(sink.events) == 1)
    runner.stop()
    runner.join(timeout=2.0)

    runner.start()
    calls = source.calls
    assert _wait_for(lambda: source.calls > calls)
    runner.stop()
    runner.join(timeout=2.0)

    # Same tracker across restarts: no duplicate announcement.
    assert len(sink.events) == 1


def test_default_lead_applies_only_to_tasks_without_their_own() -> None:
    inherits = _task("inherits", NOW + timedelta(minutes=90))
    own = _task("own", NOW + timedelta(minutes=90), reminder_lead_minutes=30)

    assert classify(inherits, NOW) is None
    assert classify(inherits, NOW, default_lead_minutes=120) == ReminderCategory.DUE_SOON
    assert classify(own, NOW, default_lead_minutes=120) is None

    tracker = ReminderTracker(default_lead_minutes=120)
    assert [e.task_id for e in tracker.scan([inherits, own], NOW)] == ["inherits"]


def test_configured_default_lead_reaches_the_reminder_loop(settings) -> None:
    settings.default_reminder_lead_minutes = 180
    sink = FakeSink()
    state = create_initial_state(settings=settings, sink=sink)
    task = state.tasks.create("far", due_at=datetime.now() + timedelta(hours=2))

    state.reminders.start()
    assert _wait_for(lambda: len(sink.events) == 1)
    state.reminders.stop()
    state.reminders.join(timeout=2.0)

    assert (sink.events[0].task_id, sink.events[0].category) == (task.id, ReminderCategory.DUE_SOON)


class _BlockingSink:
    """Sink whose notify() blocks the loop thread for a while."""

    def __init__(self, block_seconds: float) -> None:
        self.block_seconds = block_seconds
        self.entered = threading.Event()
        self.events: list = []

    async def notify(self, event) -> None:
        self.entered.set()
        time.sleep(self.block_seconds)
        self.events.append(event)


def test_restart_waits_for_the_previous_loop_to_exit() -> None:
    source = FakeSnapshotSource(tasks=[_task("t", datetime.now() - timedelta(minutes=5))])
    sink = _BlockingSink(block_seconds=0.2)
    runner = ReminderRunner(source, sink, initial_delay_seconds=0.0, interval_seconds=0.01)

    runner.start()
    assert sink.entered.wait(timeout=2.0)
    first_thread = runner._thread

    runner.stop()
    runner.start()
    assert not first_thread.is_alive()

    calls = source.calls
    assert _wait_for(lambda: source.calls > calls)
    runner.stop()
    runner.join(timeout=2.0)

    assert len(sink.events) == 1
