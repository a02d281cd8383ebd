# tests/test_commands.py

from __future__ import annotations

from taskpilot.cli.commands import CommandRegistry, registry
from taskpilot.tasks.task_models import TaskPriority, TaskStatus


def test_command_registry_routes_and_aliases(state) -> None:
    reg = CommandRegistry()
    called = {"a": 0}

    def handler(state, args):
        called["a"] += 1
        return f"a:{','.join(args)}"

    reg.register("alpha", handler, "alpha", aliases=["a"])

    assert reg.handle(state, "/alpha x y") == "a:x,y"
    assert reg.handle(state, "/A z") == "a:z"
    assert called["a"] == 2


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_add_then_done_by_id_prefix(state) -> None:
    reply = registry.handle(state, "/add Buy milk | high | 2026-03-10 18:00 | 10 | Home;errand")
    assert reply.startswith("Added")

    (task,) = state.tasks.list_all()
    assert task.title == "Buy milk"
    assert task.priority == TaskPriority.HIGH
    assert task.tags == ["home", "errand"]

    assert registry.handle(state, f"/done {task.id[:8]}") == "Marked as completed."
    assert state.tasks.get(task.id).status == TaskStatus.COMPLETED
    assert registry.handle(state, "/done nosuchid").startswith("Task not found")


def test_add_with_title_only_uses_defaults(state) -> None:
    registry.handle(state, "/add Just a title")
    (task,) = state.tasks.list_all()
    assert task.priority == TaskPriority.MEDIUM
    assert task.estimated_minutes == 30
    assert task.due_at is None


def test_filter_suggest_and_stats(state) -> None:
    registry.handle(state, "/add Low one | low")
    registry.handle(state, "/add Urgent one | critical | | | work")

    filtered = registry.handle(state, "/filter tag=WORK")
    assert "Urgent one" in filtered
    assert "Low one" not in filtered

    suggested = registry.handle(state, "/suggest").splitlines()
    assert "Urgent one" in suggested[1]

    assert "Total: 2" in registry.handle(state, "/stats")
