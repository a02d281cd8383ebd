# src/taskpilot/cli/commands.py

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime

from ..core.state import AppState
from ..tasks.stats import stats_report
from ..tasks.suggestions import suggest
from ..tasks.task_models import Task, format_timestamp

CommandHandler = Callable[[AppState, list[str]], str]


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def format_task(t: Task) -> str:
    due = format_timestamp(t.due_at) or "(none)"
    tags = ";".join(t.tags)
    return (
        f"[{t.id[:8]}] {t.title} | {t.priority.value} | due {due} | "
        f"{t.estimated_minutes}m | {t.status.value} | {tags}"
    )


def _format_list(title: str, tasks: list[Task]) -> str:
    if not tasks:
        return f"{title}: (empty)"
    return "\n".join([f"{title}:"] + [f"  {format_task(t)}" for t in tasks])


def _resolve_id(state: AppState, prefix: str) -> str | None:
    """Accept a full id or a unique prefix of one."""
    matches = [t.id for t in state.tasks.list_all() if t.id.startswith(prefix)]
    if len(matches) == 1:
        return matches[0]
    return None


def _with_task(state: AppState, args: list[str], usage: str, action: Callable[[str], bool], done: str) -> str:
    if not args:
        return usage
    task_id = _resolve_id(state, args[0])
    if task_id is None or not action(task_id):
        return f"Task not found: {args[0]}"
    return done


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_list(state: AppState, args: list[str]) -> str:
    return _format_list("Tasks", state.tasks.list_all())


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add title | priority | YYYY-MM-DD HH:MM | minutes | tag1;tag2

    Everything after the title is optional; bad values fall back to defaults.
    """
    fields = [f.strip() for f in " ".join(args).split("|")]
    if not fields or not fields[0]:
        return "Usage: /add title | priority | YYYY-MM-DD HH:MM | minutes | tags"
    fields += [""] * (5 - len(fields))
    title, priority, due, estimate, tags = fields[:5]

    task = state.tasks.create(
        title,
        "",
        priority or None,
        due or None,
        estimate or None,
        tags or None,
    )
    return f"Added {format_task(task)}"


def cmd_done(state: AppState, args: list[str]) -> str:
    return _with_task(state, args, "Usage: /done <id>", state.tasks.complete, "Marked as completed.")


def cmd_start(state: AppState, args: list[str]) -> str:
    return _with_task(state, args, "Usage: /start <id>", state.tasks.start, "Marked as in progress.")


def cmd_cancel(state: AppState, args: list[str]) -> str:
    return _with_task(state, args, "Usage: /cancel <id>", state.tasks.cancel, "Cancelled.")


def cmd_delete(state: AppState, args: list[str]) -> str:
    return _with_task(state, args, "Usage: /delete <id>", state.tasks.delete, "Deleted.")


def cmd_snooze(state: AppState, args: list[str]) -> str:
    """/snooze <id> [minutes]"""
    minutes = getattr(state.settings, "default_snooze_minutes", 15)
    if len(args) > 1:
        try:
            minutes = int(args[1])
        except ValueError:
            pass
    return _with_task(
        state,
        args,
        "Usage: /snooze <id> [minutes]",
        lambda task_id: state.tasks.snooze(task_id, minutes),
        f"Snoozed by {max(1, minutes)} minutes.",
    )


def cmd_reschedule(state: AppState, args: list[str]) -> str:
    """/reschedule <id> YYYY-MM-DD [HH:MM]"""
    usage = "Usage: /reschedule <id> YYYY-MM-DD [HH:MM]"
    if len(args) < 2:
        return usage
    try:
        new_date = date.fromisoformat(args[1])
        tod = datetime.strptime(args[2], "%H:%M").time() if len(args) > 2 else None
    except ValueError:
        return usage
    return _with_task(
        state,
        args,
        usage,
        lambda task_id: state.tasks.reschedule_date(task_id, new_date, tod),
        f"Rescheduled to {new_date.isoformat()}.",
    )


def cmd_move(state: AppState, args: list[str]) -> str:
    """/move <id> <before-id>"""
    if len(args) < 2:
        return "Usage: /move <id> <before-id>"
    from_id = _resolve_id(state, args[0])
    to_id = _resolve_id(state, args[1])
    if from_id is None or to_id is None or not state.tasks.reorder(from_id, to_id):
        return "Task not found."
    return "Moved."


def cmd_filter(state: AppState, args: list[str]) -> str:
    """/filter status=PENDING priority=HIGH tag=work (any subset)"""
    opts: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if sep:
            opts[key.lower()] = value
    tasks = state.tasks.filter(opts.get("status"), opts.get("priority"), opts.get("tag"))
    return _format_list("Matching tasks", tasks)


def cmd_suggest(state: AppState, args: list[str]) -> str:
    return _format_list("Suggested order", suggest(state.tasks.list_all()))


def cmd_stats(state: AppState, args: list[str]) -> str:
    return stats_report(state.tasks.list_all())


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="List all tasks in display order.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add title | priority | due | minutes | tags.")
registry.register("done", cmd_done, help_text="Complete a task: /done <id>.")
registry.register("start", cmd_start, help_text="Start a task: /start <id>.")
registry.register("cancel", cmd_cancel, help_text="Cancel a task: /cancel <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("snooze", cmd_snooze, help_text="Push the due time back: /snooze <id> [minutes].")
registry.register("reschedule", cmd_reschedule, help_text="Move to another day: /reschedule <id> YYYY-MM-DD [HH:MM].")
registry.register("move", cmd_move, help_text="Reorder: /move <id> <before-id>.")
registry.register("filter", cmd_filter, help_text="Filter: /filter status=.. priority=.. tag=..")
registry.register("suggest", cmd_suggest, help_text="Show tasks in suggested order.")
registry.register("stats", cmd_stats, help_text="Show task statistics.")
