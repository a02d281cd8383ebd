# src/taskpilot/connectors/console_connector.py

from __future__ import annotations

import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..tasks.reminders import ReminderEvent
from ..tasks.task_store import TaskPersistenceError

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"/exit", "/quit", "/q"}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotificationSink:
    """Prints reminder events to stdout (called from the reminder thread)."""

    def __init__(self) -> None:
        self._print_lock = threading.Lock()

    async def notify(self, event: ReminderEvent) -> None:
        with self._print_lock:
            _print_ts(event.text)


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (file=%s).", state.tasks.store.path)
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = input(">>> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            break

        try:
            reply = command_registry.handle(state, line)
        except TaskPersistenceError:
            logger.exception("Saving tasks failed for command %r", line)
            _print_ts("[ERROR] Could not save tasks; the change was not applied.")
            continue

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        print(reply, flush=True)

    logger.info("Console connector stopped.")
