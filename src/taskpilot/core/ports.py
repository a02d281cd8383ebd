# src/taskpilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the background services.

The reminder loop depends on Protocols instead of concrete implementations.
This keeps sinks swappable (console, logs, anything else) and makes testing easier.
"""

from typing import Any, Awaitable, Protocol


class NotificationSink(Protocol):
    """
    Where reminder events go.

    The sink decides how to surface the event (print, log, push...).
    The reminder loop only decides *when* an event is due.
    """

    def notify(self, event: Any) -> Awaitable[None]: ...


class TaskSnapshotSource(Protocol):
    """Read side of the lifecycle service used by the reminder loop."""

    def list_active(self) -> list[Any]: ...
