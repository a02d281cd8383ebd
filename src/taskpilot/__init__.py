# src/taskpilot/__init__.py

"""Personal task manager: CSV-backed task store, lifecycle service, suggestions and reminders."""

__version__ = "0.1.0"
