"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskStatus, TaskPriority) + input normalisation
- csv_codec.py: CSV row encoding for the task file
- task_store.py: flat-file record store + locked in-memory task directory
- task_service.py: lifecycle operations (create/complete/start/snooze/reorder...)
- suggestions.py: "what to do next" scoring and ordering
- stats.py: aggregate summary for display
- reminders.py: background loop that announces due-soon / overdue tasks
"""
