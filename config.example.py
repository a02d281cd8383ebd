# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Put local values in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKPILOT_APP_NAME": "App display name (default: taskpilot).",
    "TASKPILOT_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "TASKPILOT_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "TASKPILOT_REMINDERS_ENABLED": "Run the background reminder loop (true/false, default: true).",
    # Paths
    "TASKPILOT_DATA_DIR": "Local data dir for the task file and logs (default: .local/taskpilot).",
    "TASKPILOT_TASKS_FILE_PATH": "CSV task file (default: <data_dir>/tasks.csv).",
    # Reminders
    "TASKPILOT_REMINDER_INITIAL_DELAY_SECONDS": "Delay before the first reminder scan (default: 5).",
    "TASKPILOT_REMINDER_INTERVAL_SECONDS": "Seconds between reminder scans (default: 30).",
    # Defaults
    "TASKPILOT_DEFAULT_SNOOZE_MINUTES": "Minutes used by /snooze when none are given (default: 15).",
    "TASKPILOT_DEFAULT_REMINDER_LEAD_MINUTES": "Reminder lead for tasks without their own (default: 60).",
}
