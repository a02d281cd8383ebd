# src/taskpilot/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a sensible local default; nothing is required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKPILOT"

# Real environment wins over .env.
load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool
    reminders_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_file_path: Path

    # ---- Reminders ----
    reminder_initial_delay_seconds: float
    reminder_interval_seconds: float

    # ---- Defaults applied to caller input ----
    default_snooze_minutes: int
    default_reminder_lead_minutes: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskpilot")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskpilot"))
        tasks_file_path = _env_path(_k("TASKS_FILE_PATH"), data_dir / "tasks.csv")

        reminder_initial_delay_seconds = _env_float(_k("REMINDER_INITIAL_DELAY_SECONDS"), 5.0)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 30.0)

        default_snooze_minutes = _env_int(_k("DEFAULT_SNOOZE_MINUTES"), 15)
        default_reminder_lead_minutes = _env_int(_k("DEFAULT_REMINDER_LEAD_MINUTES"), 60)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            reminders_enabled=reminders_enabled,
            data_dir=data_dir,
            tasks_file_path=tasks_file_path,
            reminder_initial_delay_seconds=reminder_initial_delay_seconds,
            reminder_interval_seconds=reminder_interval_seconds,
            default_snooze_minutes=max(1, default_snooze_minutes),
            default_reminder_lead_minutes=max(1, default_reminder_lead_minutes),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
