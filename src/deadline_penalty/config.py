# src/deadline_penalty/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time; every value has a local default.
- All local data lives under data_dir (gitignored).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "PENALTY"

STORAGE_BACKENDS = ("json", "sqlite", "memory")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


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

    # ---- Storage ----
    data_dir: Path
    storage_backend: str
    state_path: Path
    state_db_path: Path
    storage_key: str
    log_path: Path

    # ---- Deadline sweep / display ----
    sweep_interval_seconds: float
    urgent_threshold_seconds: int
    currency_symbol: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "deadline-penalty") or "deadline-penalty"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/deadline_penalty"))

        storage_backend = _env(_k("STORAGE_BACKEND"), "json").strip().lower()
        if storage_backend not in STORAGE_BACKENDS:
            storage_backend = "json"

        state_path = _env_path(_k("STATE_PATH"), data_dir / "state.json")
        state_db_path = _env_path(_k("STATE_DB_PATH"), data_dir / "state.sqlite3")
        storage_key = _env(_k("STORAGE_KEY"), "deadlinePenaltyApp") or "deadlinePenaltyApp"
        log_path = _env_path(_k("LOG_PATH"), data_dir / "deadline_penalty.log")

        # The sweep is a poll; anything faster than this only burns CPU.
        sweep_interval_seconds = max(0.05, _env_float(_k("SWEEP_INTERVAL_SECONDS"), 1.0))
        urgent_threshold_seconds = max(0, _env_int(_k("URGENT_THRESHOLD_SECONDS"), 3600))
        currency_symbol = _env(_k("CURRENCY_SYMBOL"), "¥")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            storage_backend=storage_backend,
            state_path=state_path,
            state_db_path=state_db_path,
            storage_key=storage_key,
            log_path=log_path,
            sweep_interval_seconds=sweep_interval_seconds,
            urgent_threshold_seconds=urgent_threshold_seconds,
            currency_symbol=currency_symbol,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
