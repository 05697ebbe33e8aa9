# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from deadline_penalty.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PENALTY_DATA_DIR",
        "PENALTY_STORAGE_BACKEND",
        "PENALTY_SWEEP_INTERVAL_SECONDS",
        "PENALTY_STATE_PATH",
        "PENALTY_LOG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()

    assert s.storage_backend == "json"
    assert s.sweep_interval_seconds == 1.0
    assert s.state_path == Path(".local/deadline_penalty") / "state.json"
    assert s.storage_key == "deadlinePenaltyApp"
    assert s.log_path == Path(".local/deadline_penalty") / "deadline_penalty.log"


def test_env_overrides_and_sanitizing(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PENALTY_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("PENALTY_STORAGE_BACKEND", "SQLite")
    monkeypatch.setenv("PENALTY_SWEEP_INTERVAL_SECONDS", "0")
    monkeypatch.setenv("PENALTY_URGENT_THRESHOLD_SECONDS", "not a number")
    monkeypatch.setenv("PENALTY_CONSOLE_ENABLED", "off")
    monkeypatch.delenv("PENALTY_STATE_DB_PATH", raising=False)
    monkeypatch.delenv("PENALTY_LOG_PATH", raising=False)

    s = Settings.from_env()

    assert s.storage_backend == "sqlite"
    assert s.state_db_path == tmp_path / "state.sqlite3"
    assert s.log_path == tmp_path / "deadline_penalty.log"
    assert s.sweep_interval_seconds == 0.05
    assert s.urgent_threshold_seconds == 3600
    assert s.console_enabled is False


def test_unknown_backend_falls_back_to_json(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PENALTY_STORAGE_BACKEND", "redis")

    assert Settings.from_env().storage_backend == "json"
