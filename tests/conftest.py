# tests/conftest.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from deadline_penalty.core.state import AppState
from deadline_penalty.tasks.ledger import PenaltyLedger
from deadline_penalty.tasks.persistence import PersistenceGateway
from deadline_penalty.tasks.task_scheduler import DeadlineSweeper
from deadline_penalty.tasks.task_store import TaskStore

from .fakes import CountingStorage, FakeClock, FakeScheduler

# 2026-10-17 12:00:00 UTC, well away from any day boundary.
NOON_MS = int(datetime(2026, 10, 17, 12, 0, tzinfo=UTC).timestamp() * 1000)

HOUR_MS = 3_600_000


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="deadline-penalty-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        storage_backend="memory",
        state_path=tmp_path / "state.json",
        state_db_path=tmp_path / "state.sqlite3",
        storage_key="deadlinePenaltyApp",
        log_path=tmp_path / "deadline_penalty.log",
        sweep_interval_seconds=1.0,
        urgent_threshold_seconds=3600,
        currency_symbol="¥",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOON_MS)


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def storage() -> CountingStorage:
    return CountingStorage()


@pytest.fixture()
def gateway(storage: CountingStorage) -> PersistenceGateway:
    return PersistenceGateway(storage)


@pytest.fixture()
def store(gateway: PersistenceGateway, clock: FakeClock) -> TaskStore:
    return TaskStore(PenaltyLedger(), gateway, clock=clock, tz=UTC)


@pytest.fixture()
def sweeper(store: TaskStore, scheduler: FakeScheduler, clock: FakeClock) -> DeadlineSweeper:
    return DeadlineSweeper(store, scheduler, clock=clock, interval_seconds=1.0)


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: TaskStore,
    gateway: PersistenceGateway,
    sweeper: DeadlineSweeper,
) -> AppState:
    """AppState wired with deterministic fakes (fake clock, manual scheduler)."""
    return AppState(settings=settings, store=store, gateway=gateway, sweeper=sweeper)
