# tests/test_bootstrap.py

from __future__ import annotations

from datetime import UTC
from types import SimpleNamespace

import pytest

from deadline_penalty.cli.bootstrap import build_storage, create_initial_state
from deadline_penalty.connectors.console_connector import ConsoleRenderer
from deadline_penalty.core.state import AppState
from deadline_penalty.storage.kv_store import JsonFileStorage, MemoryStorage, SqliteKeyValueStorage
from deadline_penalty.tasks.persistence import DEFAULT_KEY, PersistenceGateway
from deadline_penalty.tasks.task_models import StoreSnapshot, Task, TaskStatus

from .conftest import HOUR_MS, NOON_MS
from .fakes import FakeClock, FakeScheduler


@pytest.mark.parametrize(
    ("backend", "cls"),
    [("json", JsonFileStorage), ("sqlite", SqliteKeyValueStorage), ("memory", MemoryStorage)],
)
def test_build_storage_picks_backend(settings: SimpleNamespace, backend: str, cls: type) -> None:
    settings.storage_backend = backend

    assert isinstance(build_storage(settings), cls)


def test_create_initial_state_from_corrupt_storage_starts_empty(
    settings: SimpleNamespace, clock: FakeClock, scheduler: FakeScheduler
) -> None:
    storage = MemoryStorage({DEFAULT_KEY: "<<not json>>"})

    state = create_initial_state(
        settings=settings, storage=storage, scheduler=scheduler, clock=clock, tz=UTC
    )

    assert state.store.snapshot() == StoreSnapshot.empty()
    assert not state.sweeper.running


def test_state_survives_a_restart(settings: SimpleNamespace, clock: FakeClock, scheduler: FakeScheduler) -> None:
    settings.storage_backend = "json"
    first = create_initial_state(settings=settings, scheduler=scheduler, clock=clock, tz=UTC)
    first.store.add_task("keep", NOON_MS + HOUR_MS, 500)
    first.store.add_task("miss", NOON_MS + 1000, 1000)
    clock.advance(seconds=2)
    first.sweeper.start()
    scheduler.fire()
    first.shutdown()
    assert not first.sweeper.running

    second = create_initial_state(settings=settings, scheduler=FakeScheduler(), clock=clock, tz=UTC)

    assert second.store.snapshot() == first.store.snapshot()
    assert second.store.total_penalty == 1000
    assert settings.state_path.exists()


def test_console_renderer_reports_only_new_failures(
    state: AppState, clock: FakeClock, scheduler: FakeScheduler, capsys: pytest.CaptureFixture[str]
) -> None:
    state.store.subscribe(ConsoleRenderer(state))
    state.store.add_task("first", NOON_MS + 1000, 1000)
    state.store.add_task("second", NOON_MS + HOUR_MS, 200)
    assert capsys.readouterr().out == ""

    state.sweeper.start()
    clock.advance(seconds=2)
    scheduler.fire()

    out = capsys.readouterr().out
    assert "[DEADLINE] first failed: -¥1,000" in out
    assert "Total penalty: ¥1,000" in out

    state.store.complete_task(state.store.tasks[0].id)
    assert capsys.readouterr().out == ""


def test_create_initial_state_starts_empty_when_snapshot_is_rejected(
    settings: SimpleNamespace, clock: FakeClock, scheduler: FakeScheduler, monkeypatch: pytest.MonkeyPatch
) -> None:
    bad = Task(
        id=1,
        name="negative",
        deadline=NOON_MS + HOUR_MS,
        penalty=-5,
        status=TaskStatus.ACTIVE,
        created_at=NOON_MS,
    )
    monkeypatch.setattr(
        PersistenceGateway, "load", lambda self: StoreSnapshot(tasks=(bad,), history=(), total_penalty=0)
    )

    state = create_initial_state(
        settings=settings, storage=MemoryStorage(), scheduler=scheduler, clock=clock, tz=UTC
    )

    assert state.store.snapshot() == StoreSnapshot.empty()
