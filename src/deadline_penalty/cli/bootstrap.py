# src/deadline_penalty/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- picks the storage backend,
- wires ledger/store/gateway/sweeper into AppState and restores the last snapshot.
"""

from __future__ import annotations

import logging
from datetime import tzinfo

from ..config import get_settings
from ..core.ports import Clock, KeyValueStorage, Scheduler
from ..core.state import AppState
from ..storage.kv_store import JsonFileStorage, MemoryStorage, SqliteKeyValueStorage
from ..tasks.ledger import PenaltyLedger
from ..tasks.persistence import PersistenceGateway
from ..tasks.task_models import StorageError, StoreSnapshot, ValidationError
from ..tasks.task_scheduler import AsyncioScheduler, DeadlineSweeper
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.state_path.parent.mkdir(parents=True, exist_ok=True)
    settings.state_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_storage(settings) -> KeyValueStorage:
    backend = str(getattr(settings, "storage_backend", "json"))
    if backend == "memory":
        return MemoryStorage()
    if backend == "sqlite":
        try:
            return SqliteKeyValueStorage(settings.state_db_path)
        except StorageError:
            # Same policy as a corrupt snapshot: keep running, just not durably.
            logger.exception("SQLite storage unavailable; falling back to memory")
            return MemoryStorage()
    return JsonFileStorage(settings.state_path)


def create_initial_state(
    *,
    settings=None,
    storage: KeyValueStorage | None = None,
    scheduler: Scheduler | None = None,
    clock: Clock | None = None,
    tz: tzinfo | None = None,
) -> AppState:
    """
    Create AppState from the provided settings and restore the saved snapshot.

    Storage, scheduler, clock and tz are injectable for tests; by default they
    come from settings, an AsyncioScheduler, the system clock and local time.
    """
    if settings is None:
        settings = get_settings()

    if storage is None:
        _ensure_local_dirs(settings)
        storage = build_storage(settings)

    gateway = PersistenceGateway(storage, key=settings.storage_key)
    store = TaskStore(PenaltyLedger(), gateway, clock=clock, tz=tz)
    try:
        store.restore(gateway.load())
    except ValidationError:
        logger.exception("Saved snapshot rejected; starting with an empty store")
        store.restore(StoreSnapshot.empty())

    sweeper = DeadlineSweeper(
        store,
        scheduler if scheduler is not None else AsyncioScheduler(),
        clock=clock,
        interval_seconds=settings.sweep_interval_seconds,
    )

    return AppState(settings=settings, store=store, gateway=gateway, sweeper=sweeper)
