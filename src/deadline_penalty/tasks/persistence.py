# src/deadline_penalty/tasks/persistence.py

from __future__ import annotations

"""
Snapshot persistence.

The whole store (active tasks, history, ledger total) is one JSON record
under a single key. Writes replace the record as a unit; atomicity against
partial writes is the storage backend's job (see storage/kv_store.py).

load() never raises: absent, corrupt or unparseable storage yields the empty
state, and bad individual records are skipped.
"""

import json
import logging
from typing import Any

from ..core.ports import KeyValueStorage
from .task_models import StoreSnapshot, Task, TaskStatus, is_valid_instant

logger = logging.getLogger(__name__)

DEFAULT_KEY = "deadlinePenaltyApp"


def _task_to_record(task: Task) -> dict[str, Any]:
    rec: dict[str, Any] = {
        "id": task.id,
        "name": task.name,
        "deadline": task.deadline,
        "penalty": task.penalty,
        "status": task.status.value,
        "createdAt": task.created_at,
    }
    if task.completed_at is not None:
        rec["completedAt"] = task.completed_at
    if task.failed_at is not None:
        rec["failedAt"] = task.failed_at
    return rec


def _as_int(raw: Any) -> int | None:
    # JSON numbers may arrive as floats (e.g. written by another client).
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return None


def _record_to_task(rec: Any) -> Task | None:
    if not isinstance(rec, dict):
        return None

    task_id = _as_int(rec.get("id"))
    deadline = _as_int(rec.get("deadline"))
    name = rec.get("name")
    status = TaskStatus.from_db(rec.get("status"))
    if task_id is None or deadline is None or status is None:
        return None
    if not is_valid_instant(deadline):
        return None
    if not isinstance(name, str) or not name.strip():
        return None

    penalty = _as_int(rec.get("penalty"))
    penalty = penalty if penalty is not None and penalty >= 0 else 0
    created_at = _as_int(rec.get("createdAt"))
    completed_at = _as_int(rec.get("completedAt"))
    failed_at = _as_int(rec.get("failedAt"))

    # completedAt/failedAt exist iff the status says so.
    if status == TaskStatus.COMPLETED and completed_at is None:
        return None
    if status == TaskStatus.FAILED and failed_at is None:
        return None

    return Task(
        id=task_id,
        name=name,
        deadline=deadline,
        penalty=penalty,
        status=status,
        created_at=created_at if created_at is not None else task_id,
        completed_at=completed_at if status == TaskStatus.COMPLETED else None,
        failed_at=failed_at if status == TaskStatus.FAILED else None,
    )


def _decode_list(raw: Any, *, label: str, resolved: bool, seen: set[int]) -> list[Task]:
    if not isinstance(raw, list):
        if raw is not None:
            logger.warning("Persisted %s is not a list; using empty", label)
        return []

    out: list[Task] = []
    for rec in raw:
        task = _record_to_task(rec)
        if task is None:
            logger.warning("Skipping malformed %s record: %r", label, rec)
            continue
        if task.status.is_resolved != resolved:
            logger.warning("Skipping %s record %s with status %s", label, task.id, task.status.value)
            continue
        if task.id in seen:
            logger.warning("Skipping duplicate %s record id=%s", label, task.id)
            continue
        seen.add(task.id)
        out.append(task)
    return out


def encode_snapshot(snap: StoreSnapshot) -> str:
    data = {
        "tasks": [_task_to_record(t) for t in snap.tasks],
        "history": [_task_to_record(t) for t in snap.history],
        "totalPenalty": snap.total_penalty,
    }
    return json.dumps(data, ensure_ascii=False)


def decode_snapshot(raw: str) -> StoreSnapshot:
    """Decode a stored record. Raises ValueError only if the root is unusable."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")

    # History wins on id clashes: a resolved task never re-enters active.
    seen: set[int] = set()
    history = _decode_list(data.get("history"), label="history", resolved=True, seen=seen)
    tasks = _decode_list(data.get("tasks"), label="tasks", resolved=False, seen=seen)

    total = _as_int(data.get("totalPenalty"))
    if total is None or total < 0:
        total = 0

    snap = StoreSnapshot(tasks=tuple(tasks), history=tuple(history), total_penalty=total)
    if total != snap.failed_penalty_sum():
        logger.debug(
            "Persisted totalPenalty=%s differs from failed history sum=%s",
            total,
            snap.failed_penalty_sum(),
        )
    return snap


class PersistenceGateway:
    """Saves/loads the store snapshot as one record in a key-value backend."""

    def __init__(self, storage: KeyValueStorage, *, key: str = DEFAULT_KEY) -> None:
        self._storage = storage
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def save(self, snap: StoreSnapshot) -> bool:
        try:
            self._storage.set(self._key, encode_snapshot(snap))
        except Exception:
            logger.exception("Failed to save snapshot key=%s", self._key)
            return False
        logger.debug(
            "Saved snapshot key=%s active=%d history=%d total=%d",
            self._key,
            len(snap.tasks),
            len(snap.history),
            snap.total_penalty,
        )
        return True

    def load(self) -> StoreSnapshot:
        try:
            raw = self._storage.get(self._key)
        except Exception:
            logger.exception("Failed to read snapshot key=%s; starting empty", self._key)
            return StoreSnapshot.empty()

        if raw is None or not raw.strip():
            logger.info("No saved snapshot key=%s; starting empty", self._key)
            return StoreSnapshot.empty()

        try:
            snap = decode_snapshot(raw)
        except Exception:
            logger.exception("Failed to parse snapshot key=%s; starting empty", self._key)
            return StoreSnapshot.empty()

        logger.info(
            "Loaded snapshot key=%s active=%d history=%d total=%d",
            self._key,
            len(snap.tasks),
            len(snap.history),
            snap.total_penalty,
        )
        return snap
