# src/deadline_penalty/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum


class ValidationError(ValueError):
    """Invalid task input (empty name, bad deadline, bad penalty)."""


class StorageError(RuntimeError):
    """Read/write failure in a storage backend."""


# Instants that datetime can render in any timezone (a day of slack at the top).
MIN_INSTANT_MS = 0
MAX_INSTANT_MS = int(datetime(9999, 12, 30, tzinfo=UTC).timestamp() * 1000)


def is_valid_instant(ts_ms: object) -> bool:
    if not isinstance(ts_ms, int) or isinstance(ts_ms, bool):
        return False
    return MIN_INSTANT_MS <= ts_ms <= MAX_INSTANT_MS


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    ACTIVE is the only non-terminal status. COMPLETED and FAILED are terminal:
    a resolved task lives in history and never goes back.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def from_db(cls, raw: object) -> TaskStatus | None:
        if not isinstance(raw, str) or not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None

    @property
    def is_resolved(self) -> bool:
        return self is not TaskStatus.ACTIVE


@dataclass(slots=True, frozen=True)
class Task:
    # All timestamps are epoch milliseconds.
    id: int
    name: str
    deadline: int
    penalty: int
    status: TaskStatus
    created_at: int

    completed_at: int | None = None
    failed_at: int | None = None

    def remaining_ms(self, now_ts: int) -> int:
        return self.deadline - now_ts

    def is_overdue(self, now_ts: int) -> bool:
        # Strict: a deadline equal to now is still on time.
        return now_ts > self.deadline


@dataclass(slots=True, frozen=True)
class StoreSnapshot:
    """
    Immutable view of the whole store.

    tasks:   active tasks, insertion order
    history: resolved tasks, newest resolution first
    """

    tasks: tuple[Task, ...]
    history: tuple[Task, ...]
    total_penalty: int

    @classmethod
    def empty(cls) -> StoreSnapshot:
        return cls(tasks=(), history=(), total_penalty=0)

    def failed_penalty_sum(self) -> int:
        return sum(t.penalty for t in self.history if t.status == TaskStatus.FAILED)
