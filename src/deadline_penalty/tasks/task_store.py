# src/deadline_penalty/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

from ..core.ports import Clock, RenderHook, system_clock
from .ledger import PenaltyLedger
from .task_models import StoreSnapshot, Task, TaskStatus, ValidationError, is_valid_instant

if TYPE_CHECKING:
    from .persistence import PersistenceGateway

logger = logging.getLogger(__name__)


def start_of_day_ms(now_ts: int, tz: tzinfo | None = None) -> int:
    """Epoch ms of local midnight for the day containing now_ts."""
    dt = datetime.fromtimestamp(now_ts / 1000, tz=tz)
    midnight = dt.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


class TaskStore:
    """
    In-memory task store: active tasks, resolved history and the penalty ledger.

    Every committed mutation:
    - saves one full snapshot through the persistence gateway (if any)
    - pushes that snapshot to the subscribed render hooks

    Operations are all-or-nothing. Input is validated before anything is
    touched, and the ledger moves together with the collections.

    Thread-safety:
    - none; callers serialize access (single event loop)
    """

    def __init__(
        self,
        ledger: PenaltyLedger | None = None,
        gateway: PersistenceGateway | None = None,
        *,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._ledger = ledger if ledger is not None else PenaltyLedger()
        self._gateway = gateway
        self._clock: Clock = clock or system_clock
        self._tz = tz

        self._active: list[Task] = []
        self._history: list[Task] = []
        self._last_id = 0
        self._hooks: list[RenderHook] = []

    # ---- read accessors ----

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def tz(self) -> tzinfo | None:
        return self._tz

    @property
    def ledger(self) -> PenaltyLedger:
        return self._ledger

    @property
    def tasks(self) -> tuple[Task, ...]:
        return tuple(self._active)

    @property
    def history(self) -> tuple[Task, ...]:
        return tuple(self._history)

    @property
    def total_penalty(self) -> int:
        return self._ledger.total

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            tasks=tuple(self._active),
            history=tuple(self._history),
            total_penalty=self._ledger.total,
        )

    def get_task(self, task_id: int) -> Task | None:
        for t in self._active:
            if t.id == task_id:
                return t
        return None

    # ---- subscription ----

    def subscribe(self, hook: RenderHook) -> Callable[[], None]:
        self._hooks.append(hook)

        def _unsubscribe() -> None:
            if hook in self._hooks:
                self._hooks.remove(hook)

        return _unsubscribe

    def _notify(self, snap: StoreSnapshot) -> None:
        for hook in list(self._hooks):
            try:
                hook(snap)
            except Exception:
                logger.exception("Render hook %r failed", hook)

    def _commit(self) -> StoreSnapshot:
        snap = self.snapshot()
        if self._gateway is not None:
            # Best-effort mirror; in-memory state stays authoritative either way.
            self._gateway.save(snap)
        self._notify(snap)
        return snap

    # ---- low-level helpers ----

    def _next_id(self, now_ts: int) -> int:
        task_id = now_ts if now_ts > self._last_id else self._last_id + 1
        self._last_id = task_id
        return task_id

    def _index_of_active(self, task_id: int) -> int:
        for i, t in enumerate(self._active):
            if t.id == task_id:
                return i
        return -1

    def _validate(self, name: object, deadline: object, penalty: object, now_ts: int) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name is required")

        if not isinstance(deadline, int) or isinstance(deadline, bool):
            raise ValidationError("deadline must be an epoch-ms timestamp")
        if not is_valid_instant(deadline):
            raise ValidationError(f"deadline is not a representable instant: {deadline}")
        if deadline < start_of_day_ms(now_ts, self._tz):
            raise ValidationError("deadline must not be before today")

        if not isinstance(penalty, int) or isinstance(penalty, bool):
            raise ValidationError("penalty must be an integer")
        if penalty < 0:
            raise ValidationError("penalty must be non-negative")

        return name.strip()

    @staticmethod
    def _check_snapshot(snap: StoreSnapshot) -> None:
        """Reject a snapshot that would break the store invariants; mutates nothing."""
        seen: set[int] = set()
        for t in (*snap.tasks, *snap.history):
            if t.id in seen:
                raise ValidationError(f"duplicate task id in snapshot: {t.id}")
            seen.add(t.id)
            if isinstance(t.penalty, bool) or not isinstance(t.penalty, int) or t.penalty < 0:
                raise ValidationError(f"task {t.id} has an invalid penalty: {t.penalty!r}")
            if not is_valid_instant(t.deadline):
                raise ValidationError(f"task {t.id} has an invalid deadline: {t.deadline!r}")
        if any(t.status != TaskStatus.ACTIVE for t in snap.tasks):
            raise ValidationError("snapshot holds a resolved task in the active list")
        if any(t.status == TaskStatus.ACTIVE for t in snap.history):
            raise ValidationError("snapshot holds an active task in history")
        if snap.total_penalty < 0:
            raise ValidationError("snapshot total_penalty is negative")

    # ---- public API ----

    def restore(self, snap: StoreSnapshot) -> None:
        """Replace the whole state (startup load). Does not save."""
        self._check_snapshot(snap)
        self._active = list(snap.tasks)
        self._history = list(snap.history)
        self._ledger.reset(snap.total_penalty)
        ids = [t.id for t in self._active] + [t.id for t in self._history]
        self._last_id = max(ids, default=0)
        logger.info(
            "TaskStore restored active=%d history=%d total_penalty=%d",
            len(self._active),
            len(self._history),
            self._ledger.total,
        )
        self._notify(self.snapshot())

    def add_task(self, name: str, deadline: int, penalty: int) -> Task:
        now_ts = self._clock()
        clean_name = self._validate(name, deadline, penalty, now_ts)

        task = Task(
            id=self._next_id(now_ts),
            name=clean_name,
            deadline=deadline,
            penalty=penalty,
            status=TaskStatus.ACTIVE,
            created_at=now_ts,
        )
        self._active.append(task)
        logger.info("Task added id=%s deadline=%s penalty=%s", task.id, task.deadline, task.penalty)
        self._commit()
        return task

    def complete_task(self, task_id: int) -> Task | None:
        idx = self._index_of_active(task_id)
        if idx == -1:
            return None

        done = replace(self._active[idx], status=TaskStatus.COMPLETED, completed_at=self._clock())
        del self._active[idx]
        self._history.insert(0, done)
        logger.info("Task %s -> completed", task_id)
        self._commit()
        return done

    def delete_task(self, task_id: int) -> Task | None:
        idx = self._index_of_active(task_id)
        if idx == -1:
            return None

        removed = self._active.pop(idx)
        logger.info("Task %s deleted", task_id)
        self._commit()
        return removed

    def delete_history_item(self, index: int) -> Task:
        if not 0 <= index < len(self._history):
            raise IndexError(f"history index out of range: {index}")

        entry = self._history[index]
        if entry.status == TaskStatus.FAILED:
            self._ledger.reverse(entry.penalty)
        del self._history[index]
        logger.info(
            "History entry %s deleted (task %s, %s) total_penalty=%d",
            index,
            entry.id,
            entry.status.value,
            self._ledger.total,
        )
        self._commit()
        return entry

    def fail_overdue(self, now_ts: int) -> list[Task]:
        """
        Move every active task with now_ts > deadline to history as failed.

        The whole batch is committed once; nothing is saved or rendered when
        no task is overdue.
        """
        failed: list[Task] = []
        keep: list[Task] = []
        for t in self._active:
            if t.is_overdue(now_ts):
                failed.append(replace(t, status=TaskStatus.FAILED, failed_at=now_ts))
            else:
                keep.append(t)

        if not failed:
            return []

        # Ledger first: if it refuses the amount, nothing else has moved.
        self._ledger.accrue(sum(t.penalty for t in failed))
        self._active = keep
        for t in failed:
            self._history.insert(0, t)
        self._commit()
        return failed
