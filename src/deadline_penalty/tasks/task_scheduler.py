# src/deadline_penalty/tasks/task_scheduler.py

from __future__ import annotations

"""
Deadline sweeper.

A small polling loop that, every interval:
- reads the clock,
- fails every active task whose deadline has passed (one batch, one save),
- logs what it failed.

Timing is injected (clock + scheduler) so tests can advance time by hand.
A late tick only reports late; it never fails a task early.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..core.ports import Clock, Scheduler
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TimerHandle:
    callback: Callable[[], Any]
    period: float
    cancelled: bool = False
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)


class AsyncioScheduler:
    """
    Repeating timer on an asyncio event loop.

    Callbacks run on the loop thread, so they never interleave with other
    loop work. The next run is armed after the callback returns.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule(self, callback: Callable[[], Any], period: float) -> TimerHandle:
        handle = TimerHandle(callback=callback, period=max(0.001, float(period)))
        self._arm(handle)
        return handle

    def cancel(self, handle: TimerHandle) -> None:
        handle.cancelled = True
        if handle.timer is not None:
            handle.timer.cancel()
            handle.timer = None

    def _arm(self, handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        handle.timer = self._get_loop().call_later(handle.period, self._fire, handle)

    def _fire(self, handle: TimerHandle) -> None:
        if handle.cancelled:
            return
        try:
            handle.callback()
        except Exception:
            logger.exception("Scheduled callback %r failed", handle.callback)
        self._arm(handle)


class DeadlineSweeper:
    """Periodically moves overdue tasks to history as failed."""

    def __init__(
        self,
        store: TaskStore,
        scheduler: Scheduler,
        *,
        clock: Clock | None = None,
        interval_seconds: float = 1.0,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._clock: Clock = clock or store.clock
        self._interval = max(0.05, float(interval_seconds))
        self._handle: Any = None
        self._stopped = True

    @property
    def running(self) -> bool:
        return not self._stopped

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        if not self._stopped:
            return
        self._stopped = False
        self._handle = self._scheduler.schedule(self._on_timer, self._interval)
        logger.info("Deadline sweeper started (interval=%.2fs)", self._interval)

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        handle, self._handle = self._handle, None
        if handle is not None:
            self._scheduler.cancel(handle)
        logger.info("Deadline sweeper stopped")

    def _on_timer(self) -> None:
        # A timer that was already queued when stop() ran must not mutate.
        if self._stopped:
            return
        try:
            self.tick()
        except Exception:
            logger.exception("Deadline sweep failed")

    def tick(self) -> list[Task]:
        """Run one sweep now. Returns the tasks that failed in this sweep."""
        now_ts = self._clock()
        failed = self._store.fail_overdue(now_ts)
        for t in failed:
            logger.warning(
                "Task %s missed its deadline (deadline=%s now=%s) penalty=%s",
                t.id,
                t.deadline,
                now_ts,
                t.penalty,
            )
        if failed:
            logger.info(
                "Sweep failed %d task(s); total_penalty=%d",
                len(failed),
                self._store.total_penalty,
            )
        return failed
