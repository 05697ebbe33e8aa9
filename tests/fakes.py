# tests/fakes.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from deadline_penalty.tasks.task_models import StorageError


class FakeClock:
    """Manually advanced clock (epoch ms)."""

    def __init__(self, now_ms: int) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, *, seconds: float = 0, ms: int = 0) -> int:
        self.now_ms += int(seconds * 1000) + ms
        return self.now_ms


@dataclass(slots=True)
class FakeHandle:
    callback: Callable[[], Any]
    period: float
    cancelled: bool = False


@dataclass(slots=True)
class FakeScheduler:
    """
    Scheduler port that never fires on its own.

    Tests call fire() to simulate one timer period elapsing.
    """

    handles: list[FakeHandle] = field(default_factory=list)

    def schedule(self, callback: Callable[[], Any], period: float) -> FakeHandle:
        handle = FakeHandle(callback=callback, period=period)
        self.handles.append(handle)
        return handle

    def cancel(self, handle: FakeHandle) -> None:
        handle.cancelled = True

    def fire(self) -> None:
        for h in list(self.handles):
            if not h.cancelled:
                h.callback()

    @property
    def live(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]


class FailingStorage:
    """Storage whose reads and/or writes always fail."""

    def __init__(self, *, fail_get: bool = True, fail_set: bool = True) -> None:
        self.fail_get = fail_get
        self.fail_set = fail_set
        self.data: dict[str, str] = {}
        self.set_calls = 0

    def get(self, key: str) -> str | None:
        if self.fail_get:
            raise StorageError("disk on fire")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_calls += 1
        if self.fail_set:
            raise StorageError("disk full")
        self.data[key] = value


class CountingStorage:
    """In-memory storage that records every write."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        self.data[key] = value
