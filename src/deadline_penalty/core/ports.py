# src/deadline_penalty/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the clock, storage and timer swappable and makes testing easier:
tests drive time by hand instead of waiting on the wall clock.
"""

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import StoreSnapshot

Clock = Callable[[], int]
# Returns the current time as epoch milliseconds.

RenderHook = Callable[["StoreSnapshot"], None]
# Pushed the new snapshot after every committed mutation.


def system_clock() -> int:
    return int(time.time() * 1000)


class KeyValueStorage(Protocol):
    """Durable string storage. Backends raise StorageError on I/O failure."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...


class Scheduler(Protocol):
    """Repeating-timer primitive."""

    def schedule(self, callback: Callable[[], Any], period: float) -> Any: ...
    def cancel(self, handle: Any) -> None: ...
