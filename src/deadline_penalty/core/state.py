# src/deadline_penalty/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.persistence import PersistenceGateway
from ..tasks.task_scheduler import DeadlineSweeper
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    """
    Everything one session owns.

    Built by the composition root (cli/bootstrap.py) and passed by reference
    to the sweeper and the connectors; nothing reads it as a global.
    """

    # Store Settings on the state for easy access in other modules.
    settings: Any

    store: TaskStore
    gateway: PersistenceGateway
    sweeper: DeadlineSweeper

    def shutdown(self) -> None:
        """Stop sweeping and write one final snapshot."""
        self.sweeper.stop()
        self.gateway.save(self.store.snapshot())
