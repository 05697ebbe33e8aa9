# src/deadline_penalty/tasks/ledger.py

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class PenaltyLedger:
    """
    Running total of accrued penalties.

    Only two mutators exist: accrue() on a failed transition and reverse() on
    deletion of a failed history entry. The total never goes below zero.
    """

    __slots__ = ("_total",)

    def __init__(self, total: int = 0) -> None:
        self._total = max(0, int(total))

    @property
    def total(self) -> int:
        return self._total

    def accrue(self, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"cannot accrue a negative amount: {amount}")
        self._total += amount
        return self._total

    def reverse(self, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"cannot reverse a negative amount: {amount}")
        if amount > self._total:
            logger.debug("Ledger reversal clamped: total=%s amount=%s", self._total, amount)
        self._total = max(0, self._total - amount)
        return self._total

    def reset(self, total: int = 0) -> None:
        self._total = max(0, int(total))

    def __repr__(self) -> str:
        return f"PenaltyLedger(total={self._total})"
