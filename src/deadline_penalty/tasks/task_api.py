# src/deadline_penalty/tasks/task_api.py

from __future__ import annotations

"""
Helpers used by front-ends: turning raw form input into engine values, and
engine values into display strings (countdowns, money, dates).
"""

import re
from datetime import datetime, tzinfo
from enum import StrEnum

from .task_models import ValidationError

DEADLINE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S", "%Y/%m/%d %H:%M")

_PENALTY_RE = re.compile(r"^\d{1,3}(,\d{3})*$|^\d+$")


class Urgency(StrEnum):
    NORMAL = "normal"
    URGENT = "urgent"
    OVERDUE = "overdue"


def _to_ms(dt: datetime, tz: tzinfo | None) -> int:
    if dt.tzinfo is None and tz is not None:
        dt = dt.replace(tzinfo=tz)
    return int(dt.timestamp() * 1000)


def parse_deadline(raw: object, *, tz: tzinfo | None = None) -> int:
    """
    Accepts an epoch-ms int, a datetime, or a "YYYY-MM-DD HH:MM" / ISO string.
    Naive values are read in `tz` (local time when tz is None).
    """
    if isinstance(raw, bool):
        raise ValidationError("deadline must be a date and time")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, datetime):
        return _to_ms(raw, tz)
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("deadline is required")

    text = raw.strip()
    for fmt in DEADLINE_FORMATS:
        try:
            return _to_ms(datetime.strptime(text, fmt), tz)
        except ValueError:
            continue
    try:
        return _to_ms(datetime.fromisoformat(text), tz)
    except ValueError:
        raise ValidationError(f"unrecognized deadline: {text!r}") from None


def parse_penalty(raw: object) -> int:
    if isinstance(raw, bool):
        raise ValidationError("penalty must be a whole number")
    if isinstance(raw, int):
        if raw < 0:
            raise ValidationError("penalty must be non-negative")
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError("penalty is required")

    text = raw.strip()
    if text.startswith("-"):
        raise ValidationError("penalty must be non-negative")
    if not _PENALTY_RE.match(text):
        raise ValidationError(f"penalty must be a whole number: {text!r}")
    try:
        return int(text.replace(",", ""))
    except ValueError:
        # More digits than int() will parse.
        raise ValidationError("penalty is too large") from None


def format_countdown(remaining_ms: int) -> str:
    """Two most significant units, e.g. '2d 3h', '1h 5m', '4m 10s', '9s'."""
    if remaining_ms <= 0:
        return "overdue"

    seconds = remaining_ms // 1000
    minutes = seconds // 60
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def urgency(remaining_ms: int, *, urgent_threshold_ms: int = 3_600_000) -> Urgency:
    if remaining_ms <= 0:
        return Urgency.OVERDUE
    if remaining_ms <= urgent_threshold_ms:
        return Urgency.URGENT
    return Urgency.NORMAL


def format_money(amount: int, symbol: str = "¥") -> str:
    return f"{symbol}{amount:,}"


def _from_ms(ts_ms: int, tz: tzinfo | None) -> datetime:
    return datetime.fromtimestamp(ts_ms / 1000, tz=tz)


def format_datetime(ts_ms: int, *, tz: tzinfo | None = None) -> str:
    dt = _from_ms(ts_ms, tz)
    return f"{dt.month}/{dt.day} {dt:%H:%M}"


def format_clock(ts_ms: int, *, tz: tzinfo | None = None) -> str:
    return _from_ms(ts_ms, tz).strftime("%Y/%m/%d %H:%M:%S")
