# tests/test_task_api.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from deadline_penalty.tasks.task_api import (
    Urgency,
    format_clock,
    format_countdown,
    format_datetime,
    format_money,
    parse_deadline,
    parse_penalty,
    urgency,
)
from deadline_penalty.tasks.task_models import ValidationError

from .conftest import NOON_MS

JST = timezone(timedelta(hours=9))


def test_parse_deadline_picker_format() -> None:
    assert parse_deadline("2026-10-17 12:00", tz=UTC) == NOON_MS
    assert parse_deadline("2026-10-17 21:00", tz=JST) == NOON_MS


def test_parse_deadline_other_inputs() -> None:
    assert parse_deadline(NOON_MS) == NOON_MS
    assert parse_deadline(datetime(2026, 10, 17, 12, 0, tzinfo=UTC)) == NOON_MS
    assert parse_deadline(datetime(2026, 10, 17, 12, 0), tz=UTC) == NOON_MS
    assert parse_deadline("2026-10-17T12:00:00+00:00") == NOON_MS


@pytest.mark.parametrize("raw", ["", "   ", "tomorrow", "2026-13-01 10:00", None, True, 1.5])
def test_parse_deadline_rejects_garbage(raw) -> None:
    with pytest.raises(ValidationError):
        parse_deadline(raw, tz=UTC)


@pytest.mark.parametrize(("raw", "expected"), [(0, 0), (500, 500), ("1000", 1000), ("1,000", 1000), (" 42 ", 42)])
def test_parse_penalty_accepts_whole_numbers(raw, expected: int) -> None:
    assert parse_penalty(raw) == expected


@pytest.mark.parametrize("raw", [-1, "-5", "1.5", "abc", "", "1,00", None, True, 2.0])
def test_parse_penalty_rejects(raw) -> None:
    with pytest.raises(ValidationError):
        parse_penalty(raw)


def test_parse_penalty_with_too_many_digits_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_penalty("9" * 5000)


@pytest.mark.parametrize(
    ("ms", "expected"),
    [
        (0, "overdue"),
        (-5000, "overdue"),
        (999, "0s"),
        (9_000, "9s"),
        (4 * 60_000 + 10_000, "4m 10s"),
        (3_600_000 + 5 * 60_000, "1h 5m"),
        (2 * 86_400_000 + 3 * 3_600_000, "2d 3h"),
    ],
)
def test_format_countdown(ms: int, expected: str) -> None:
    assert format_countdown(ms) == expected


def test_urgency_levels() -> None:
    assert urgency(0) == Urgency.OVERDUE
    assert urgency(3_600_000) == Urgency.URGENT
    assert urgency(3_600_001) == Urgency.NORMAL
    assert urgency(5_000, urgent_threshold_ms=1_000) == Urgency.NORMAL


def test_formatting_helpers() -> None:
    assert format_money(1234567) == "¥1,234,567"
    assert format_money(0, "$") == "$0"
    assert format_datetime(NOON_MS, tz=UTC) == "10/17 12:00"
    assert format_clock(NOON_MS + 5_000, tz=JST) == "2026/10/17 21:00:05"
