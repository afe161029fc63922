"""Calendar helpers for month-based delivery scheduling.

All values are plain :class:`datetime.date` objects; the planner never deals
with times of day or time zones.
"""
from __future__ import annotations

import calendar
from datetime import date, datetime


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def shift_month(year: int, month: int, months: int) -> tuple[int, int]:
    """Return ``(year, month)`` moved by *months* (may be negative)."""
    index = year * 12 + (month - 1) + months
    return index // 12, index % 12 + 1


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=days_in_month(value.year, value.month))


def add_months(value: date, months: int) -> date:
    """First day of the month *months* after *value*'s month."""
    year, month = shift_month(value.year, value.month, months)
    return date(year, month, 1)


def add_months_keeping_day(value: date, months: int, day_of_month: int) -> date:
    """Move *value* by *months*, landing on *day_of_month*.

    The day is clamped to the last day of the target month, so
    ``add_months_keeping_day(date(2024, 1, 31), 1, 31)`` is 2024-02-29 and
    stepping on from there with the same *day_of_month* returns to the 31st
    wherever the month has one.
    """
    year, month = shift_month(value.year, value.month, months)
    return date(year, month, min(day_of_month, days_in_month(year, month)))


def month_key(value: date) -> str:
    """``YYYY-MM`` key used to bucket deliveries by month."""
    return f"{value.year:04d}-{value.month:02d}"


def month_key_or_none(value: date | None) -> str | None:
    return month_key(value) if value is not None else None


def month_label(key: str) -> str:
    """Human label for a ``YYYY-MM`` key, e.g. ``"April 2024"``."""
    year, month = (int(part) for part in key.split("-", 1))
    return f"{calendar.month_name[month]} {year}"


def parse_date(value: str | date | None) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` (or longer ISO timestamp) value; ``None`` when blank or invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None
