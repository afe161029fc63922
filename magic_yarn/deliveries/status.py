"""Delivery status catalogue.

Statuses are stored as small integer ids on ``deliveries.status_id``:

    1 Awaiting confirmation -> 2 Approved -> 3 Completed
    any open status         -> 4 Cancelled
"""
from __future__ import annotations

import re

STATUS_AWAITING_CONFIRMATION = 1
STATUS_APPROVED = 2
STATUS_COMPLETED = 3
STATUS_CANCELLED = 4

DELIVERY_STATUS_DEFINITIONS: tuple[tuple[int, str], ...] = (
    (STATUS_AWAITING_CONFIRMATION, "Awaiting confirmation"),
    (STATUS_APPROVED, "Approved"),
    (STATUS_COMPLETED, "Completed"),
    (STATUS_CANCELLED, "Cancelled"),
)

DELIVERY_STATUS_LABELS_BY_ID: dict[int, str] = dict(DELIVERY_STATUS_DEFINITIONS)

VALID_STATUS_IDS: frozenset[int] = frozenset(DELIVERY_STATUS_LABELS_BY_ID)

# Statuses that still count as "upcoming" work on the dashboard.
OPEN_STATUS_IDS: tuple[int, ...] = (STATUS_AWAITING_CONFIRMATION, STATUS_APPROVED)

UNKNOWN_STATUS_LABEL = "—"

_INTEGER_RE = re.compile(r"-?\d+", re.ASCII)


def to_status_id(value: int | str | None) -> int | None:
    """Return *value* as a known status id, or ``None``.

    Accepts integers and base-10 numeric strings; booleans are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER_RE.fullmatch(text) is None:
            return None
        value = int(text)
    if not isinstance(value, int):
        return None
    return value if value in VALID_STATUS_IDS else None


def is_status_id(value: int | str | None) -> bool:
    return to_status_id(value) is not None


def format_status(value: int | str | None) -> str:
    status_id = to_status_id(value)
    if status_id is None:
        return UNKNOWN_STATUS_LABEL
    return DELIVERY_STATUS_LABELS_BY_ID[status_id]


def status_options() -> list[dict[str, object]]:
    return [{"value": status_id, "label": label} for status_id, label in DELIVERY_STATUS_DEFINITIONS]
