"""Delivery due-date projection.

Given recipients on a shipment schedule and their delivery history, work out
which recipient-months inside a planning horizon still need a delivery.

Rules
-----
- The anchor of a delivery is its first non-null date among target,
  completed, shipped and requested (in that order).  A recipient's anchor is
  the latest delivery anchor.
- With an anchor, the first due date is ``anchor + frequency`` months.
  Without one (no usable history) the first due date is *today*.
- Each further due date adds ``frequency`` months, always landing on the
  anchor's day-of-month clamped to the month length.
- Only due dates inside ``[start of current month, end of month
  horizon-1 months ahead]`` are reported.
- A month already holding a delivery whose target date falls in it is
  skipped for that recipient; matching is per month, not per exact date.

The projector is a pure function: identical inputs and *today* produce an
identical, identically ordered result.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterable
from dataclasses import asdict, dataclass
from datetime import date

from magic_yarn.normalization.address_normalizer import format_address
from magic_yarn.planner.dates import (
    add_months,
    add_months_keeping_day,
    end_of_month,
    month_key,
    month_key_or_none,
    month_label,
    shift_month,
    start_of_month,
)

HORIZON_OPTIONS: tuple[int, ...] = (1, 3, 6, 12)
DEFAULT_HORIZON_MONTHS = 6
UNASSIGNED_LABEL = "Unassigned"


@dataclass(frozen=True, slots=True)
class PlannerRecipient:
    id: Hashable
    name: str
    shipment_frequency_months: int | None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    assigned_user_id: Hashable | None = None
    coordinator_name: str | None = None


@dataclass(frozen=True, slots=True)
class PlannerDelivery:
    recipient_id: Hashable
    requested_date: date | None = None
    target_delivery_date: date | None = None
    shipped_date: date | None = None
    completed_date: date | None = None
    id: Hashable | None = None


@dataclass(frozen=True, slots=True)
class DueRow:
    key: str
    recipient_id: Hashable
    recipient_name: str
    chapter_leader: str
    frequency_months: int
    last_delivery_date: date | None
    is_first_delivery: bool
    due_month_key: str
    due_month_label: str
    create_target_date: date
    create_requested_date: date
    create_address: str
    create_coordinator_id: Hashable | None

    @property
    def selectable(self) -> bool:
        """Rows without a mailing address can be shown but not created."""
        return bool(self.create_address)

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        data["recipient_id"] = str(self.recipient_id)
        data["create_coordinator_id"] = (
            str(self.create_coordinator_id) if self.create_coordinator_id is not None else None
        )
        for field in ("last_delivery_date", "create_target_date", "create_requested_date"):
            value = data[field]
            data[field] = value.isoformat() if value is not None else None
        data["selectable"] = self.selectable
        return data


def delivery_anchor_date(delivery: PlannerDelivery) -> date | None:
    return (
        delivery.target_delivery_date
        or delivery.completed_date
        or delivery.shipped_date
        or delivery.requested_date
    )


def _valid_frequency(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value if value > 0 else None


def _next_due(current: date, months: int, day_of_month: int, window_end: date) -> date | None:
    """Step *current* by *months*, or ``None`` once the step leaves the window.

    The month is checked before a ``date`` is built, so large frequencies
    and anchors near :attr:`datetime.date.max` never overflow.
    """
    year, month = shift_month(current.year, current.month, months)
    if (year, month) > (window_end.year, window_end.month):
        return None
    return add_months_keeping_day(current, months, day_of_month)


def project_due_rows(
    recipients: Iterable[PlannerRecipient],
    deliveries: Iterable[PlannerDelivery],
    horizon_months: int,
    today: date,
) -> list[DueRow]:
    """Return the due rows for *recipients* within *horizon_months* of *today*.

    Raises ``ValueError`` when *horizon_months* is not one of
    :data:`HORIZON_OPTIONS`.
    """
    if horizon_months not in HORIZON_OPTIONS:
        raise ValueError(f"horizon_months must be one of {list(HORIZON_OPTIONS)}, got {horizon_months!r}")

    by_recipient: dict[Hashable, list[PlannerDelivery]] = defaultdict(list)
    for delivery in deliveries:
        by_recipient[delivery.recipient_id].append(delivery)

    window_start = start_of_month(today)
    window_end = end_of_month(add_months(window_start, horizon_months - 1))

    rows: list[DueRow] = []
    for recipient in recipients:
        frequency = _valid_frequency(recipient.shipment_frequency_months)
        if frequency is None:
            continue

        history = by_recipient.get(recipient.id, [])
        anchor: date | None = None
        for delivery in history:
            candidate = delivery_anchor_date(delivery)
            if candidate is not None and (anchor is None or candidate > anchor):
                anchor = candidate

        has_history = anchor is not None
        if anchor is None:
            anchor = today

        taken_months = {
            key for key in (month_key_or_none(d.target_delivery_date) for d in history) if key is not None
        }

        anchor_day = anchor.day
        chapter_leader = (recipient.coordinator_name or "").strip() or UNASSIGNED_LABEL
        address = format_address(recipient.address, recipient.city, recipient.state, recipient.zip)
        first_pending = True

        due = _next_due(anchor, frequency, anchor_day, window_end) if has_history else anchor
        while due is not None:
            if due >= window_start:
                key = month_key(due)
                if key not in taken_months:
                    rows.append(
                        DueRow(
                            key=f"{recipient.id}:{key}",
                            recipient_id=recipient.id,
                            recipient_name=recipient.name,
                            chapter_leader=chapter_leader,
                            frequency_months=frequency,
                            last_delivery_date=anchor if has_history else None,
                            is_first_delivery=not has_history and first_pending,
                            due_month_key=key,
                            due_month_label=month_label(key),
                            create_target_date=due,
                            create_requested_date=today,
                            create_address=address,
                            create_coordinator_id=recipient.assigned_user_id,
                        )
                    )
                    first_pending = False
            due = _next_due(due, frequency, anchor_day, window_end)

    rows.sort(key=lambda row: (row.due_month_key, row.recipient_name.casefold(), row.recipient_name))
    return rows
