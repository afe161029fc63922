"""Create deliveries from selected due rows.

The projection shown to a coordinator may be stale by the time they submit
their selection, so existing deliveries are re-read right before inserting
and any (recipient, month) pair that already has a targeted delivery is
skipped.  The re-check runs inside the request's session but is not
serialized across concurrent requests.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from magic_yarn.db import models
from magic_yarn.db.repositories import DeliveryRepository
from magic_yarn.deliveries.status import STATUS_AWAITING_CONFIRMATION
from magic_yarn.planner.dates import month_key
from magic_yarn.planner.projector import DueRow

logger = logging.getLogger(__name__)

NO_SELECTION_MESSAGE = "Select at least one row with a recipient address."
ALREADY_EXISTS_MESSAGE = "No new deliveries to create. Selected rows already exist."


class NothingToCreateError(ValueError):
    """Raised when a selection yields no delivery to insert."""


@dataclass(slots=True)
class CreationResult:
    created: list[models.Delivery] = field(default_factory=list)
    skipped_existing: int = 0

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def message(self) -> str:
        noun = "delivery" if self.created_count == 1 else "deliveries"
        text = f"Created {self.created_count} {noun}"
        if self.skipped_existing:
            text += f" ({self.skipped_existing} skipped as already existing)"
        return text + "."


def select_rows(rows: Iterable[DueRow], selected_keys: Iterable[str]) -> list[DueRow]:
    """Rows whose key was selected and which have an address to ship to."""
    wanted = set(selected_keys)
    return [row for row in rows if row.key in wanted and row.selectable]


def split_existing(
    rows: Sequence[DueRow],
    existing: Iterable[tuple[object, object]],
) -> tuple[list[DueRow], int]:
    """Drop rows whose (recipient, month) already has a targeted delivery.

    *existing* holds ``(recipient_id, target_delivery_date)`` pairs.  Returns
    the rows left to create and the number skipped.
    """
    taken = {(str(recipient_id), month_key(target)) for recipient_id, target in existing}
    fresh = [row for row in rows if (str(row.recipient_id), row.due_month_key) not in taken]
    return fresh, len(rows) - len(fresh)


def delivery_payload(row: DueRow) -> dict[str, object]:
    return {
        "recipient_id": row.recipient_id,
        "recipient_contact_slot": None,
        "requested_date": row.create_requested_date,
        "target_delivery_date": row.create_target_date,
        "shipped_date": None,
        "completed_date": None,
        "tracking_number": None,
        "status_id": STATUS_AWAITING_CONFIRMATION,
        "coordinator_id": row.create_coordinator_id,
        "wigs": 0,
        "beanies": 0,
        "address": row.create_address,
        "notes": None,
    }


def create_deliveries_from_rows(db: Session, rows: Sequence[DueRow]) -> CreationResult:
    """Insert one awaiting-confirmation delivery per creatable row.

    Raises :class:`NothingToCreateError` when no row has an address or when
    every row is already covered by an existing delivery.
    """
    candidates = [row for row in rows if row.selectable]
    if not candidates:
        raise NothingToCreateError(NO_SELECTION_MESSAGE)

    repo = DeliveryRepository(db)
    existing = repo.targeted_dates({row.recipient_id for row in candidates})
    fresh, skipped = split_existing(candidates, existing)
    if not fresh:
        raise NothingToCreateError(ALREADY_EXISTS_MESSAGE)

    result = CreationResult(skipped_existing=skipped)
    for row in fresh:
        result.created.append(repo.create(**delivery_payload(row)))

    logger.info(
        "Created %d planned deliveries (%d skipped as existing)",
        result.created_count,
        result.skipped_existing,
    )
    return result
