"""Load planner inputs from the database and run the projection."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from magic_yarn.db import models
from magic_yarn.db.repositories import DeliveryRepository, RecipientRepository
from magic_yarn.planner.projector import (
    HORIZON_OPTIONS,
    DueRow,
    PlannerDelivery,
    PlannerRecipient,
    project_due_rows,
)

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Unable to load recipients and deliveries for planning."


@dataclass(slots=True)
class Projection:
    rows: list[DueRow] = field(default_factory=list)
    error: str | None = None


def to_planner_recipient(recipient: models.Recipient) -> PlannerRecipient:
    coordinator = recipient.assigned_user
    return PlannerRecipient(
        id=recipient.id,
        name=recipient.name,
        shipment_frequency_months=recipient.shipment_frequency_months,
        address=recipient.address,
        city=recipient.city,
        state=recipient.state,
        zip=recipient.zip,
        assigned_user_id=recipient.assigned_user_id,
        coordinator_name=coordinator.full_name if coordinator is not None else None,
    )


def to_planner_delivery(delivery: models.Delivery) -> PlannerDelivery:
    return PlannerDelivery(
        id=delivery.id,
        recipient_id=delivery.recipient_id,
        requested_date=delivery.requested_date,
        target_delivery_date=delivery.target_delivery_date,
        shipped_date=delivery.shipped_date,
        completed_date=delivery.completed_date,
    )


def load_planner_inputs(db: Session) -> tuple[list[PlannerRecipient], list[PlannerDelivery]]:
    recipients = RecipientRepository(db).list_with_frequency()
    deliveries = DeliveryRepository(db).list_for_recipients(r.id for r in recipients)
    return (
        [to_planner_recipient(r) for r in recipients],
        [to_planner_delivery(d) for d in deliveries],
    )


def compute_projection(db: Session, horizon_months: int, today: date) -> Projection:
    """Project due rows from the current database state.

    A failed read yields an empty projection carrying an error message.
    Raises ``ValueError`` for an unsupported horizon before touching the
    database.
    """
    if horizon_months not in HORIZON_OPTIONS:
        raise ValueError(f"horizon_months must be one of {list(HORIZON_OPTIONS)}, got {horizon_months!r}")

    try:
        recipients, deliveries = load_planner_inputs(db)
    except SQLAlchemyError:
        logger.exception("Planner input load failed")
        return Projection(error=LOAD_ERROR_MESSAGE)

    rows = project_due_rows(recipients, deliveries, horizon_months, today)
    logger.debug("Projected %d due rows over %d months", len(rows), horizon_months)
    return Projection(rows=rows)
