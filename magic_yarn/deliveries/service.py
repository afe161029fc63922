"""Delivery maintenance: validation, address resolution and list filtering."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy.orm import Session

from magic_yarn.db import models
from magic_yarn.db.repositories import DeliveryRepository, RecipientRepository, UserProfileRepository
from magic_yarn.deliveries.status import STATUS_AWAITING_CONFIRMATION, format_status, to_status_id
from magic_yarn.listing.sorting import filter_by_query
from magic_yarn.normalization.address_normalizer import format_address

logger = logging.getLogger(__name__)

CONTACT_SLOTS = ("primary", "secondary")

ADDRESS_REQUIRED = "Delivery address is required; the recipient has no address on file."

_PLAIN_FIELDS = (
    "requested_date",
    "target_delivery_date",
    "shipped_date",
    "completed_date",
    "tracking_number",
    "notes",
)


def _clean_count(name: str, value: object) -> int:
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{name} must be a non-negative whole number.")
    return value


def clean_delivery_fields(db: Session, data: Mapping[str, object]) -> dict[str, object]:
    """Validate delivery fields present in *data*; raises ``ValueError``."""
    cleaned: dict[str, object] = {}

    if "recipient_id" in data:
        if data["recipient_id"] is None or RecipientRepository(db).get(data["recipient_id"]) is None:
            raise ValueError("Select a recipient for this delivery.")
        cleaned["recipient_id"] = data["recipient_id"]

    if "recipient_contact_slot" in data:
        slot = data["recipient_contact_slot"] or None
        if slot is not None and slot not in CONTACT_SLOTS:
            raise ValueError(f"Unknown contact slot {slot!r}; must be one of {list(CONTACT_SLOTS)}")
        cleaned["recipient_contact_slot"] = slot

    if "status_id" in data:
        status_id = to_status_id(data["status_id"])
        if status_id is None:
            raise ValueError(f"Unknown delivery status {data['status_id']!r}")
        cleaned["status_id"] = status_id

    if "coordinator_id" in data:
        coordinator_id = data["coordinator_id"]
        if coordinator_id is not None and UserProfileRepository(db).get(coordinator_id) is None:
            raise ValueError(f"Unknown coordinator {coordinator_id}")
        cleaned["coordinator_id"] = coordinator_id

    for name in ("wigs", "beanies"):
        if name in data:
            cleaned[name] = _clean_count(name, data[name])

    for name in _PLAIN_FIELDS:
        if name in data:
            value = data[name]
            if isinstance(value, str):
                value = value.strip() or None
            cleaned[name] = value

    if "address" in data:
        cleaned["address"] = (data["address"] or "").strip() or None

    return cleaned


def resolve_address(recipient: models.Recipient, address: str | None) -> str:
    """Use *address* when given, else the recipient's formatted address."""
    resolved = (address or "").strip() or format_address(
        recipient.address, recipient.city, recipient.state, recipient.zip
    )
    if not resolved:
        raise ValueError(ADDRESS_REQUIRED)
    return resolved


def get_delivery(db: Session, delivery_id: UUID) -> models.Delivery:
    delivery = DeliveryRepository(db).get(delivery_id)
    if delivery is None:
        raise KeyError(f"Delivery {delivery_id} not found")
    return delivery


def create_delivery(db: Session, data: Mapping[str, object]) -> models.Delivery:
    if "recipient_id" not in data:
        raise ValueError("Select a recipient for this delivery.")
    fields = clean_delivery_fields(db, data)
    recipient = RecipientRepository(db).get(fields["recipient_id"])
    fields["address"] = resolve_address(recipient, fields.get("address"))
    fields.setdefault("status_id", STATUS_AWAITING_CONFIRMATION)
    delivery = DeliveryRepository(db).create(**fields)
    logger.info("Created delivery %s for recipient %s", delivery.id, delivery.recipient_id)
    return delivery


def update_delivery(db: Session, delivery_id: UUID, data: Mapping[str, object]) -> models.Delivery:
    delivery = get_delivery(db, delivery_id)
    fields = clean_delivery_fields(db, data)
    if "recipient_id" in fields or "address" in fields:
        recipient = RecipientRepository(db).get(fields.get("recipient_id", delivery.recipient_id))
        fields["address"] = resolve_address(recipient, fields.get("address", delivery.address))
    return DeliveryRepository(db).update(delivery, **fields)


def delete_delivery(db: Session, delivery_id: UUID) -> None:
    delivery = get_delivery(db, delivery_id)
    DeliveryRepository(db).delete(delivery)
    logger.info("Deleted delivery %s", delivery_id)


def assign_to_user(db: Session, delivery_id: UUID, user: models.UserProfile) -> models.Delivery:
    delivery = get_delivery(db, delivery_id)
    return DeliveryRepository(db).update(delivery, coordinator_id=user.id)


def parse_status_filter(value: str | None) -> int | None:
    """``None``/``"all"`` means no filter; otherwise a known status id."""
    if value is None or value.strip() in ("", "all"):
        return None
    status_id = to_status_id(value)
    if status_id is None:
        raise ValueError(f"Unknown delivery status filter {value!r}")
    return status_id


def list_deliveries(db: Session, status_id: int | None = None, query: str | None = None) -> list[models.Delivery]:
    """Deliveries by target date (newest first, undated last) then last update."""
    deliveries = DeliveryRepository(db).list_ordered()
    if status_id is not None:
        deliveries = [d for d in deliveries if d.status_id == status_id]
    return filter_by_query(
        deliveries,
        query,
        lambda d: f"{d.recipient.name if d.recipient else ''} {format_status(d.status_id)} {d.address or ''}",
    )
