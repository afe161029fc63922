"""Recipient maintenance: field cleaning, list filtering/sorting and the correspondence log."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from magic_yarn.core.settings import get_settings
from magic_yarn.db import models
from magic_yarn.db.repositories import CorrespondenceRepository, RecipientRepository, UserProfileRepository
from magic_yarn.listing.sorting import ASC, DESC, SortSpec, apply_sort, filter_by_query, parse_sort, text_key
from magic_yarn.normalization.email_normalizer import normalize_email
from magic_yarn.normalization.phone_normalizer import normalize_phone

logger = logging.getLogger(__name__)

RECIPIENT_TYPES = ["hospital", "clinic", "cancer_center", "individual", "other"]

MAX_SHIPMENT_FREQUENCY_MONTHS = 120

RECIPIENT_SORT_KEYS = ("name", "type", "frequency", "location", "latest_correspondence", "updated")

# Columns whose header starts in descending order.
DESC_FIRST_SORT_KEYS = frozenset({"updated", "latest_correspondence"})

_TEXT_FIELDS = (
    "address",
    "city",
    "state",
    "zip",
    "notes",
    "primary_contact_first_name",
    "primary_contact_last_name",
    "primary_contact_job_title",
    "secondary_contact_first_name",
    "secondary_contact_last_name",
    "secondary_contact_job_title",
)
_EMAIL_FIELDS = ("email", "primary_contact_email", "secondary_contact_email")
_PHONE_FIELDS = ("phone", "primary_contact_phone", "secondary_contact_phone")

CORRESPONDENCE_NOTE_REQUIRED = "Correspondence note is required."


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


def clean_recipient_fields(data: Mapping[str, object]) -> dict[str, object]:
    """Validate and normalize recipient fields present in *data*.

    Only keys present in *data* are returned, so the result can drive both
    create and partial update.  Raises ``ValueError`` on invalid input.
    """
    region = get_settings().default_phone_region
    cleaned: dict[str, object] = {}

    if "name" in data:
        name = _blank_to_none(data["name"])
        if name is None:
            raise ValueError("Recipient name is required.")
        cleaned["name"] = name

    if "type" in data:
        # Blank leaves the stored type alone; new rows fall back to the column default.
        kind = _blank_to_none(data["type"])
        if kind is not None:
            if kind not in RECIPIENT_TYPES:
                raise ValueError(f"Unknown recipient type {kind!r}; must be one of {RECIPIENT_TYPES}")
            cleaned["type"] = kind

    if "shipment_frequency_months" in data:
        frequency = data["shipment_frequency_months"]
        if frequency is not None and (
            isinstance(frequency, bool)
            or not isinstance(frequency, int)
            or not 1 <= frequency <= MAX_SHIPMENT_FREQUENCY_MONTHS
        ):
            raise ValueError(
                "Shipment frequency must be a positive number of months, "
                f"at most {MAX_SHIPMENT_FREQUENCY_MONTHS}."
            )
        cleaned["shipment_frequency_months"] = frequency

    if "assigned_user_id" in data:
        cleaned["assigned_user_id"] = data["assigned_user_id"]

    for field in _TEXT_FIELDS:
        if field in data:
            cleaned[field] = _blank_to_none(data[field])
    for field in _EMAIL_FIELDS:
        if field in data:
            cleaned[field] = normalize_email(data[field])
    for field in _PHONE_FIELDS:
        if field in data:
            cleaned[field] = normalize_phone(data[field], default_region=region)

    return cleaned


def _check_assignee(db: Session, user_id: UUID | None) -> None:
    if user_id is not None and UserProfileRepository(db).get(user_id) is None:
        raise ValueError(f"Unknown coordinator {user_id}")


def create_recipient(db: Session, data: Mapping[str, object]) -> models.Recipient:
    if "name" not in data:
        raise ValueError("Recipient name is required.")
    fields = clean_recipient_fields(data)
    _check_assignee(db, fields.get("assigned_user_id"))
    recipient = RecipientRepository(db).create(**fields)
    logger.info("Created recipient %s", recipient.id)
    return recipient


def get_recipient(db: Session, recipient_id: UUID) -> models.Recipient:
    recipient = RecipientRepository(db).get(recipient_id)
    if recipient is None:
        raise KeyError(f"Recipient {recipient_id} not found")
    return recipient


def update_recipient(db: Session, recipient_id: UUID, data: Mapping[str, object]) -> models.Recipient:
    recipient = get_recipient(db, recipient_id)
    fields = clean_recipient_fields(data)
    if "assigned_user_id" in fields:
        _check_assignee(db, fields["assigned_user_id"])
    return RecipientRepository(db).update(recipient, **fields)


def delete_recipient(db: Session, recipient_id: UUID) -> None:
    recipient = get_recipient(db, recipient_id)
    RecipientRepository(db).delete(recipient)
    logger.info("Deleted recipient %s", recipient_id)


def recipient_sort_spec(sort: str | None, direction: str | None) -> SortSpec:
    return parse_sort(sort, direction, RECIPIENT_SORT_KEYS)


def list_recipients(
    db: Session,
    query: str | None = None,
    sort: SortSpec | None = None,
) -> list[tuple[models.Recipient, models.RecipientCorrespondence | None]]:
    """Recipients by name, filtered on name/city/state and optionally re-sorted.

    Each recipient is paired with its latest correspondence entry.
    """
    recipients = filter_by_query(
        RecipientRepository(db).list_by_name(),
        query,
        lambda r: f"{r.name} {r.city or ''} {r.state or ''}",
    )
    latest = CorrespondenceRepository(db).latest_by_recipient()

    def _latest_date(recipient: models.Recipient) -> str:
        entry = latest.get(recipient.id)
        return entry.correspondence_date.isoformat() if entry is not None else ""

    key_funcs = {
        "name": lambda r: text_key(r.name),
        "type": lambda r: text_key(r.type),
        "frequency": lambda r: r.shipment_frequency_months or 0,
        "location": lambda r: text_key(f"{r.city or ''}, {r.state or ''}"),
        "latest_correspondence": _latest_date,
        "updated": lambda r: r.updated_at.isoformat() if r.updated_at else "",
    }
    ordered = apply_sort(recipients, sort or SortSpec(key=None), key_funcs)
    return [(recipient, latest.get(recipient.id)) for recipient in ordered]


def default_sort_dir(key: str) -> str:
    return DESC if key in DESC_FIRST_SORT_KEYS else ASC


def list_correspondence(db: Session, recipient_id: UUID) -> list[models.RecipientCorrespondence]:
    get_recipient(db, recipient_id)
    return CorrespondenceRepository(db).list_for_recipient(recipient_id)


def add_correspondence(
    db: Session,
    recipient_id: UUID,
    correspondence_date: date,
    note: str | None,
    created_by: UUID | None,
) -> models.RecipientCorrespondence:
    get_recipient(db, recipient_id)
    text = _blank_to_none(note)
    if text is None:
        raise ValueError(CORRESPONDENCE_NOTE_REQUIRED)
    return CorrespondenceRepository(db).create(
        recipient_id=recipient_id,
        correspondence_date=correspondence_date,
        note=text,
        created_by=created_by,
    )
