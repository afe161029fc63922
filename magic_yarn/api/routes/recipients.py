"""Recipient routes.

GET    /recipients                          — list (q, sort, dir)
POST   /recipients                          — create
GET    /recipients/{id}                     — detail
PATCH  /recipients/{id}                     — update
DELETE /recipients/{id}                     — delete (cascades deliveries and correspondence)
GET    /recipients/{id}/deliveries          — associated deliveries
GET    /recipients/{id}/correspondence      — correspondence log
POST   /recipients/{id}/correspondence      — add a correspondence entry
"""
from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_db, require_permission
from magic_yarn.api.serializers import serialize_correspondence, serialize_delivery, serialize_recipient
from magic_yarn.db import models
from magic_yarn.db.repositories import CorrespondenceRepository, DeliveryRepository
from magic_yarn.listing.sorting import next_sort_params
from magic_yarn.recipients import service

router = APIRouter(prefix="/recipients", tags=["recipients"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class RecipientBody(BaseModel):
    name: str | None = None
    type: str | None = None
    assigned_user_id: UUID | None = None
    shipment_frequency_months: int | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    phone: str | None = None
    email: str | None = None
    primary_contact_first_name: str | None = None
    primary_contact_last_name: str | None = None
    primary_contact_email: str | None = None
    primary_contact_phone: str | None = None
    primary_contact_job_title: str | None = None
    secondary_contact_first_name: str | None = None
    secondary_contact_last_name: str | None = None
    secondary_contact_email: str | None = None
    secondary_contact_phone: str | None = None
    secondary_contact_job_title: str | None = None
    notes: str | None = None


class CorrespondenceBody(BaseModel):
    correspondence_date: date
    note: str | None = None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("", summary="List recipients")
def list_recipients(
    q: str | None = None,
    sort: str | None = None,
    dir: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.read")),
):
    spec = service.recipient_sort_spec(sort, dir)
    rows = service.list_recipients(db, q, spec)
    return {
        "items": [serialize_recipient(recipient, latest) for recipient, latest in rows],
        "sort": spec.key,
        "dir": spec.direction if spec.key else None,
        "sort_links": {
            key: next_sort_params(spec, key, service.default_sort_dir(key))
            for key in service.RECIPIENT_SORT_KEYS
        },
        "types": service.RECIPIENT_TYPES,
    }


@router.post("", status_code=201, summary="Create a recipient")
def create_recipient(
    body: RecipientBody,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.write")),
):
    try:
        recipient = service.create_recipient(db, body.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_recipient(recipient)


@router.get("/{recipient_id}", summary="Get a recipient")
def get_recipient(
    recipient_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.read")),
):
    try:
        recipient = service.get_recipient(db, recipient_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")
    latest = CorrespondenceRepository(db).list_for_recipient(recipient_id)
    return serialize_recipient(recipient, latest[0] if latest else None)


@router.patch("/{recipient_id}", summary="Update a recipient")
def update_recipient(
    recipient_id: UUID,
    body: RecipientBody,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.write")),
):
    try:
        recipient = service.update_recipient(db, recipient_id, body.model_dump(exclude_unset=True))
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_recipient(recipient)


@router.delete("/{recipient_id}", status_code=204, summary="Delete a recipient")
def delete_recipient(
    recipient_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.delete")),
):
    try:
        service.delete_recipient(db, recipient_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")


@router.get("/{recipient_id}/deliveries", summary="Deliveries for a recipient")
def list_recipient_deliveries(
    recipient_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.read")),
):
    try:
        service.get_recipient(db, recipient_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")
    return [serialize_delivery(d) for d in DeliveryRepository(db).list_for_recipient(recipient_id)]


@router.get("/{recipient_id}/correspondence", summary="Correspondence log for a recipient")
def list_correspondence(
    recipient_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.read")),
):
    try:
        entries = service.list_correspondence(db, recipient_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")
    return [serialize_correspondence(entry) for entry in entries]


@router.post("/{recipient_id}/correspondence", status_code=201, summary="Add a correspondence entry")
def add_correspondence(
    recipient_id: UUID,
    body: CorrespondenceBody,
    db: Session = Depends(get_db),
    user: models.UserProfile = Depends(require_permission("recipients.write")),
):
    try:
        entry = service.add_correspondence(db, recipient_id, body.correspondence_date, body.note, user.id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Recipient not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_correspondence(entry)
