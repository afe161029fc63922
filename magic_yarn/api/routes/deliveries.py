"""Delivery routes.

GET    /deliveries                    — list (status, q)
GET    /deliveries/statuses           — status options
POST   /deliveries                    — create
GET    /deliveries/{id}               — detail
PATCH  /deliveries/{id}               — update
DELETE /deliveries/{id}               — delete
POST   /deliveries/{id}/assign-to-me  — make the caller the coordinator
"""
from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_db, require_permission
from magic_yarn.api.serializers import serialize_delivery
from magic_yarn.db import models
from magic_yarn.deliveries import service
from magic_yarn.deliveries.status import status_options

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


class DeliveryBody(BaseModel):
    recipient_id: UUID | None = None
    recipient_contact_slot: str | None = None
    requested_date: date | None = None
    target_delivery_date: date | None = None
    shipped_date: date | None = None
    completed_date: date | None = None
    tracking_number: str | None = None
    status_id: int | str | None = None
    coordinator_id: UUID | None = None
    wigs: int | None = None
    beanies: int | None = None
    address: str | None = None
    notes: str | None = None


@router.get("", summary="List deliveries")
def list_deliveries(
    status: str | None = None,
    q: str | None = None,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.read")),
):
    try:
        status_id = service.parse_status_filter(status)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return [serialize_delivery(d) for d in service.list_deliveries(db, status_id, q)]


@router.get("/statuses", summary="Delivery status options")
def list_statuses(_user: models.UserProfile = Depends(require_permission("deliveries.read"))):
    return status_options()


@router.post("", status_code=201, summary="Create a delivery")
def create_delivery(
    body: DeliveryBody,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.write")),
):
    try:
        delivery = service.create_delivery(db, body.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_delivery(delivery)


@router.get("/{delivery_id}", summary="Get a delivery")
def get_delivery(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.read")),
):
    try:
        return serialize_delivery(service.get_delivery(db, delivery_id))
    except KeyError:
        raise HTTPException(status_code=404, detail="Delivery not found")


@router.patch("/{delivery_id}", summary="Update a delivery")
def update_delivery(
    delivery_id: UUID,
    body: DeliveryBody,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.write")),
):
    try:
        delivery = service.update_delivery(db, delivery_id, body.model_dump(exclude_unset=True))
    except KeyError:
        raise HTTPException(status_code=404, detail="Delivery not found")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return serialize_delivery(delivery)


@router.delete("/{delivery_id}", status_code=204, summary="Delete a delivery")
def delete_delivery(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("deliveries.delete")),
):
    try:
        service.delete_delivery(db, delivery_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Delivery not found")


@router.post("/{delivery_id}/assign-to-me", summary="Assign a delivery to the caller")
def assign_to_me(
    delivery_id: UUID,
    db: Session = Depends(get_db),
    user: models.UserProfile = Depends(require_permission("deliveries.write")),
):
    try:
        delivery = service.assign_to_user(db, delivery_id, user)
    except KeyError:
        raise HTTPException(status_code=404, detail="Delivery not found")
    return serialize_delivery(delivery)
