"""GET /dashboard — headline counts for the signed-in user.

Metrics the caller may not read are returned as ``null``.
"""
from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_approved_user, get_db, get_today
from magic_yarn.auth.roles import has_permission
from magic_yarn.db import models
from magic_yarn.db.repositories import DeliveryRepository, RecipientRepository
from magic_yarn.deliveries.status import DELIVERY_STATUS_DEFINITIONS, OPEN_STATUS_IDS

router = APIRouter(tags=["dashboard"])

UPCOMING_WINDOW_DAYS = 14
RECENT_DELIVERY_LIMIT = 8


@router.get("/dashboard", summary="Dashboard counts")
def dashboard(
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    user: models.UserProfile = Depends(get_approved_user),
):
    result: dict = {
        "recipients": None,
        "deliveries": None,
        "by_status": None,
        "upcoming": None,
        "recent": None,
    }

    if has_permission(db, user, "recipients.read"):
        result["recipients"] = RecipientRepository(db).count()

    if has_permission(db, user, "deliveries.read"):
        deliveries = DeliveryRepository(db)
        counts = deliveries.count_by_status()
        result["deliveries"] = deliveries.count()
        result["by_status"] = [
            {"status_id": status_id, "label": label, "count": counts.get(status_id, 0)}
            for status_id, label in DELIVERY_STATUS_DEFINITIONS
        ]
        result["upcoming"] = deliveries.count_upcoming(
            today, today + timedelta(days=UPCOMING_WINDOW_DAYS), OPEN_STATUS_IDS
        )
        result["recent"] = [
            {
                "id": str(d.id),
                "recipient_name": d.recipient.name if d.recipient is not None else None,
                "status_id": d.status_id,
                "target_delivery_date": d.target_delivery_date.isoformat() if d.target_delivery_date else None,
                "updated_at": d.updated_at.isoformat() if d.updated_at else None,
            }
            for d in deliveries.recent(RECENT_DELIVERY_LIMIT)
        ]

    return result
