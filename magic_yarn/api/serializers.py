"""JSON shapes shared by the API routes."""
from __future__ import annotations

from datetime import date, datetime

from magic_yarn.auth.roles import resolve_role
from magic_yarn.db import models
from magic_yarn.deliveries.status import format_status
from magic_yarn.normalization.address_normalizer import format_address


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _id(value) -> str | None:
    return str(value) if value is not None else None


def user_label(user: models.UserProfile | None) -> str | None:
    if user is None:
        return None
    return user.full_name or user.email


def serialize_user(user: models.UserProfile) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "role": resolve_role(user.role),
        "is_approved": user.is_approved,
        "regions": sorted(link.region_code for link in user.region_links),
        "created_at": _iso(user.created_at),
        "updated_at": _iso(user.updated_at),
    }


def serialize_correspondence(entry: models.RecipientCorrespondence | None) -> dict | None:
    if entry is None:
        return None
    return {
        "id": str(entry.id),
        "recipient_id": str(entry.recipient_id),
        "correspondence_date": _iso(entry.correspondence_date),
        "note": entry.note,
        "created_by": _id(entry.created_by),
        "created_at": _iso(entry.created_at),
    }


def serialize_recipient(
    recipient: models.Recipient,
    latest_correspondence: models.RecipientCorrespondence | None = None,
) -> dict:
    return {
        "id": str(recipient.id),
        "name": recipient.name,
        "type": recipient.type,
        "assigned_user_id": _id(recipient.assigned_user_id),
        "assigned_user_name": user_label(recipient.assigned_user),
        "shipment_frequency_months": recipient.shipment_frequency_months,
        "address": recipient.address,
        "city": recipient.city,
        "state": recipient.state,
        "zip": recipient.zip,
        "formatted_address": format_address(recipient.address, recipient.city, recipient.state, recipient.zip),
        "phone": recipient.phone,
        "email": recipient.email,
        "primary_contact": {
            "first_name": recipient.primary_contact_first_name,
            "last_name": recipient.primary_contact_last_name,
            "email": recipient.primary_contact_email,
            "phone": recipient.primary_contact_phone,
            "job_title": recipient.primary_contact_job_title,
        },
        "secondary_contact": {
            "first_name": recipient.secondary_contact_first_name,
            "last_name": recipient.secondary_contact_last_name,
            "email": recipient.secondary_contact_email,
            "phone": recipient.secondary_contact_phone,
            "job_title": recipient.secondary_contact_job_title,
        },
        "notes": recipient.notes,
        "latest_correspondence": serialize_correspondence(latest_correspondence),
        "created_at": _iso(recipient.created_at),
        "updated_at": _iso(recipient.updated_at),
    }


def serialize_delivery(delivery: models.Delivery) -> dict:
    return {
        "id": str(delivery.id),
        "recipient_id": str(delivery.recipient_id),
        "recipient_name": delivery.recipient.name if delivery.recipient is not None else None,
        "recipient_contact_slot": delivery.recipient_contact_slot,
        "requested_date": _iso(delivery.requested_date),
        "target_delivery_date": _iso(delivery.target_delivery_date),
        "shipped_date": _iso(delivery.shipped_date),
        "completed_date": _iso(delivery.completed_date),
        "tracking_number": delivery.tracking_number,
        "status_id": delivery.status_id,
        "status_label": format_status(delivery.status_id),
        "coordinator_id": _id(delivery.coordinator_id),
        "coordinator_name": user_label(delivery.coordinator),
        "wigs": delivery.wigs,
        "beanies": delivery.beanies,
        "address": delivery.address,
        "notes": delivery.notes,
        "created_at": _iso(delivery.created_at),
        "updated_at": _iso(delivery.updated_at),
    }
