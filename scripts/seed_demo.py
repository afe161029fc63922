#!/usr/bin/env python3
"""Seed demo data: regions, users, recipients, deliveries and the permission matrix.

Usage:
    python scripts/seed_demo.py          # uses DATABASE_URL from env / .env
    DATABASE_URL=... python scripts/seed_demo.py
"""
from __future__ import annotations

import sys
from datetime import date, timedelta

from sqlalchemy.orm import Session

# Ensure project root is on sys.path
sys.path.insert(0, ".")

from magic_yarn.auth.roles import EDITABLE_ROLES, PERMISSIONS, default_allowed
from magic_yarn.db.base import Base
from magic_yarn.db.models import Delivery, Recipient, Region, UserProfile, UserRegion
from magic_yarn.db.repositories import RolePermissionRepository
from magic_yarn.db.session import get_engine, session_scope
from magic_yarn.normalization.address_normalizer import format_address


def seed(session: Session, today: date | None = None) -> None:
    """Insert a small, internally consistent demo dataset."""
    today = today or date.today()

    regions = [
        Region(code="northeast", name="Northeast", sort_order=1),
        Region(code="midwest", name="Midwest", sort_order=2),
        Region(code="west", name="West", sort_order=3),
    ]
    session.add_all(regions)

    demo_users = [
        # (email, full_name, role, approved, region)
        ("admin@example.org", "Avery Admin", "admin", True, "northeast"),
        ("contacts@example.org", "Casey Contacts", "contacts_manager", True, "midwest"),
        ("coordinator@example.org", "Dana Coordinator", "delivery_coordinator", True, "west"),
        ("pending@example.org", "Pat Pending", "view_only", False, None),
    ]
    users: dict[str, UserProfile] = {}
    for email, full_name, role, approved, region in demo_users:
        user = UserProfile(email=email, full_name=full_name, role=role, is_approved=approved)
        session.add(user)
        session.flush()
        if region:
            session.add(UserRegion(user_id=user.id, region_code=region))
        users[role] = user

    demo_recipients = [
        # (name, type, frequency, address, city, state, zip, coordinator role)
        ("St. Mary's Hospital", "hospital", 3, "12 Main St", "Boston", "MA", "02110", "delivery_coordinator"),
        ("Hope Cancer Center", "cancer_center", 6, "400 Lake Ave", "Chicago", "IL", "60601", "contacts_manager"),
        ("Riverside Clinic", "clinic", 1, "9 River Rd", "Portland", "OR", "97201", None),
        ("Jordan Lee", "individual", None, None, "Denver", "CO", None, None),
        ("Westside Pediatrics", "clinic", 2, None, None, None, None, "delivery_coordinator"),
    ]
    recipients: list[Recipient] = []
    for name, kind, frequency, address, city, state, zip_code, coordinator in demo_recipients:
        recipient = Recipient(
            name=name,
            type=kind,
            shipment_frequency_months=frequency,
            address=address,
            city=city,
            state=state,
            zip=zip_code,
            assigned_user_id=users[coordinator].id if coordinator else None,
        )
        session.add(recipient)
        recipients.append(recipient)
    session.flush()

    demo_deliveries = [
        # (recipient index, days before today, status_id, wigs, beanies)
        (0, 75, 3, 4, 10),
        (1, 160, 3, 2, 25),
        (2, 20, 2, 1, 5),
    ]
    for index, days_ago, status_id, wigs, beanies in demo_deliveries:
        recipient = recipients[index]
        target = today - timedelta(days=days_ago)
        session.add(
            Delivery(
                recipient_id=recipient.id,
                requested_date=target - timedelta(days=14),
                target_delivery_date=target,
                completed_date=target if status_id == 3 else None,
                status_id=status_id,
                coordinator_id=recipient.assigned_user_id,
                wigs=wigs,
                beanies=beanies,
                address=format_address(recipient.address, recipient.city, recipient.state, recipient.zip),
            )
        )

    permissions = RolePermissionRepository(session)
    for role in EDITABLE_ROLES:
        for permission in PERMISSIONS:
            permissions.upsert(role, permission, default_allowed(role, permission))

    session.commit()
    print(
        f"Seeded {len(regions)} regions, {len(users)} users, {len(recipients)} recipients, "
        f"{len(demo_deliveries)} deliveries."
    )


def main() -> None:
    Base.metadata.create_all(get_engine())
    with session_scope() as session:
        seed(session)


if __name__ == "__main__":
    main()
