from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timezone
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from magic_yarn.db import models

ModelT = TypeVar("ModelT")


class BaseRepository(Generic[ModelT]):
    model: type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def create(self, **kwargs) -> ModelT:
        entity = self.model(**kwargs)
        self.db.add(entity)
        self.db.flush()
        return entity

    def get(self, entity_id) -> ModelT | None:
        return self.db.get(self.model, entity_id)

    def list(self, limit: int = 100, offset: int = 0) -> list[ModelT]:
        stmt = select(self.model).offset(offset).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(self.model)).scalar_one()

    def update(self, entity: ModelT, **kwargs) -> ModelT:
        for key, value in kwargs.items():
            setattr(entity, key, value)
        self.db.flush()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: ModelT) -> None:
        self.db.delete(entity)
        self.db.flush()


class UserProfileRepository(BaseRepository[models.UserProfile]):
    model = models.UserProfile

    def get_by_email(self, email: str) -> models.UserProfile | None:
        stmt = select(models.UserProfile).where(func.lower(models.UserProfile.email) == email.lower())
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_google_sub(self, google_sub: str) -> models.UserProfile | None:
        stmt = select(models.UserProfile).where(models.UserProfile.google_sub == google_sub)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_all(self) -> list[models.UserProfile]:
        stmt = (
            select(models.UserProfile)
            .options(selectinload(models.UserProfile.region_links))
            .order_by(models.UserProfile.created_at.asc(), models.UserProfile.email.asc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_assignable(self, roles: Iterable[str]) -> list[models.UserProfile]:
        stmt = (
            select(models.UserProfile)
            .where(
                models.UserProfile.is_approved.is_(True),
                models.UserProfile.role.in_(list(roles)),
            )
            .order_by(models.UserProfile.full_name.asc(), models.UserProfile.email.asc())
        )
        return list(self.db.execute(stmt).scalars().all())


class RegionRepository(BaseRepository[models.Region]):
    model = models.Region

    def list_ordered(self) -> list[models.Region]:
        stmt = select(models.Region).order_by(models.Region.sort_order.asc(), models.Region.name.asc())
        return list(self.db.execute(stmt).scalars().all())


class UserRegionRepository(BaseRepository[models.UserRegion]):
    model = models.UserRegion

    def list_all(self) -> list[models.UserRegion]:
        stmt = select(models.UserRegion).order_by(models.UserRegion.user_id, models.UserRegion.region_code)
        return list(self.db.execute(stmt).scalars().all())

    def replace_for_user(self, user_id: UUID, region_codes: Iterable[str]) -> list[models.UserRegion]:
        wanted = sorted(set(region_codes))
        known = set(
            self.db.execute(select(models.Region.code).where(models.Region.code.in_(wanted))).scalars().all()
        )
        unknown = [code for code in wanted if code not in known]
        if unknown:
            raise ValueError(f"Unknown region codes: {unknown}")

        current = self.db.execute(
            select(models.UserRegion).where(models.UserRegion.user_id == user_id)
        ).scalars().all()
        for link in current:
            if link.region_code not in wanted:
                self.db.delete(link)
        existing = {link.region_code for link in current}
        for code in wanted:
            if code not in existing:
                self.db.add(models.UserRegion(user_id=user_id, region_code=code))
        self.db.flush()
        user = self.db.get(models.UserProfile, user_id)
        if user is not None:
            self.db.expire(user, ["region_links"])

        stmt = select(models.UserRegion).where(models.UserRegion.user_id == user_id)
        return list(self.db.execute(stmt).scalars().all())


class RolePermissionRepository(BaseRepository[models.RolePermission]):
    model = models.RolePermission

    def get_cell(self, role: str, permission: str) -> models.RolePermission | None:
        return self.db.get(models.RolePermission, (role, permission))

    def list_for_roles(self, roles: Iterable[str]) -> list[models.RolePermission]:
        stmt = (
            select(models.RolePermission)
            .where(models.RolePermission.role.in_(list(roles)))
            .order_by(models.RolePermission.role, models.RolePermission.permission)
        )
        return list(self.db.execute(stmt).scalars().all())

    def upsert(self, role: str, permission: str, allowed: bool) -> models.RolePermission:
        row = self.get_cell(role, permission)
        now = datetime.now(timezone.utc)
        if row is None:
            return self.create(role=role, permission=permission, allowed=allowed, updated_at=now)
        return self.update(row, allowed=allowed, updated_at=now)


class RecipientRepository(BaseRepository[models.Recipient]):
    model = models.Recipient

    def list_by_name(self) -> list[models.Recipient]:
        stmt = select(models.Recipient).order_by(models.Recipient.name.asc())
        return list(self.db.execute(stmt).scalars().all())

    def list_with_frequency(self) -> list[models.Recipient]:
        """Recipients on a shipment schedule, with their coordinator loaded."""
        stmt = (
            select(models.Recipient)
            .options(selectinload(models.Recipient.assigned_user))
            .where(
                models.Recipient.shipment_frequency_months.is_not(None),
                models.Recipient.shipment_frequency_months > 0,
            )
            .order_by(models.Recipient.name.asc())
        )
        return list(self.db.execute(stmt).scalars().all())


class CorrespondenceRepository(BaseRepository[models.RecipientCorrespondence]):
    model = models.RecipientCorrespondence

    def _ordered(self):
        return select(models.RecipientCorrespondence).order_by(
            models.RecipientCorrespondence.correspondence_date.desc(),
            models.RecipientCorrespondence.created_at.desc(),
        )

    def list_for_recipient(self, recipient_id: UUID) -> list[models.RecipientCorrespondence]:
        stmt = self._ordered().where(models.RecipientCorrespondence.recipient_id == recipient_id)
        return list(self.db.execute(stmt).scalars().all())

    def latest_by_recipient(self) -> dict[UUID, models.RecipientCorrespondence]:
        latest: dict[UUID, models.RecipientCorrespondence] = {}
        for row in self.db.execute(self._ordered()).scalars().all():
            latest.setdefault(row.recipient_id, row)
        return latest


class DeliveryRepository(BaseRepository[models.Delivery]):
    model = models.Delivery

    def _ordered(self):
        return (
            select(models.Delivery)
            .options(
                selectinload(models.Delivery.recipient),
                selectinload(models.Delivery.coordinator),
            )
            .order_by(
                models.Delivery.target_delivery_date.desc().nulls_last(),
                models.Delivery.updated_at.desc(),
            )
        )

    def list_ordered(self) -> list[models.Delivery]:
        return list(self.db.execute(self._ordered()).scalars().all())

    def list_for_recipient(self, recipient_id: UUID) -> list[models.Delivery]:
        stmt = self._ordered().where(models.Delivery.recipient_id == recipient_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_for_recipients(self, recipient_ids: Iterable[UUID]) -> list[models.Delivery]:
        ids = list(recipient_ids)
        if not ids:
            return []
        stmt = select(models.Delivery).where(models.Delivery.recipient_id.in_(ids))
        return list(self.db.execute(stmt).scalars().all())

    def targeted_dates(self, recipient_ids: Iterable[UUID]) -> list[tuple[UUID, date]]:
        """(recipient_id, target_delivery_date) pairs for deliveries that have a target date."""
        ids = list(recipient_ids)
        if not ids:
            return []
        stmt = select(models.Delivery.recipient_id, models.Delivery.target_delivery_date).where(
            models.Delivery.recipient_id.in_(ids),
            models.Delivery.target_delivery_date.is_not(None),
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def count_by_status(self) -> dict[int, int]:
        stmt = select(models.Delivery.status_id, func.count()).group_by(models.Delivery.status_id)
        return {status_id: count for status_id, count in self.db.execute(stmt).all()}

    def count_upcoming(self, start: date, end: date, status_ids: Iterable[int]) -> int:
        stmt = (
            select(func.count())
            .select_from(models.Delivery)
            .where(
                models.Delivery.status_id.in_(list(status_ids)),
                models.Delivery.target_delivery_date >= start,
                models.Delivery.target_delivery_date <= end,
            )
        )
        return self.db.execute(stmt).scalar_one()

    def recent(self, limit: int = 8) -> list[models.Delivery]:
        stmt = (
            select(models.Delivery)
            .options(selectinload(models.Delivery.recipient))
            .order_by(models.Delivery.updated_at.desc())
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all())
