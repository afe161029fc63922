from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text as sql_text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from magic_yarn.db.base import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    google_sub: Mapped[str | None] = mapped_column(String(128), nullable=True, unique=True)
    full_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, default="view_only", server_default=sql_text("'view_only'")
    )
    is_approved: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sql_text("false")
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    region_links: Mapped[list[UserRegion]] = relationship(back_populates="user", cascade="all, delete-orphan")
    recipients: Mapped[list[Recipient]] = relationship(back_populates="assigned_user")


class Region(Base):
    __tablename__ = "regions"

    code: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))


class UserRegion(Base):
    __tablename__ = "user_regions"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("user_profiles.id", ondelete="CASCADE"), primary_key=True)
    region_code: Mapped[str] = mapped_column(ForeignKey("regions.code", ondelete="CASCADE"), primary_key=True)

    user: Mapped[UserProfile] = relationship(back_populates="region_links")


class RolePermission(Base):
    __tablename__ = "role_permissions"

    role: Mapped[str] = mapped_column(String(32), primary_key=True)
    permission: Mapped[str] = mapped_column(String(64), primary_key=True)
    allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=sql_text("false"))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class Recipient(Base):
    __tablename__ = "recipients"
    __table_args__ = (Index("ix_recipients_name", "name"),)

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default="hospital", server_default=sql_text("'hospital'")
    )
    assigned_user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True
    )
    shipment_frequency_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    address: Mapped[str | None] = mapped_column(String(512), nullable=True)
    city: Mapped[str | None] = mapped_column(String(128), nullable=True)
    state: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zip: Mapped[str | None] = mapped_column(String(32), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    primary_contact_first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    primary_contact_last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    primary_contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    primary_contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    primary_contact_job_title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    secondary_contact_first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    secondary_contact_last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    secondary_contact_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    secondary_contact_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    secondary_contact_job_title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    assigned_user: Mapped[UserProfile | None] = relationship(back_populates="recipients")
    deliveries: Mapped[list[Delivery]] = relationship(back_populates="recipient", cascade="all, delete-orphan")
    correspondence: Mapped[list[RecipientCorrespondence]] = relationship(
        back_populates="recipient", cascade="all, delete-orphan"
    )


class RecipientCorrespondence(Base):
    __tablename__ = "recipient_correspondence"
    __table_args__ = (
        Index("ix_recipient_correspondence_recipient_date", "recipient_id", "correspondence_date"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("recipients.id", ondelete="CASCADE"), nullable=False)
    correspondence_date: Mapped[date] = mapped_column(Date, nullable=False)
    note: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())

    recipient: Mapped[Recipient] = relationship(back_populates="correspondence")


class Delivery(Base):
    __tablename__ = "deliveries"
    __table_args__ = (
        CheckConstraint("status_id IN (1, 2, 3, 4)", name="ck_deliveries_status_id"),
        CheckConstraint(
            "recipient_contact_slot IS NULL OR recipient_contact_slot IN ('primary', 'secondary')",
            name="ck_deliveries_contact_slot",
        ),
        Index("ix_deliveries_recipient_target", "recipient_id", "target_delivery_date"),
        Index("ix_deliveries_status_id", "status_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    recipient_id: Mapped[UUID] = mapped_column(ForeignKey("recipients.id", ondelete="CASCADE"), nullable=False)
    recipient_contact_slot: Mapped[str | None] = mapped_column(String(16), nullable=True)
    requested_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    shipped_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    tracking_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1, server_default=sql_text("1"))
    coordinator_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("user_profiles.id", ondelete="SET NULL"), nullable=True
    )
    wigs: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    beanies: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=sql_text("0"))
    address: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    recipient: Mapped[Recipient] = relationship(back_populates="deliveries")
    coordinator: Mapped[UserProfile | None] = relationship()
