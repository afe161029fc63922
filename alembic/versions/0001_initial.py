"""Initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("google_sub", sa.String(length=128), nullable=True),
        sa.Column("full_name", sa.String(length=256), nullable=True),
        sa.Column("avatar_url", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=32), server_default=sa.text("'view_only'"), nullable=False),
        sa.Column("is_approved", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("google_sub"),
    )

    op.create_table(
        "regions",
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.PrimaryKeyConstraint("code"),
    )

    op.create_table(
        "user_regions",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("region_code", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["region_code"], ["regions.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id", "region_code"),
    )

    op.create_table(
        "role_permissions",
        sa.Column("role", sa.String(length=32), nullable=False),
        sa.Column("permission", sa.String(length=64), nullable=False),
        sa.Column("allowed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("role", "permission"),
    )

    op.create_table(
        "recipients",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=256), nullable=False),
        sa.Column("type", sa.String(length=32), server_default=sa.text("'hospital'"), nullable=False),
        sa.Column("assigned_user_id", sa.Uuid(), nullable=True),
        sa.Column("shipment_frequency_months", sa.Integer(), nullable=True),
        sa.Column("address", sa.String(length=512), nullable=True),
        sa.Column("city", sa.String(length=128), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("zip", sa.String(length=32), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("primary_contact_first_name", sa.String(length=128), nullable=True),
        sa.Column("primary_contact_last_name", sa.String(length=128), nullable=True),
        sa.Column("primary_contact_email", sa.String(length=320), nullable=True),
        sa.Column("primary_contact_phone", sa.String(length=64), nullable=True),
        sa.Column("primary_contact_job_title", sa.String(length=128), nullable=True),
        sa.Column("secondary_contact_first_name", sa.String(length=128), nullable=True),
        sa.Column("secondary_contact_last_name", sa.String(length=128), nullable=True),
        sa.Column("secondary_contact_email", sa.String(length=320), nullable=True),
        sa.Column("secondary_contact_phone", sa.String(length=64), nullable=True),
        sa.Column("secondary_contact_job_title", sa.String(length=128), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["assigned_user_id"], ["user_profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_recipients_name", "recipients", ["name"])

    op.create_table(
        "recipient_correspondence",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("correspondence_date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["recipients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["user_profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_recipient_correspondence_recipient_date",
        "recipient_correspondence",
        ["recipient_id", "correspondence_date"],
    )

    op.create_table(
        "deliveries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipient_id", sa.Uuid(), nullable=False),
        sa.Column("recipient_contact_slot", sa.String(length=16), nullable=True),
        sa.Column("requested_date", sa.Date(), nullable=True),
        sa.Column("target_delivery_date", sa.Date(), nullable=True),
        sa.Column("shipped_date", sa.Date(), nullable=True),
        sa.Column("completed_date", sa.Date(), nullable=True),
        sa.Column("tracking_number", sa.String(length=128), nullable=True),
        sa.Column("status_id", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("coordinator_id", sa.Uuid(), nullable=True),
        sa.Column("wigs", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("beanies", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("address", sa.String(length=1024), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["recipient_id"], ["recipients.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["coordinator_id"], ["user_profiles.id"], ondelete="SET NULL"),
        sa.CheckConstraint("status_id IN (1, 2, 3, 4)", name="ck_deliveries_status_id"),
        sa.CheckConstraint(
            "recipient_contact_slot IS NULL OR recipient_contact_slot IN ('primary', 'secondary')",
            name="ck_deliveries_contact_slot",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_deliveries_recipient_target", "deliveries", ["recipient_id", "target_delivery_date"])
    op.create_index("ix_deliveries_status_id", "deliveries", ["status_id"])


def downgrade() -> None:
    op.drop_index("ix_deliveries_status_id", table_name="deliveries")
    op.drop_index("ix_deliveries_recipient_target", table_name="deliveries")
    op.drop_table("deliveries")
    op.drop_index("ix_recipient_correspondence_recipient_date", table_name="recipient_correspondence")
    op.drop_table("recipient_correspondence")
    op.drop_index("ix_recipients_name", table_name="recipients")
    op.drop_table("recipients")
    op.drop_table("role_permissions")
    op.drop_table("user_regions")
    op.drop_table("regions")
    op.drop_table("user_profiles")
