"""Create users, donations, requests, notifications tables

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # --- users (provisioned from identity provider claims) ---
    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("auth_sub", sa.String(255), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
    )

    # --- donations ---
    op.create_table(
        "donations",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("donor_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(32), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("condition", sa.String(20), nullable=False),
        sa.Column(
            "images",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("pickup_address", sa.String(300), nullable=False),
        sa.Column("pickup_city", sa.String(100), nullable=False),
        sa.Column("pickup_state", sa.String(50), nullable=False),
        sa.Column("pickup_zip_code", sa.String(9), nullable=False),
        sa.Column("pickup_instructions", sa.String(500), nullable=True),
        sa.Column("pickup_latitude", sa.Float(), nullable=True),
        sa.Column("pickup_longitude", sa.Float(), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('available', 'reserved', 'delivered', 'cancelled')",
            name="ck_donations_status",
        ),
        sa.CheckConstraint(
            "category IN ('food', 'clothing', 'electronics', 'furniture', 'books', "
            "'toys', 'household_items', 'medicine', 'hygiene_products', 'other')",
            name="ck_donations_category",
        ),
        sa.CheckConstraint(
            "condition IN ('new', 'used_good', 'used_fair', 'needs_repair')",
            name="ck_donations_condition",
        ),
        sa.CheckConstraint("quantity > 0", name="ck_donations_quantity_positive"),
    )
    op.create_index("ix_donations_donor_id", "donations", ["donor_id"])
    op.create_index(
        "ix_donations_active_status_created",
        "donations",
        ["is_active", "status", "created_at"],
    )

    # --- requests ---
    op.create_table(
        "requests",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("donation_id", sa.UUID(), sa.ForeignKey("donations.id"), nullable=False),
        sa.Column("donor_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("requester_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("requested_quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("approved_quantity", sa.Integer(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("pickup_scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("pickup_completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected', 'cancelled', 'delivered')",
            name="ck_requests_status",
        ),
        sa.CheckConstraint("requested_quantity >= 1", name="ck_requests_requested_quantity"),
        sa.CheckConstraint(
            "approved_quantity IS NULL OR "
            "(approved_quantity >= 1 AND approved_quantity <= requested_quantity)",
            name="ck_requests_approved_quantity",
        ),
        sa.CheckConstraint("requester_id <> donor_id", name="ck_requests_not_own_donation"),
    )
    op.create_index("ix_requests_donor_id", "requests", ["donor_id"])
    op.create_index("ix_requests_requester_id", "requests", ["requester_id"])
    op.create_index("ix_requests_donation_status", "requests", ["donation_id", "status"])
    # At most one pending request per (donation, requester).
    op.create_index(
        "uq_requests_one_pending_per_requester",
        "requests",
        ["donation_id", "requester_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    # --- notifications ---
    op.create_table(
        "notifications",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.UUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("data", postgresql.JSONB(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
        ),
        sa.CheckConstraint(
            "type IN ('new_request', 'request_approved', 'request_rejected', "
            "'request_cancelled', 'donation_delivered', 'donation_cancelled')",
            name="ck_notifications_type",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_index("uq_requests_one_pending_per_requester", table_name="requests")
    op.drop_table("requests")
    op.drop_table("donations")
    op.drop_table("users")
