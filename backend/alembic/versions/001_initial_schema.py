"""Initial schema: users, events, forms, registrations, guests, merchandise, activity log.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(10, 2)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(150), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
        sa.CheckConstraint("role IN ('USER', 'SUPER_ADMIN')", name="check_user_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Events table
    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(300), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("venue", sa.String(255), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=True),
        sa.Column("end_time", sa.String(5), nullable=True),
        sa.Column("registration_start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("registration_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_capacity", sa.Integer(), nullable=True),
        sa.Column("registration_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("guest_fee", MONEY, nullable=False, server_default="0"),
        sa.Column("has_registration", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("has_external_link", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("external_registration_link", sa.String(500), nullable=True),
        sa.Column("has_custom_form", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_meals", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_guests", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_donations", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("has_merchandise", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("allow_form_modification", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("form_modification_deadline_hours", sa.Integer(), nullable=True, server_default="24"),
        sa.Column("status", sa.String(30), nullable=False, server_default="DRAFT"),
        sa.Column("created_by_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("registration_fee >= 0", name="check_event_registration_fee_non_negative"),
        sa.CheckConstraint("guest_fee >= 0", name="check_event_guest_fee_non_negative"),
        sa.CheckConstraint("max_capacity IS NULL OR max_capacity > 0", name="check_event_capacity_positive"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_slug", "events", ["slug"], unique=True)
    op.create_index("ix_events_event_date", "events", ["event_date"])
    op.create_index("ix_events_status_date", "events", ["status", "event_date"])

    # Custom forms
    op.create_table(
        "event_forms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_event_forms_id", "event_forms", ["id"])

    op.create_table(
        "event_form_fields",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("event_forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("field_label", sa.String(255), nullable=False),
        sa.Column("field_type", sa.String(20), nullable=False, server_default="TEXT"),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_event_form_fields_id", "event_form_fields", ["id"])
    op.create_index("ix_event_form_fields_form_id", "event_form_fields", ["form_id"])

    # Registrations
    op.create_table(
        "event_registrations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="CONFIRMED"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("meal_preference", sa.String(10), nullable=True),
        sa.Column("registration_fee_paid", MONEY, nullable=False, server_default="0"),
        sa.Column("guest_fees_paid", MONEY, nullable=False, server_default="0"),
        sa.Column("merchandise_total", MONEY, nullable=False, server_default="0"),
        sa.Column("donation_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_amount", MONEY, nullable=False, server_default="0"),
        sa.Column("total_guests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active_guests", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("modification_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_modified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        # One registration per user per event
        sa.UniqueConstraint("event_id", "user_id", name="uq_event_user_registration"),
        sa.CheckConstraint("status IN ('CONFIRMED', 'CANCELLED', 'WAITLIST')", name="check_registration_status"),
        sa.CheckConstraint("total_amount >= 0", name="check_registration_total_non_negative"),
    )
    op.create_index("ix_event_registrations_id", "event_registrations", ["id"])
    op.create_index("ix_event_registrations_event_id", "event_registrations", ["event_id"])
    op.create_index("ix_event_registrations_user_id", "event_registrations", ["user_id"])

    op.create_table(
        "event_form_responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "registration_id", sa.Integer(),
            sa.ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("field_id", sa.Integer(), sa.ForeignKey("event_form_fields.id", ondelete="CASCADE"), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_timestamps(),
    )
    op.create_index("ix_event_form_responses_id", "event_form_responses", ["id"])
    op.create_index("ix_event_form_responses_registration_id", "event_form_responses", ["registration_id"])

    # Guests
    op.create_table(
        "event_guests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "registration_id", sa.Integer(),
            sa.ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("meal_preference", sa.String(10), nullable=True),
        sa.Column("fees_paid", MONEY, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )
    op.create_index("ix_event_guests_id", "event_guests", ["id"])
    op.create_index("ix_event_guests_registration_id", "event_guests", ["registration_id"])

    # Merchandise and order rows
    op.create_table(
        "event_merchandise",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", MONEY, nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=True),
        sa.Column("available_sizes", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("price >= 0", name="check_merchandise_price_non_negative"),
        # Final safety net against overselling
        sa.CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0", name="check_merchandise_stock_non_negative"
        ),
    )
    op.create_index("ix_event_merchandise_id", "event_merchandise", ["id"])
    op.create_index("ix_event_merchandise_event_id", "event_merchandise", ["event_id"])

    op.create_table(
        "merchandise_orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "registration_id", sa.Integer(),
            sa.ForeignKey("event_registrations.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("merchandise_id", sa.Integer(), sa.ForeignKey("event_merchandise.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("selected_size", sa.String(20), nullable=True),
        sa.Column("unit_price", MONEY, nullable=False),
        sa.Column("total_price", MONEY, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="CART"),
        *_timestamps(),
        sa.CheckConstraint("quantity > 0", name="check_order_quantity_positive"),
    )
    op.create_index("ix_merchandise_orders_id", "merchandise_orders", ["id"])
    op.create_index("ix_merchandise_orders_registration_id", "merchandise_orders", ["registration_id"])
    op.create_index("ix_merchandise_orders_merchandise_id", "merchandise_orders", ["merchandise_id"])

    # Audit trail
    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_activity_logs_id", "activity_logs", ["id"])
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("merchandise_orders")
    op.drop_table("event_merchandise")
    op.drop_table("event_guests")
    op.drop_table("event_form_responses")
    op.drop_table("event_registrations")
    op.drop_table("event_form_fields")
    op.drop_table("event_forms")
    op.drop_table("events")
    op.drop_table("users")
