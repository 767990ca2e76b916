"""Event categories, content sections and post-event feedback.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Categories
    op.create_table(
        "event_categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_event_categories_id", "event_categories", ["id"])
    op.create_index("ix_event_categories_name", "event_categories", ["name"], unique=True)

    with op.batch_alter_table("events") as batch:
        batch.add_column(sa.Column("category_id", sa.Integer(), nullable=True))
        batch.create_foreign_key(
            "fk_events_category_id", "event_categories", ["category_id"], ["id"], ondelete="SET NULL"
        )
        batch.create_index("ix_events_category_id", ["category_id"])

    # Sections
    op.create_table(
        "event_sections",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("section_type", sa.String(20), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_visible", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_event_sections_id", "event_sections", ["id"])
    op.create_index("ix_event_sections_event_id", "event_sections", ["event_id"])

    # Feedback
    op.create_table(
        "event_feedback_forms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("allow_anonymous", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("show_after_event", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("close_after_hours", sa.Integer(), nullable=False, server_default="168"),
        sa.Column("completion_message", sa.String(500), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        *_timestamps(),
    )
    op.create_index("ix_event_feedback_forms_id", "event_feedback_forms", ["id"])

    op.create_table(
        "event_feedback_fields",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("event_feedback_forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("field_name", sa.String(100), nullable=False),
        sa.Column("field_label", sa.String(255), nullable=False),
        sa.Column("field_type", sa.String(20), nullable=False, server_default="TEXT"),
        sa.Column("options", sa.JSON(), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("min_value", sa.Integer(), nullable=True),
        sa.Column("max_value", sa.Integer(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_event_feedback_fields_id", "event_feedback_fields", ["id"])
    op.create_index("ix_event_feedback_fields_form_id", "event_feedback_fields", ["form_id"])

    op.create_table(
        "event_feedback_responses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "form_id", sa.Integer(), sa.ForeignKey("event_feedback_forms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "field_id", sa.Integer(), sa.ForeignKey("event_feedback_fields.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("submission_id", sa.String(32), nullable=False),
        sa.Column("response", sa.Text(), nullable=False),
        sa.Column("is_anonymous", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("ip_address", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_event_feedback_responses_id", "event_feedback_responses", ["id"])
    op.create_index("ix_event_feedback_responses_form_id", "event_feedback_responses", ["form_id"])
    op.create_index("ix_event_feedback_responses_user_id", "event_feedback_responses", ["user_id"])
    op.create_index("ix_event_feedback_responses_submission_id", "event_feedback_responses", ["submission_id"])


def downgrade() -> None:
    op.drop_table("event_feedback_responses")
    op.drop_table("event_feedback_fields")
    op.drop_table("event_feedback_forms")
    op.drop_table("event_sections")
    with op.batch_alter_table("events") as batch:
        batch.drop_index("ix_events_category_id")
        batch.drop_constraint("fk_events_category_id", type_="foreignkey")
        batch.drop_column("category_id")
    op.drop_table("event_categories")
