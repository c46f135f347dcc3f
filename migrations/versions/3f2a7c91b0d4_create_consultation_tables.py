"""create consultation tables

Revision ID: 3f2a7c91b0d4
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f2a7c91b0d4"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "lawyer_profiles",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "availability_windows",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lawyer_id", sa.String(length=36), nullable=False),
        sa.Column("day_of_week", sa.String(length=10), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("available", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["lawyer_id"], ["lawyer_profiles.user_id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_availability_windows_lawyer_id"), "availability_windows", ["lawyer_id"], unique=False
    )
    op.create_index(
        "ix_availability_windows_lawyer_day",
        "availability_windows",
        ["lawyer_id", "day_of_week"],
        unique=False,
    )

    op.create_table(
        "consultations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("client_id", sa.String(length=36), nullable=False),
        sa.Column("lawyer_id", sa.String(length=36), nullable=False),
        sa.Column("modality", sa.String(length=10), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("meeting_link", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["lawyer_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_consultations_id"), "consultations", ["id"], unique=False)
    op.create_index(op.f("ix_consultations_client_id"), "consultations", ["client_id"], unique=False)
    op.create_index(op.f("ix_consultations_lawyer_id"), "consultations", ["lawyer_id"], unique=False)
    op.create_index(
        "ix_consultations_lawyer_status_scheduled",
        "consultations",
        ["lawyer_id", "status", "scheduled_at"],
        unique=False,
    )

    op.create_table(
        "consultation_messages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("consultation_id", sa.String(length=36), nullable=False),
        sa.Column("sender_id", sa.String(length=36), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("message_type", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["consultation_id"], ["consultations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_consultation_messages_consultation_id"),
        "consultation_messages",
        ["consultation_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_consultation_messages_created_at"), "consultation_messages", ["created_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_consultation_messages_created_at"), table_name="consultation_messages")
    op.drop_index(op.f("ix_consultation_messages_consultation_id"), table_name="consultation_messages")
    op.drop_table("consultation_messages")
    op.drop_index("ix_consultations_lawyer_status_scheduled", table_name="consultations")
    op.drop_index(op.f("ix_consultations_lawyer_id"), table_name="consultations")
    op.drop_index(op.f("ix_consultations_client_id"), table_name="consultations")
    op.drop_index(op.f("ix_consultations_id"), table_name="consultations")
    op.drop_table("consultations")
    op.drop_index("ix_availability_windows_lawyer_day", table_name="availability_windows")
    op.drop_index(op.f("ix_availability_windows_lawyer_id"), table_name="availability_windows")
    op.drop_table("availability_windows")
    op.drop_table("lawyer_profiles")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
