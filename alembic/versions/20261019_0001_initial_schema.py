"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum("MENTOR", "MENTEE", name="role_enum", native_enum=False)
session_status_enum = sa.Enum(
    "REQUESTED",
    "CONFIRMED",
    "DECLINED",
    "COMPLETED",
    "CANCELLED",
    name="session_status_enum",
    native_enum=False,
)
session_payment_status_enum = sa.Enum(
    "PENDING",
    "COMPLETED",
    "REFUNDED",
    name="session_payment_status_enum",
    native_enum=False,
)
payment_status_enum = sa.Enum("COMPLETED", "REFUNDED", name="payment_status_enum", native_enum=False)
notification_type_enum = sa.Enum(
    "REQUEST",
    "CONFIRMATION",
    "REMINDER",
    "SUMMARY",
    "FOLLOW_UP",
    "CANCELLATION",
    name="notification_type_enum",
    native_enum=False,
)
video_call_status_enum = sa.Enum("PENDING", "STARTED", "ENDED", name="video_call_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", role_enum, nullable=False),
        sa.Column("avatar_url", sa.String(length=512), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "refresh_tokens",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_refresh_tokens_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("token_id", name="uq_refresh_tokens_token_id"),
    )
    op.create_index("ix_refresh_tokens_token_id", "refresh_tokens", ["token_id"], unique=False)
    op.create_index("ix_refresh_tokens_user_id", "refresh_tokens", ["user_id"], unique=False)

    op.create_table(
        "mentor_profiles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False),
        sa.Column("domains", postgresql.ARRAY(sa.String(length=64)), nullable=False),
        sa.Column("experience_years", sa.Integer(), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("company", sa.String(length=128), nullable=True),
        sa.Column("position", sa.String(length=128), nullable=True),
        sa.Column("education", sa.String(length=255), nullable=True),
        sa.Column("languages", postgresql.ARRAY(sa.String(length=32)), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_mentor_profiles_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_mentor_profiles_user_id"),
    )

    op.create_table(
        "availability_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("mentor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_booked", sa.Boolean(), nullable=False),
        sa.CheckConstraint("start_at < end_at", name="ck_availability_slots_start_before_end"),
        sa.ForeignKeyConstraint(
            ["mentor_id"],
            ["users.id"],
            name="fk_availability_slots_mentor_id_users",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_availability_slots_mentor_id", "availability_slots", ["mentor_id"], unique=False)
    op.create_index(
        "ix_availability_slots_mentor_open",
        "availability_slots",
        ["mentor_id", "start_at"],
        unique=False,
        postgresql_where=sa.text("NOT is_booked"),
    )
    # open slots of one mentor never overlap; booked slots are exempt
    op.execute(
        "ALTER TABLE availability_slots ADD CONSTRAINT ex_availability_slots_open_overlap "
        "EXCLUDE USING gist (mentor_id WITH =, tstzrange(start_at, end_at) WITH &&) "
        "WHERE (NOT is_booked)",
    )

    op.create_table(
        "sessions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mentor_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("mentee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", session_status_enum, nullable=False),
        sa.Column("payment_status", session_payment_status_enum, nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("transcript", sa.Text(), nullable=True),
        sa.Column("video_call_ref", sa.String(length=128), nullable=True),
        sa.Column("payment_ref", sa.String(length=128), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("declined_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("cancellation_reason", sa.String(length=512), nullable=True),
        sa.Column("reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["slot_id"],
            ["availability_slots.id"],
            name="fk_sessions_slot_id_availability_slots",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(["mentor_id"], ["users.id"], name="fk_sessions_mentor_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["mentee_id"], ["users.id"], name="fk_sessions_mentee_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["cancelled_by_id"],
            ["users.id"],
            name="fk_sessions_cancelled_by_id_users",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("slot_id", name="uq_sessions_slot_id"),
    )
    op.create_index("ix_sessions_mentor_id", "sessions", ["mentor_id"], unique=False)
    op.create_index("ix_sessions_mentee_id", "sessions", ["mentee_id"], unique=False)
    op.create_index("ix_sessions_start_at", "sessions", ["start_at"], unique=False)
    op.create_index("ix_sessions_status", "sessions", ["status"], unique=False)

    op.create_table(
        "payments",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("payer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("method", sa.String(length=32), nullable=False),
        sa.Column("status", payment_status_enum, nullable=False),
        sa.Column("transaction_ref", sa.String(length=128), nullable=False),
        sa.Column("refund_ref", sa.String(length=128), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], name="fk_payments_session_id_sessions", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["payer_id"], ["users.id"], name="fk_payments_payer_id_users", ondelete="RESTRICT"),
        sa.UniqueConstraint("transaction_ref", name="uq_payments_transaction_ref"),
    )
    op.create_index("ix_payments_session_id", "payments", ["session_id"], unique=False)

    op.create_table(
        "video_calls",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("room_ref", sa.String(length=128), nullable=False),
        sa.Column("status", video_call_status_enum, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recording_url", sa.String(length=512), nullable=True),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"], name="fk_video_calls_session_id_sessions", ondelete="CASCADE"),
        sa.UniqueConstraint("session_id", name="uq_video_calls_session_id"),
        sa.UniqueConstraint("room_ref", name="uq_video_calls_room_ref"),
    )

    op.create_table(
        "notifications",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False),
        sa.Column("related_session_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notifications_user_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["related_session_id"],
            ["sessions.id"],
            name="fk_notifications_related_session_id_sessions",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)
    op.create_index("ix_notifications_read", "notifications", ["read"], unique=False)
    op.create_index("ix_notifications_related_session_id", "notifications", ["related_session_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_notifications_related_session_id", table_name="notifications")
    op.drop_index("ix_notifications_read", table_name="notifications")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_table("video_calls")

    op.drop_index("ix_payments_session_id", table_name="payments")
    op.drop_table("payments")

    op.drop_index("ix_sessions_status", table_name="sessions")
    op.drop_index("ix_sessions_start_at", table_name="sessions")
    op.drop_index("ix_sessions_mentee_id", table_name="sessions")
    op.drop_index("ix_sessions_mentor_id", table_name="sessions")
    op.drop_table("sessions")

    op.execute("ALTER TABLE availability_slots DROP CONSTRAINT IF EXISTS ex_availability_slots_open_overlap")
    op.drop_index("ix_availability_slots_mentor_open", table_name="availability_slots")
    op.drop_index("ix_availability_slots_mentor_id", table_name="availability_slots")
    op.drop_table("availability_slots")

    op.drop_table("mentor_profiles")

    op.drop_index("ix_refresh_tokens_user_id", table_name="refresh_tokens")
    op.drop_index("ix_refresh_tokens_token_id", table_name="refresh_tokens")
    op.drop_table("refresh_tokens")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
