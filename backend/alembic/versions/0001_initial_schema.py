"""Initial class scheduling schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


booking_status = sa.Enum(
    "BOOKED", "WAITLISTED", "CHECKED_IN", "CANCELLED", name="bookingstatus"
)
cancel_reason = sa.Enum(
    "COACH_CANCELLED", "PARTICIPANT_CANCELLED", name="cancelreason"
)
exception_status = sa.Enum("CANCELLED", "DELETED", name="exceptionstatus")
notification_kind = sa.Enum(
    "WAITLIST_PROMOTED", "CLASS_CANCELLED", "INSTANCE_MODIFIED", name="notificationkind"
)


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address_line1", sa.String(length=255)),
        sa.Column("city", sa.String(length=120)),
        *_timestamps(),
    )

    op.create_table(
        "class_definitions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("default_duration_minutes", sa.Integer()),
        sa.Column("color", sa.String(length=32)),
        sa.Column("has_waitlist", sa.Boolean()),
        *_timestamps(),
    )

    op.create_table(
        "participants",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "location_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("locations.id", ondelete="SET NULL"),
        ),
        sa.Column("display_name", sa.String(length=255)),
        sa.Column("restricted_categories", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "recurring_schedules",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "location_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("locations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "class_definition_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("class_definitions.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("coach_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("days_of_week", sa.JSON(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("has_waitlist", sa.Boolean()),
        sa.Column("special_label", sa.String(length=120)),
        *_timestamps(),
        sa.CheckConstraint("start_date <= end_date", name="ck_schedule_date_order"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_schedule_duration"),
        sa.CheckConstraint("max_participants > 0", name="ck_schedule_capacity"),
    )
    op.create_index(
        "ix_recurring_schedules_location_id", "recurring_schedules", ["location_id"]
    )

    op.create_table(
        "schedule_exceptions",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "schedule_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("recurring_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("class_date", sa.Date(), nullable=False),
        sa.Column("status", exception_status),
        sa.Column("new_start_time", sa.Time()),
        sa.Column("new_duration_minutes", sa.Integer()),
        sa.Column("new_coach_id", sa.Uuid(as_uuid=True)),
        sa.Column("new_max_participants", sa.Integer()),
        sa.Column("special_label", sa.String(length=120)),
        sa.Column("created_by", sa.Uuid(as_uuid=True)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "schedule_id", "class_date", name="uq_exception_schedule_date"
        ),
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "participant_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "schedule_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("recurring_schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("class_date", sa.Date(), nullable=False),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("booking_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancel_reason", cancel_reason),
        *_timestamps(),
    )
    op.create_index("ix_bookings_instance", "bookings", ["schedule_id", "class_date"])
    op.create_index("ix_bookings_participant", "bookings", ["participant_id"])
    op.create_index(
        "ux_bookings_active_participant_instance",
        "bookings",
        ["participant_id", "schedule_id", "class_date"],
        unique=True,
        postgresql_where=sa.text("status != 'CANCELLED'"),
        sqlite_where=sa.text("status != 'CANCELLED'"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "participant_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("participants.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("kind", notification_kind, nullable=False),
        sa.Column("schedule_id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column("class_date", sa.Date(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_notifications_participant", "notifications", ["participant_id"]
    )

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("actor_id", sa.Uuid(as_uuid=True)),
        sa.Column("event_type", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("payload", sa.JSON()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_index("ix_notifications_participant", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ux_bookings_active_participant_instance", table_name="bookings")
    op.drop_index("ix_bookings_participant", table_name="bookings")
    op.drop_index("ix_bookings_instance", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("schedule_exceptions")
    op.drop_index("ix_recurring_schedules_location_id", table_name="recurring_schedules")
    op.drop_table("recurring_schedules")
    op.drop_table("participants")
    op.drop_table("class_definitions")
    op.drop_table("locations")

    bind = op.get_bind()
    for enum in (notification_kind, exception_status, cancel_reason, booking_status):
        enum.drop(bind, checkfirst=True)
