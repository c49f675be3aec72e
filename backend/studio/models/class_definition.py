"""Group class catalog entries."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio.db.base import Base
from studio.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover
    from studio.models.schedule import RecurringSchedule


class ClassDefinition(TimestampMixin, Base):
    """A kind of group class; its name doubles as the membership category."""

    __tablename__ = "class_definitions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    default_duration_minutes: Mapped[int | None] = mapped_column(Integer)
    color: Mapped[str | None] = mapped_column(String(32))
    has_waitlist: Mapped[bool | None] = mapped_column(Boolean)

    schedules: Mapped[list["RecurringSchedule"]] = relationship(
        "RecurringSchedule", back_populates="class_definition"
    )
