"""Physical studio location."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studio.db.base import Base
from studio.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from studio.models.schedule import RecurringSchedule


class Location(TimestampMixin, Base):
    """A studio location that hosts group classes."""

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line1: Mapped[str | None] = mapped_column(String(255))
    city: Mapped[str | None] = mapped_column(String(120))

    schedules: Mapped[list["RecurringSchedule"]] = relationship(
        "RecurringSchedule", back_populates="location"
    )
