"""Membership-facing view of a studio participant."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from studio.db.base import Base
from studio.models.mixins import TimestampMixin


class RestrictionBehavior(str, enum.Enum):
    """How a membership treats a restricted class category."""

    NONE = "none"
    HIDE = "hide"
    SHOW_LOCK = "show_lock"


class Participant(TimestampMixin, Base):
    """A member who can book group classes.

    Profile data lives with the member service; only the home location and the
    membership's category restrictions are kept here.
    """

    __tablename__ = "participants"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    location_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("locations.id", ondelete="SET NULL")
    )
    display_name: Mapped[str | None] = mapped_column(String(255))
    restricted_categories: Mapped[dict[str, str]] = mapped_column(
        JSON, nullable=False, default=dict
    )
