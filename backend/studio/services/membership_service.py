"""Membership lookups backed by the participants table."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from studio.models import Participant, RestrictionBehavior

logger = logging.getLogger(__name__)


class SqlMembershipDirectory:
    """Reads participant locations and category restrictions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _participant(self, participant_id: uuid.UUID) -> Participant | None:
        return await self.session.get(Participant, participant_id)

    async def exists(self, participant_id: uuid.UUID) -> bool:
        return await self._participant(participant_id) is not None

    async def location_for(self, participant_id: uuid.UUID) -> uuid.UUID | None:
        participant = await self._participant(participant_id)
        return participant.location_id if participant else None

    async def restrictions_for(
        self, participant_id: uuid.UUID
    ) -> dict[str, RestrictionBehavior]:
        participant = await self._participant(participant_id)
        if participant is None:
            return {}
        restrictions: dict[str, RestrictionBehavior] = {}
        for category, behavior in (participant.restricted_categories or {}).items():
            try:
                restrictions[category] = RestrictionBehavior(behavior)
            except ValueError:
                logger.warning(
                    "Ignoring unknown restriction %r for participant %s",
                    behavior,
                    participant_id,
                )
        return restrictions
