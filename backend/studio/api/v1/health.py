"""Health check endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.core.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Service health status")
async def healthcheck(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> dict[str, str]:
    """Return service metadata and whether the booking store answers."""
    settings = get_settings()
    database = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Health check could not reach the database", exc_info=True)
        database = "unavailable"
    return {
        "status": "ok" if database == "ok" else "degraded",
        "service": settings.app_name,
        "database": database,
        "timezone": settings.studio_timezone,
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.app_env,
    }
