"""Class catalog endpoints."""
from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio.api import deps
from studio.schemas.class_definition import (
    ClassDefinitionCreate,
    ClassDefinitionRead,
    ClassDefinitionUpdate,
)
from studio.services import catalog_service

router = APIRouter()


async def _get_definition_or_404(session: AsyncSession, definition_id: uuid.UUID):
    definition = await catalog_service.get_class_definition(session, definition_id)
    if definition is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND, detail="Class definition not found"
        )
    return definition


@router.get("", response_model=list[ClassDefinitionRead], summary="List class definitions")
async def list_class_definitions(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> list[ClassDefinitionRead]:
    definitions = await catalog_service.list_class_definitions(session)
    return [ClassDefinitionRead.model_validate(obj) for obj in definitions]


@router.post(
    "",
    response_model=ClassDefinitionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create class definition",
)
async def create_class_definition(
    payload: ClassDefinitionCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> ClassDefinitionRead:
    deps.require_staff(actor)
    definition = await catalog_service.create_class_definition(session, payload)
    return ClassDefinitionRead.model_validate(definition)


@router.patch(
    "/{definition_id}",
    response_model=ClassDefinitionRead,
    summary="Update class definition",
)
async def update_class_definition(
    definition_id: uuid.UUID,
    payload: ClassDefinitionUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> ClassDefinitionRead:
    deps.require_staff(actor)
    definition = await _get_definition_or_404(session, definition_id)
    updated = await catalog_service.update_class_definition(session, definition, payload)
    return ClassDefinitionRead.model_validate(updated)


@router.delete(
    "/{definition_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete class definition",
)
async def delete_class_definition(
    definition_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    actor: Annotated[deps.Actor, Depends(deps.get_actor)],
) -> Response:
    deps.require_staff(actor)
    definition = await _get_definition_or_404(session, definition_id)
    try:
        await catalog_service.delete_class_definition(session, definition)
    except catalog_service.CatalogConflict as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
