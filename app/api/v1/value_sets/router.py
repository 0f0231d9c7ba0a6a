"""Value sets router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import ValueSetCreate, ValueSetResponse, ValueSetUpdate
from . import service

router = APIRouter(prefix="/api/v1/value-sets", tags=["value-sets"])


@router.post("", response_model=ValueSetResponse, status_code=status.HTTP_201_CREATED)
async def create_value_set(
    payload: ValueSetCreate,
    db: AsyncSession = Depends(get_db),
) -> ValueSetResponse:
    try:
        return await service.create_value_set(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ValueSetResponse])
async def list_value_sets(db: AsyncSession = Depends(get_db)) -> List[ValueSetResponse]:
    return await service.list_value_sets(db)


@router.patch("/{value_set_id}", response_model=ValueSetResponse)
async def update_value_set(
    value_set_id: UUID,
    payload: ValueSetUpdate,
    db: AsyncSession = Depends(get_db),
) -> ValueSetResponse:
    try:
        vs = await service.update_value_set(db, value_set_id, payload)
        if not vs:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Value set not found",
            )
        return vs
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{value_set_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_value_set(
    value_set_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> Response:
    if not await service.delete_value_set(db, value_set_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Value set not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
