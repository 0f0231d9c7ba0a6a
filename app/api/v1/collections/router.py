"""Collections router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.custom_fields.breakdown import FieldBreakdown
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import (
    AddSubFieldRequest,
    CloneFieldRequest,
    CollectionCreate,
    CollectionResponse,
    CollectionSaveResponse,
    CollectionSummary,
    CollectionUpdate,
    LinkValueSetRequest,
    PaymentDisplayItem,
    StudentStandingResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/collections", tags=["collections"])


def _found(result, detail: str = "Collection not found"):
    if result is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return result


@router.post("", response_model=CollectionSaveResponse, status_code=status.HTTP_201_CREATED)
async def create_collection(
    payload: CollectionCreate,
    db: AsyncSession = Depends(get_db),
) -> CollectionSaveResponse:
    try:
        return await service.create_collection(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[CollectionResponse])
async def list_collections(db: AsyncSession = Depends(get_db)) -> List[CollectionResponse]:
    try:
        return await service.list_collections(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{collection_id}", response_model=CollectionResponse)
async def get_collection(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(await service.get_collection(db, collection_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{collection_id}", response_model=CollectionSaveResponse)
async def update_collection(
    collection_id: UUID,
    payload: CollectionUpdate,
    db: AsyncSession = Depends(get_db),
) -> CollectionSaveResponse:
    try:
        return _found(await service.update_collection(db, collection_id, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{collection_id}/fields/{field_id}", response_model=CollectionResponse)
async def delete_field(
    collection_id: UUID,
    field_id: str,
    confirm: bool = Query(False, description="Confirm removal of recorded answers"),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(await service.delete_field(db, collection_id, field_id, confirm=confirm))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/{collection_id}/fields/{field_id}/options/{option_id}",
    response_model=CollectionResponse,
)
async def delete_option(
    collection_id: UUID,
    field_id: str,
    option_id: str,
    confirm: bool = Query(False, description="Confirm removal of recorded answers"),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(await service.delete_option(db, collection_id, field_id, option_id, confirm=confirm))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{collection_id}/fields/{field_id}/clone", response_model=CollectionResponse)
async def clone_field(
    collection_id: UUID,
    field_id: str,
    payload: CloneFieldRequest,
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(
            await service.copy_field(db, collection_id, field_id, payload.target_collection_id)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{collection_id}/fields/{field_id}/value-set", response_model=CollectionResponse)
async def link_field(
    collection_id: UUID,
    field_id: str,
    payload: LinkValueSetRequest,
    confirm: bool = Query(False, description="Confirm discarding recorded answers of replaced choices"),
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(
            await service.link_field(db, collection_id, field_id, payload.value_set_id, confirm=confirm)
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/{collection_id}/fields/{field_id}/options/{option_id}/sub-fields",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_sub_field(
    collection_id: UUID,
    field_id: str,
    option_id: str,
    payload: AddSubFieldRequest,
    db: AsyncSession = Depends(get_db),
) -> CollectionResponse:
    try:
        return _found(await service.create_sub_field(db, collection_id, field_id, option_id, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{collection_id}/students/{student_id}/standing", response_model=StudentStandingResponse)
async def get_student_standing(
    collection_id: UUID,
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> StudentStandingResponse:
    try:
        return _found(await service.get_student_standing(db, collection_id, student_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{collection_id}/summary", response_model=CollectionSummary)
async def get_summary(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> CollectionSummary:
    try:
        return _found(await service.get_summary(db, collection_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{collection_id}/breakdown", response_model=List[FieldBreakdown])
async def get_breakdown(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[FieldBreakdown]:
    try:
        return _found(await service.get_breakdown(db, collection_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{collection_id}/payment-displays", response_model=List[PaymentDisplayItem])
async def list_payment_displays(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[PaymentDisplayItem]:
    try:
        return _found(await service.list_payment_displays(db, collection_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
