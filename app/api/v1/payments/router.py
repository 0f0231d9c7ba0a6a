"""Payments router (nested under a collection)."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import BulkPaymentResponse, PaymentSave, RecordPaymentResponse
from . import service

router = APIRouter(prefix="/api/v1/collections/{collection_id}/payments", tags=["payments"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Collection not found")


@router.put("/{student_id}", response_model=RecordPaymentResponse)
async def record_payment(
    collection_id: UUID,
    student_id: UUID,
    payload: PaymentSave,
    db: AsyncSession = Depends(get_db),
) -> RecordPaymentResponse:
    try:
        result = await service.record_payment(db, collection_id, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if result is None:
        raise _not_found()
    return result


@router.post("/mark-all-paid", response_model=BulkPaymentResponse)
async def mark_all_paid(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BulkPaymentResponse:
    try:
        result = await service.mark_all_paid(db, collection_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if result is None:
        raise _not_found()
    return result


@router.post("/mark-all-unpaid", response_model=BulkPaymentResponse)
async def mark_all_unpaid(
    collection_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> BulkPaymentResponse:
    result = await service.mark_all_unpaid(db, collection_id)
    if result is None:
        raise _not_found()
    return result
