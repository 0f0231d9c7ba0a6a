"""History router."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db

from .schemas import HistoryEntryResponse
from . import service

router = APIRouter(prefix="/api/v1/history", tags=["history"])


@router.get("", response_model=List[HistoryEntryResponse])
async def list_history(
    collection_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
) -> List[HistoryEntryResponse]:
    return await service.list_history(db, collection_id=collection_id, student_id=student_id, limit=limit)
