"""Students router."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import StudentCreate, StudentResponse
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.post("", response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
) -> StudentResponse:
    try:
        return await service.create_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[StudentResponse])
async def list_students(db: AsyncSession = Depends(get_db)) -> List[StudentResponse]:
    return await service.list_students(db)
