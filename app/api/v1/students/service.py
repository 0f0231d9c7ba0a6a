"""Student roster service."""

from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ServiceError
from app.core.models import Student

from .schemas import StudentCreate, StudentResponse


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    name = payload.student_name.strip()
    if not name:
        raise ServiceError("Student name is required", status.HTTP_400_BAD_REQUEST)
    student = Student(
        student_name=name,
        student_no=payload.student_no.strip(),
        notes=(payload.notes or "").strip() or None,
    )
    db.add(student)
    await db.commit()
    await db.refresh(student)
    return StudentResponse.model_validate(student)


async def list_students(db: AsyncSession) -> List[StudentResponse]:
    result = await db.execute(select(Student).order_by(Student.student_name))
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]


async def get_student(db: AsyncSession, student_id: UUID) -> Optional[Student]:
    return await db.get(Student, student_id)
