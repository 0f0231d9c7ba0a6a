"""Student schemas."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    student_name: str = Field(..., max_length=255)
    student_no: str = Field(..., max_length=50)
    notes: Optional[str] = None


class StudentResponse(BaseModel):
    id: UUID
    student_name: str
    student_no: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
