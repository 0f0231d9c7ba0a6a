"""Value set schemas."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.custom_fields.schemas import FieldOption, ValueSetData


class ValueSetCreate(BaseModel):
    name: str = Field(..., max_length=100)
    options: List[FieldOption] = Field(default_factory=list)


class ValueSetUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    options: Optional[List[FieldOption]] = None


class ValueSetResponse(BaseModel):
    id: UUID
    name: str
    options: List[FieldOption]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

    def to_data(self) -> ValueSetData:
        return ValueSetData(id=str(self.id), name=self.name, options=self.options)
