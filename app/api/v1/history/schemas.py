"""History schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.core.enums import HistoryEntryType


class HistoryEntryResponse(BaseModel):
    id: UUID
    timestamp: datetime
    entry_type: HistoryEntryType
    student_id: UUID
    student_name: str
    collection_id: UUID
    collection_name: str
    amount: Optional[Decimal] = None
    previous_amount: Optional[Decimal] = None

    class Config:
        from_attributes = True
