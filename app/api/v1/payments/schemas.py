"""Payment schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import HistoryEntryType, PaymentOutcome


class PaymentSave(BaseModel):
    """Candidate amount and answers for one student. Zero amount and no answers removes the payment."""

    amount: Decimal = Field(Decimal("0"), ge=0)
    custom_field_values: Dict[str, str] = Field(default_factory=dict)


class PaymentResponse(BaseModel):
    id: UUID
    collection_id: UUID
    student_id: UUID
    amount: Decimal
    custom_field_values: Optional[Dict[str, str]] = None
    timestamp: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecordPaymentResponse(BaseModel):
    outcome: PaymentOutcome
    payment: Optional[PaymentResponse] = None
    history_type: Optional[HistoryEntryType] = None


class BulkPaymentResponse(BaseModel):
    collection_id: UUID
    affected: int
