"""Collection schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.api.v1.custom_fields.schemas import CustomField, NormalizationReport
from app.core.enums import PaymentStatus


class CollectionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    collection_type: str = Field("regular", description="regular, ulikdanay")
    target_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[date] = None
    notes: Optional[str] = None
    custom_fields: List[CustomField] = Field(default_factory=list)
    included_student_ids: Optional[List[UUID]] = None


class CollectionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    target_amount: Optional[Decimal] = Field(None, ge=0)
    deadline: Optional[date] = None
    notes: Optional[str] = None
    custom_fields: Optional[List[CustomField]] = None
    included_student_ids: Optional[List[UUID]] = None
    confirm_data_loss: bool = Field(
        False,
        description="Required when the new fields drop a field that has recorded answers",
    )


class CollectionResponse(BaseModel):
    id: UUID
    name: str
    collection_type: str
    target_amount: Optional[Decimal] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None
    custom_fields: List[CustomField] = Field(default_factory=list)
    included_student_ids: Optional[List[UUID]] = None
    has_amount_fields: bool = False
    created_at: datetime
    updated_at: datetime


class CollectionSaveResponse(BaseModel):
    collection: CollectionResponse
    normalization: NormalizationReport


class CloneFieldRequest(BaseModel):
    target_collection_id: Optional[UUID] = Field(
        None, description="Collection receiving the copy; defaults to the source collection"
    )


class LinkValueSetRequest(BaseModel):
    value_set_id: Optional[UUID] = Field(None, description="None unlinks the field")


class AddSubFieldRequest(BaseModel):
    """Either a new field, or a value set to build a linked single-choice field from."""

    field: Optional[CustomField] = None
    value_set_id: Optional[UUID] = None


class StudentStandingResponse(BaseModel):
    student_id: UUID
    amount_due: Decimal
    matched_any_amount: bool
    amount_paid: Decimal
    balance: Decimal
    status: PaymentStatus


class CollectionSummary(BaseModel):
    collection_id: UUID
    total_collected: Decimal
    total_target: Decimal
    remaining: Decimal
    paid_count: int
    unpaid_count: int
    credits_count: int
    debit_count: int


class PaymentDisplayItem(BaseModel):
    student_id: UUID
    student_name: str
    amount: Decimal
    timestamp: Optional[datetime] = None
    inline: str
    lines: str
