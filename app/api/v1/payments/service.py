"""Payments service: applies payment recorder decisions and appends history entries."""

import logging
from decimal import Decimal
from typing import Dict, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.collections.service import get_collection_model, included_students
from app.api.v1.custom_fields.editor import clear_inactive_answers, has_amount_fields
from app.api.v1.custom_fields.schemas import load_fields
from app.api.v1.students.service import get_student
from app.core.exceptions import ServiceError
from app.core.models import Collection, Payment

from .ledger import apply_decision
from .recorder import clean_answers, decide_payment
from .schemas import BulkPaymentResponse, PaymentResponse, PaymentSave, RecordPaymentResponse

logger = logging.getLogger(__name__)


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _to_response(p: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=_to_uuid(p.id),
        collection_id=_to_uuid(p.collection_id),
        student_id=_to_uuid(p.student_id),
        amount=_to_decimal(p.amount),
        custom_field_values=p.custom_field_values,
        timestamp=p.timestamp,
    )


def _payments_by_student(c: Collection) -> Dict[UUID, Payment]:
    return {_to_uuid(p.student_id): p for p in c.payments}


async def record_payment(
    db: AsyncSession,
    collection_id: UUID,
    student_id: UUID,
    payload: PaymentSave,
) -> Optional[RecordPaymentResponse]:
    """Create, overwrite or remove the student's payment for the collection."""
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    student = await get_student(db, student_id)
    if not student:
        raise ServiceError("Invalid student", status.HTTP_400_BAD_REQUEST)
    if c.included_student_ids is not None and str(student_id) not in c.included_student_ids:
        raise ServiceError("Student is not included in this collection", status.HTTP_400_BAD_REQUEST)

    answers = clear_inactive_answers(load_fields(c.custom_fields), clean_answers(payload.custom_field_values))
    existing = _payments_by_student(c).get(student_id)
    decision = decide_payment(
        _to_decimal(existing.amount) if existing else None,
        payload.amount,
        answers,
    )
    payment = await apply_decision(db, c, student, existing, decision)
    await db.commit()
    if payment is not None:
        await db.refresh(payment)
    logger.info(
        "Payment %s for student %s in collection %s (amount=%s)",
        decision.outcome.value, student_id, collection_id, decision.amount,
    )
    return RecordPaymentResponse(
        outcome=decision.outcome,
        payment=_to_response(payment) if payment is not None else None,
        history_type=decision.history_type,
    )


async def mark_all_paid(db: AsyncSession, collection_id: UUID) -> Optional[BulkPaymentResponse]:
    """Record the flat target amount for every included student. Recorded answers are kept."""
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    if not c.target_amount or has_amount_fields(load_fields(c.custom_fields)):
        raise ServiceError(
            "Mark all paid needs a target amount and no amount-based fields",
            status.HTTP_400_BAD_REQUEST,
        )
    payments = _payments_by_student(c)
    affected = 0
    for student in await included_students(db, c):
        existing = payments.get(_to_uuid(student.id))
        decision = decide_payment(
            _to_decimal(existing.amount) if existing else None,
            c.target_amount,
            existing.custom_field_values if existing else None,
        )
        await apply_decision(db, c, student, existing, decision)
        affected += 1
    await db.commit()
    logger.info("Marked %d student(s) paid in collection %s", affected, collection_id)
    return BulkPaymentResponse(collection_id=collection_id, affected=affected)


async def mark_all_unpaid(db: AsyncSession, collection_id: UUID) -> Optional[BulkPaymentResponse]:
    """Remove the payment of every included student, answers included."""
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    payments = _payments_by_student(c)
    affected = 0
    for student in await included_students(db, c):
        existing = payments.get(_to_uuid(student.id))
        if existing is None:
            continue
        decision = decide_payment(_to_decimal(existing.amount), Decimal("0"), None)
        await apply_decision(db, c, student, existing, decision)
        affected += 1
    await db.commit()
    logger.info("Marked %d student(s) unpaid in collection %s", affected, collection_id)
    return BulkPaymentResponse(collection_id=collection_id, affected=affected)
