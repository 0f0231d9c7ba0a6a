"""Applies a payment decision to the database together with its history entry."""

from datetime import datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.history.service import append_history_entry
from app.core.enums import PaymentOutcome
from app.core.models import Collection, Payment, Student

from .recorder import PaymentDecision


async def apply_decision(
    db: AsyncSession,
    c: Collection,
    student: Student,
    existing: Optional[Payment],
    decision: PaymentDecision,
) -> Optional[Payment]:
    """Write the decided state and its history entry. Caller must commit."""
    payment = existing
    if decision.outcome == PaymentOutcome.CREATED:
        payment = Payment(
            collection_id=c.id,
            student_id=student.id,
            amount=decision.amount,
            custom_field_values=decision.answers,
            timestamp=datetime.utcnow(),
        )
        db.add(payment)
    elif decision.outcome == PaymentOutcome.UPDATED:
        payment.amount = decision.amount
        payment.custom_field_values = decision.answers
        payment.timestamp = datetime.utcnow()
    elif decision.outcome == PaymentOutcome.REMOVED:
        await db.delete(existing)
        payment = None

    if decision.history_type is not None:
        await append_history_entry(
            db,
            decision.history_type,
            student,
            c,
            amount=None if decision.outcome == PaymentOutcome.REMOVED else decision.amount,
            previous_amount=decision.previous_amount,
        )
    return payment
