"""Per-student standing and collection totals, derived from amounts due."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from app.api.v1.custom_fields.resolver import resolve_amount
from app.api.v1.custom_fields.schemas import AnswerSet, CustomField
from app.core.enums import PaymentStatus


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


@dataclass(frozen=True)
class StudentStanding:
    student_id: str
    amount_due: Decimal
    matched_any_amount: bool
    amount_paid: Decimal
    has_payment: bool

    @property
    def balance(self) -> Decimal:
        return self.amount_paid - self.amount_due

    @property
    def is_paid(self) -> bool:
        return self.has_payment and self.amount_paid > 0

    @property
    def has_credit(self) -> bool:
        return self.amount_due > 0 and self.amount_paid > self.amount_due

    @property
    def has_debit(self) -> bool:
        return self.amount_due > 0 and self.is_paid and self.amount_paid < self.amount_due

    @property
    def status(self) -> PaymentStatus:
        if self.has_credit:
            return PaymentStatus.CREDIT
        if self.has_debit:
            return PaymentStatus.DEBIT
        if self.is_paid:
            return PaymentStatus.PAID
        return PaymentStatus.UNPAID


def student_standing(
    fields: Optional[List[CustomField]],
    target_amount,
    student_id: str,
    amount_paid=None,
    answers: Optional[AnswerSet] = None,
) -> StudentStanding:
    """`amount_paid` is None when the student has no payment row."""
    resolution = resolve_amount(fields, answers)
    amount_due = resolution.due(target_amount)
    return StudentStanding(
        student_id=student_id,
        amount_due=amount_due,
        matched_any_amount=resolution.matched_any_amount,
        amount_paid=_to_decimal(amount_paid),
        has_payment=amount_paid is not None,
    )


def summarize(standings: Iterable[StudentStanding]) -> Dict[str, object]:
    standings = list(standings)
    total_collected = sum((s.amount_paid for s in standings), Decimal("0"))
    total_target = sum((s.amount_due for s in standings), Decimal("0"))
    paid = sum(1 for s in standings if s.is_paid)
    return {
        "total_collected": total_collected,
        "total_target": total_target,
        "remaining": max(Decimal("0"), total_target - total_collected),
        "paid_count": paid,
        "unpaid_count": len(standings) - paid,
        "credits_count": sum(1 for s in standings if s.has_credit),
        "debit_count": sum(1 for s in standings if s.has_debit),
    }
