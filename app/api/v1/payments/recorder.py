"""
Payment recorder: decides what happens to a (student, collection) payment
row given a candidate amount and answer set.

- amount > 0 or any non-blank answer: the payment exists afterwards
  (created if absent, overwritten otherwise)
- otherwise: the payment must not exist (removed if present)

A history entry is raised only when the stored amount changes: a new payment
with a non-zero amount, an update to a different amount, or a removal. Editing
only the answers leaves the history untouched.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Optional

from app.core.enums import HistoryEntryType, PaymentOutcome


@dataclass(frozen=True)
class PaymentDecision:
    outcome: PaymentOutcome
    amount: Decimal
    answers: Dict[str, str] = field(default_factory=dict)
    previous_amount: Optional[Decimal] = None
    history_type: Optional[HistoryEntryType] = None

    @property
    def keeps_payment(self) -> bool:
        return self.outcome in (PaymentOutcome.CREATED, PaymentOutcome.UPDATED)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def clean_answers(answers: Optional[Dict[str, str]]) -> Dict[str, str]:
    return {k: str(v).strip() for k, v in (answers or {}).items() if v is not None}


def has_recorded_answers(answers: Optional[Dict[str, str]]) -> bool:
    return any(v and v.strip() for v in (answers or {}).values())


def decide_payment(
    existing_amount: Optional[Decimal],
    amount,
    answers: Optional[Dict[str, str]],
) -> PaymentDecision:
    """`existing_amount` is None when the student has no payment row yet."""
    amount = _to_decimal(amount)
    if amount < 0:
        amount = Decimal("0")
    answers = clean_answers(answers)

    if amount > 0 or has_recorded_answers(answers):
        if existing_amount is None:
            return PaymentDecision(
                outcome=PaymentOutcome.CREATED,
                amount=amount,
                answers=answers,
                history_type=HistoryEntryType.PAYMENT_ADD if amount != 0 else None,
            )
        previous = _to_decimal(existing_amount)
        return PaymentDecision(
            outcome=PaymentOutcome.UPDATED,
            amount=amount,
            answers=answers,
            previous_amount=previous,
            history_type=HistoryEntryType.PAYMENT_UPDATE if amount != previous else None,
        )

    if existing_amount is None:
        return PaymentDecision(outcome=PaymentOutcome.UNCHANGED_ABSENT, amount=amount)
    return PaymentDecision(
        outcome=PaymentOutcome.REMOVED,
        amount=amount,
        previous_amount=_to_decimal(existing_amount),
        history_type=HistoryEntryType.PAYMENT_REMOVE,
    )
