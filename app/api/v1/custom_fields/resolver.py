"""
Valuation: turn a recorded answer set plus the schema into the amount a student owes.

The walk is schema-driven. Only choice fields carry amounts; every selected
option that carries an amount adds to the total, and the sub-fields of every
selected option are walked whether or not the option itself was priced.
Selections that no longer match an option (renamed or deleted since the answer
was recorded) are ignored here; the display path still shows them.

The collection's flat target amount is a global fallback, used only when no
priced option was selected anywhere in the tree.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional

from .schemas import AnswerSet, CustomField
from .tree import active_sub_fields, selected_options


@dataclass(frozen=True)
class AmountResolution:
    matched_any_amount: bool = False
    total: Decimal = Decimal("0")

    def __add__(self, other: "AmountResolution") -> "AmountResolution":
        return AmountResolution(
            matched_any_amount=self.matched_any_amount or other.matched_any_amount,
            total=self.total + other.total,
        )

    def due(self, target_amount=None) -> Decimal:
        """The priced total, or the flat target amount when nothing priced was selected."""
        if self.matched_any_amount:
            return self.total
        return _to_decimal(target_amount)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def resolve_amount(fields: Optional[List[CustomField]], answers: Optional[AnswerSet]) -> AmountResolution:
    """Sum of amounts of every selected priced option, and whether there was any."""
    answers = answers or {}
    result = AmountResolution()
    for field in fields or []:
        for _value, option in selected_options(field, answers):
            if option is None:
                continue
            if option.amount is not None:
                result = result + AmountResolution(True, _to_decimal(option.amount))
            result = result + resolve_amount(active_sub_fields(field, option), answers)
    return result


def resolve_amount_due(
    fields: Optional[List[CustomField]],
    answers: Optional[AnswerSet],
    target_amount=None,
) -> Decimal:
    """Amount owed: the priced-selection total, or the flat target amount if nothing priced was chosen."""
    return resolve_amount(fields, answers).due(target_amount)
