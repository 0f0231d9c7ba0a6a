"""Unit tests for amount-due valuation."""

from decimal import Decimal

from app.api.v1.collections.summary import student_standing, summarize
from app.api.v1.custom_fields.breakdown import format_answers_inline
from app.api.v1.custom_fields.normalizer import normalize
from app.api.v1.custom_fields.resolver import AmountResolution, resolve_amount, resolve_amount_due
from app.api.v1.custom_fields.schemas import CustomField, FieldOption
from app.core.enums import CustomFieldType, PaymentStatus


def _shirt() -> CustomField:
    return CustomField(
        id="shirt",
        name="Shirt",
        type=CustomFieldType.CHECKBOX,
        options=[
            FieldOption(id="small", value="Small", amount=Decimal("150")),
            FieldOption(id="large", value="Large", amount=Decimal("180")),
        ],
    )


def _size_with_color() -> CustomField:
    color = CustomField(
        id="color",
        name="Color",
        type=CustomFieldType.OPTION,
        options=[
            FieldOption(id="red", value="Red", amount=Decimal("10")),
            FieldOption(id="blue", value="Blue", amount=Decimal("20")),
        ],
    )
    return CustomField(
        id="size",
        name="Size",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="large", value="Large"), FieldOption(id="small", value="Small")],
        subFields={"large": [color]},
    )


def test_no_custom_fields_uses_target_amount() -> None:
    for answers in ({}, {"anything": "Large"}, None):
        assert resolve_amount_due([], answers, Decimal("100")) == Decimal("100")


def test_missing_target_amount_falls_back_to_zero() -> None:
    assert resolve_amount_due([], {}, None) == Decimal("0")


def test_checkbox_selections_sum_and_override_target() -> None:
    answers = {"shirt": "Small, Large"}
    assert resolve_amount_due([_shirt()], answers, Decimal("999")) == Decimal("330")
    assert resolve_amount_due([_shirt()], answers, None) == Decimal("330")


def test_unpriced_option_drills_into_sub_fields() -> None:
    answers = {"size": "Large", "color": "Blue"}
    assert resolve_amount_due([_size_with_color()], answers, Decimal("50")) == Decimal("20")


def test_sub_field_answers_ignored_when_owner_not_selected() -> None:
    answers = {"size": "Small", "color": "Blue"}
    result = resolve_amount([_size_with_color()], answers)
    assert result == AmountResolution(False, Decimal("0"))
    assert resolve_amount_due([_size_with_color()], answers, Decimal("50")) == Decimal("50")


def test_deleted_option_falls_back_but_still_displays() -> None:
    fields = [_size_with_color()]
    answers = {"size": "Medium"}
    assert resolve_amount_due(fields, answers, Decimal("75")) == Decimal("75")
    assert format_answers_inline(fields, answers) == "Size: Medium"


def test_zero_priced_option_suppresses_fallback() -> None:
    field = CustomField(
        id="ticket",
        name="Ticket",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="free", value="Free", amount=Decimal("0"))],
    )
    assert resolve_amount_due([field], {"ticket": "Free"}, Decimal("100")) == Decimal("0")


def test_amounts_across_fields_and_branches_add_up() -> None:
    fields = [_shirt(), _size_with_color()]
    answers = {"shirt": "Large", "size": "Large", "color": "Red"}
    result = resolve_amount(fields, answers)
    assert result.matched_any_amount
    assert result.total == Decimal("190")


def test_fields_missing_from_schema_are_ignored() -> None:
    answers = {"ghost": "Small", "shirt": "Small"}
    assert resolve_amount_due([_shirt()], answers, None) == Decimal("150")


def test_text_fields_never_carry_amounts() -> None:
    field = CustomField(id="note", name="Note", type=CustomFieldType.TEXT)
    assert resolve_amount_due([field], {"note": "150"}, Decimal("10")) == Decimal("10")


def test_field_emptied_by_normalization_is_ignored() -> None:
    emptied = _shirt().model_copy(
        update={"options": [FieldOption(id="small", value=" "), FieldOption(id="large", value="")]}
    )
    fields = normalize([emptied])
    assert fields == []
    assert resolve_amount_due(fields, {"shirt": "Small"}, Decimal("100")) == Decimal("100")


def test_resolution_is_deterministic() -> None:
    fields = [_shirt(), _size_with_color()]
    answers = {"shirt": "Small, Large", "size": "Large", "color": "Blue"}
    assert resolve_amount(fields, answers) == resolve_amount(fields, answers)


def test_student_standing_and_summary() -> None:
    fields = [_shirt()]
    paid_exact = student_standing(fields, None, "a", Decimal("150"), {"shirt": "Small"})
    partial = student_standing(fields, None, "b", Decimal("100"), {"shirt": "Large"})
    over = student_standing([], Decimal("50"), "c", Decimal("80"), None)
    absent = student_standing([], Decimal("50"), "d")

    assert paid_exact.status == PaymentStatus.PAID
    assert partial.status == PaymentStatus.DEBIT
    assert partial.balance == Decimal("-80")
    assert over.status == PaymentStatus.CREDIT
    assert absent.status == PaymentStatus.UNPAID

    totals = summarize([paid_exact, partial, over, absent])
    assert totals["total_collected"] == Decimal("330")
    assert totals["total_target"] == Decimal("430")
    assert totals["remaining"] == Decimal("100")
    assert totals["paid_count"] == 3
    assert totals["unpaid_count"] == 1
    assert totals["credits_count"] == 1
    assert totals["debit_count"] == 1


def test_fallback_rule_shared_by_resolution_and_standing() -> None:
    assert AmountResolution().due(Decimal("75")) == Decimal("75")
    assert AmountResolution().due(None) == Decimal("0")
    assert AmountResolution(True, Decimal("0")).due(Decimal("75")) == Decimal("0")

    fields = [_shirt()]
    unmatched = student_standing(fields, Decimal("75"), "a", None, {"shirt": "Medium"})
    matched = student_standing(fields, Decimal("75"), "b", None, {"shirt": "Small"})
    assert unmatched.amount_due == resolve_amount_due(fields, {"shirt": "Medium"}, Decimal("75")) == Decimal("75")
    assert unmatched.matched_any_amount is False
    assert matched.amount_due == Decimal("150")
    assert matched.matched_any_amount is True
