"""Unit tests for answer display strings and cohort breakdowns."""

from decimal import Decimal

from app.api.v1.custom_fields.breakdown import aggregate_breakdown, format_answers_inline, format_answers_lines
from app.api.v1.custom_fields.schemas import CustomField, FieldOption
from app.core.enums import CustomFieldType


def _fields() -> list:
    color = CustomField(
        id="color",
        name="Color",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="red", value="Red"), FieldOption(id="blue", value="Blue")],
    )
    size = CustomField(
        id="size",
        name="Size",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="large", value="Large", amount=Decimal("100")), FieldOption(id="small", value="Small")],
        subFields={"large": [color]},
    )
    extras = CustomField(
        id="extras",
        name="Extras",
        type=CustomFieldType.CHECKBOX,
        options=[FieldOption(id="cap", value="Cap"), FieldOption(id="bag", value="Bag")],
        subFields={"cap": [CustomField(id="cap_label", name="Cap label")]},
    )
    note = CustomField(id="note", name="Note", type=CustomFieldType.TEXT)
    return [size, extras, note]


def test_inline_nests_sub_fields_of_selected_options() -> None:
    answers = {"size": "Large", "color": "Blue", "note": "Pick up Friday"}
    assert format_answers_inline(_fields(), answers) == "Size: Large - Color: Blue • Note: Pick up Friday"


def test_inline_skips_empty_and_inactive_answers() -> None:
    answers = {"size": "Small", "color": "Blue", "note": "   ", "extras": ""}
    assert format_answers_inline(_fields(), answers) == "Size: Small"
    assert format_answers_inline(_fields(), {}) == ""
    assert format_answers_inline(_fields(), None) == ""


def test_deleted_field_renders_nothing() -> None:
    assert format_answers_inline(_fields(), {"removed-field": "Large"}) == ""


def test_lines_indent_nested_answers() -> None:
    answers = {"size": "Large", "color": "Red", "extras": "Bag, Cap", "cap_label": "ANA"}
    expected = "\n".join(
        [
            "  Size: Large",
            "    Color: Red",
            "  Extras: Bag, Cap",
            "    ↳ Cap",
            "      Cap label: ANA",
        ]
    )
    assert format_answers_lines(_fields(), answers) == expected


def test_breakdown_counts_values_once_per_payment() -> None:
    answer_sets = [
        {"size": "Large", "color": "Red", "extras": "Cap, Cap"},
        {"size": "Large", "color": "Blue", "extras": "Bag"},
        {"size": "Small", "color": "Blue"},
        {"size": "Medium"},
        None,
    ]
    result = {b.field_id: b for b in aggregate_breakdown(_fields(), answer_sets)}
    assert result["size"].counts == {"Large": 2, "Small": 1, "Medium": 1}
    assert result["color"].counts == {"Red": 1, "Blue": 1}
    assert result["extras"].counts == {"Cap": 1, "Bag": 1}
    assert result["size"].field_name == "Size"
    assert "note" not in result
    assert [b.field_id for b in aggregate_breakdown(_fields(), answer_sets)] == ["size", "color", "extras"]


def test_breakdown_empty_population() -> None:
    assert aggregate_breakdown(_fields(), []) == []
