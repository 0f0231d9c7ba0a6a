"""Unit tests for field cloning, value-set linking and answer-set edits."""

from decimal import Decimal

from app.api.v1.custom_fields.cloner import (
    add_sub_field,
    clone_field,
    link_value_set,
    unlink_value_set,
    value_set_sub_field,
)
from app.api.v1.custom_fields.editor import (
    change_field_type,
    clear_inactive_answers,
    has_amount_fields,
    remove_field,
    remove_option,
    select_option,
    toggle_checkbox,
)
from app.api.v1.custom_fields.schemas import CustomField, FieldOption, ValueSetData
from app.api.v1.custom_fields.tree import FieldIndex, collect_field_ids, iter_fields
from app.core.enums import CustomFieldType


def _size_field() -> CustomField:
    color = CustomField(
        id="color",
        name="Color",
        type=CustomFieldType.OPTION,
        options=[
            FieldOption(id="red", value="Red", amount=Decimal("10")),
            FieldOption(id="blue", value="Blue", amount=Decimal("20")),
        ],
        subFields={"blue": [CustomField(id="shade", name="Shade", type=CustomFieldType.TEXT)]},
    )
    return CustomField(
        id="size",
        name="Size",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="large", value="Large"), FieldOption(id="medium", value="Medium")],
        subFields={"large": [color]},
    )


def _option_ids(field: CustomField) -> list:
    return [o.id for f in iter_fields([field]) for o in f.options or []]


def _strip_ids(field: CustomField) -> dict:
    data = field.model_dump(mode="json", exclude_none=True)

    def walk(node: dict) -> dict:
        node.pop("id", None)
        options = node.get("options") or []
        for o in options:
            o.pop("id", None)
        if "subFields" in node:
            node["subFields"] = [[walk(c) for c in children] for children in node["subFields"].values()]
        return node

    return walk(data)


def test_clone_has_no_id_collisions() -> None:
    source = _size_field()
    copy = clone_field(source)
    source_ids = set(collect_field_ids([source])) | set(_option_ids(source))
    copy_ids = set(collect_field_ids([copy])) | set(_option_ids(copy))
    assert source_ids.isdisjoint(copy_ids)


def test_clone_content_matches_except_ids() -> None:
    source = _size_field()
    copy = clone_field(source)
    assert _strip_ids(copy) == _strip_ids(source)


def test_clone_rewires_sub_fields_to_new_option_ids() -> None:
    copy = clone_field(_size_field())
    large = next(o for o in copy.options if o.value == "Large")
    assert list(copy.subFields) == [large.id]
    nested = copy.subFields[large.id][0]
    blue = next(o for o in nested.options if o.value == "Blue")
    assert list(nested.subFields) == [blue.id]


def test_clone_is_independent_of_source() -> None:
    source = _size_field()
    copy = clone_field(source)
    copy.options[0].value = "Changed"
    copy.subFields[copy.options[0].id][0].name = "Changed"
    assert source.options[0].value == "Large"
    assert source.subFields["large"][0].name == "Color"


def test_clone_drops_sub_fields_without_matching_option() -> None:
    field = CustomField(
        id="f",
        name="Size",
        type=CustomFieldType.OPTION,
        options=[FieldOption(id="o", value="Large")],
        subFields={"missing": [CustomField(id="x", name="X")]},
    )
    assert clone_field(field).subFields == {}


def test_link_value_set_copies_options() -> None:
    value_set = ValueSetData(
        id="vs1",
        name="Sizes",
        options=[FieldOption(id="s", value="S", amount=Decimal("5")), FieldOption(id="m", value="M")],
    )
    field = CustomField(id="f", name="Size", type=CustomFieldType.OPTION, options=[FieldOption(value="old")])
    linked = link_value_set(field, value_set)
    assert linked.is_linked
    assert linked.valueSetId == "vs1"
    assert [o.value for o in linked.options] == ["S", "M"]

    # later edits to the set do not reach the field
    value_set.options[0].value = "Small"
    assert linked.options[0].value == "S"
    assert not field.is_linked


def test_unlink_keeps_options() -> None:
    value_set = ValueSetData(id="vs1", name="Sizes", options=[FieldOption(value="S")])
    field = CustomField(id="f", name="Size", type=CustomFieldType.OPTION, options=[])
    unlinked = unlink_value_set(link_value_set(field, value_set))
    assert not unlinked.is_linked
    assert [o.value for o in unlinked.options] == ["S"]


def test_value_set_sub_field_is_linked_option_field() -> None:
    value_set = ValueSetData(id="vs1", name="Colors", options=[FieldOption(value="Red")])
    sub = value_set_sub_field(value_set)
    assert sub.type == CustomFieldType.OPTION
    assert sub.name == "Colors"
    assert sub.valueSetId == "vs1"


def test_add_sub_field_only_under_own_option() -> None:
    field = _size_field()
    child = CustomField(id="fit", name="Fit")
    updated = add_sub_field(field, "medium", child)
    assert [f.id for f in updated.subFields["medium"]] == ["fit"]
    assert "medium" not in (field.subFields or {})
    assert add_sub_field(field, "unknown", child) is field


def test_has_amount_fields_looks_into_sub_fields() -> None:
    assert has_amount_fields([_size_field()])
    plain = CustomField(id="t", name="Note")
    assert not has_amount_fields([plain])
    assert not has_amount_fields(None)


def test_select_option_clears_previous_branch() -> None:
    field = _size_field()
    answers = {"size": "Large", "color": "Blue", "shade": "dark"}
    updated = select_option(field, answers, "Medium")
    assert updated == {"size": "Medium"}


def test_toggle_checkbox_keeps_selection_order_and_clears_branch() -> None:
    field = CustomField(
        id="extras",
        name="Extras",
        type=CustomFieldType.CHECKBOX,
        options=[FieldOption(id="cap", value="Cap"), FieldOption(id="bag", value="Bag")],
        subFields={"cap": [CustomField(id="cap_color", name="Cap color")]},
    )
    answers = toggle_checkbox(field, {}, "Bag", True)
    answers = toggle_checkbox(field, answers, "Cap", True)
    answers["cap_color"] = "Black"
    assert answers["extras"] == "Bag, Cap"
    answers = toggle_checkbox(field, answers, "Cap", False)
    assert answers == {"extras": "Bag"}


def test_clear_inactive_answers() -> None:
    fields = [_size_field()]
    answers = {"size": "Medium", "color": "Red", "unknown": "kept"}
    assert clear_inactive_answers(fields, answers) == {"size": "Medium", "unknown": "kept"}


def test_remove_field_requires_confirmation_when_answered() -> None:
    fields = [_size_field()]
    answers = [{"size": "Large", "color": "Blue", "shade": "dark"}]
    asked = []

    def decline(field_id: str) -> bool:
        asked.append(field_id)
        return False

    assert remove_field(fields, "color", answers, decline) is None
    assert asked == ["color"]

    updated = remove_field(fields, "color", answers, lambda _fid: True)
    assert "color" not in FieldIndex(updated)
    assert updated[0].subFields is None


def test_remove_field_without_answers_skips_confirmation() -> None:
    fields = [_size_field()]

    def never(_fid: str) -> bool:
        raise AssertionError("confirmation should not be requested")

    updated = remove_field(fields, "shade", [{"size": "Medium"}], never)
    assert "shade" not in FieldIndex(updated)
    assert "color" in FieldIndex(updated)


def test_remove_option_requires_confirmation_when_selected() -> None:
    fields = [_size_field()]
    answers = [{"size": "Large"}]
    assert remove_option(fields, "size", "large", answers, lambda _oid: False) is None
    updated = remove_option(fields, "size", "large", answers, lambda _oid: True)
    assert [o.id for o in updated[0].options] == ["medium"]
    assert updated[0].subFields is None


def test_field_index_tracks_parents() -> None:
    index = FieldIndex([_size_field()])
    loc = index.get("shade")
    assert loc.parent_field_id == "color"
    assert loc.parent_option_id == "blue"
    assert loc.depth == 2
    assert index.ancestors("shade") == ["color", "size"]
    assert index.subtree_ids("color") == ["color", "shade"]


def test_change_field_type_to_text_strips_choices() -> None:
    text = change_field_type(_size_field(), CustomFieldType.TEXT)
    assert text.options is None and text.subFields is None
    choice = change_field_type(CustomField(id="n", name="Note"), CustomFieldType.CHECKBOX)
    assert len(choice.options) == 1
