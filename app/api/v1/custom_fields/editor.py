"""Answer-set edits and destructive schema edits, as pure functions over the forest."""

from typing import Callable, Iterable, List, Optional

from app.core.enums import CustomFieldType

from .schemas import AnswerSet, CustomField, FieldOption
from .tree import FieldIndex, active_sub_fields, collect_field_ids, join_answer, selected_options, split_answer

# Called with the id of the field (or option) about to be removed; False aborts the edit.
ConfirmCallback = Callable[[str], bool]


def has_amount_fields(fields: Optional[List[CustomField]]) -> bool:
    """Whether any option anywhere in the forest carries an amount."""
    for field in fields or []:
        if not field.is_choice:
            continue
        if any(o.amount is not None for o in field.options or []):
            return True
        if any(has_amount_fields(children) for children in (field.subFields or {}).values()):
            return True
    return False


def strip_answers(answers: Optional[AnswerSet], field_ids: Iterable[str]) -> AnswerSet:
    drop = set(field_ids)
    return {k: v for k, v in (answers or {}).items() if k not in drop}


def _sub_field_ids(field: CustomField, option_id: str) -> List[str]:
    return collect_field_ids((field.subFields or {}).get(option_id))


def select_option(field: CustomField, answers: AnswerSet, value: str) -> AnswerSet:
    """Set a single-choice answer, clearing answers under the previously selected option."""
    result = dict(answers)
    previous = field.option_by_value(answers.get(field.id, ""))
    if previous is not None and previous.value != value:
        result = strip_answers(result, _sub_field_ids(field, previous.id))
    result[field.id] = value
    return result


def toggle_checkbox(field: CustomField, answers: AnswerSet, value: str, checked: bool) -> AnswerSet:
    """Add or remove one checkbox selection. Unchecking clears that option's sub-field answers."""
    current = split_answer(answers.get(field.id))
    result = dict(answers)
    if checked:
        if value not in current:
            current.append(value)
    else:
        current = [v for v in current if v != value]
        option = field.option_by_value(value)
        if option is not None:
            result = strip_answers(result, _sub_field_ids(field, option.id))
    result[field.id] = join_answer(current)
    return result


def _active_ids(fields: List[CustomField], answers: AnswerSet, out: set) -> None:
    for field in fields:
        out.add(field.id)
        for _value, option in selected_options(field, answers):
            _active_ids(active_sub_fields(field, option), answers, out)


def clear_inactive_answers(fields: List[CustomField], answers: AnswerSet) -> AnswerSet:
    """
    Drop answers of sub-fields whose owning option is not selected.
    Answers for ids the schema does not know at all are left alone.
    """
    known = set(collect_field_ids(fields))
    active: set = set()
    _active_ids(fields, answers, active)
    return {k: v for k, v in answers.items() if k in active or k not in known}


def _has_answers(field_ids: List[str], answer_sets: Iterable[AnswerSet]) -> bool:
    for answers in answer_sets:
        for field_id in field_ids:
            if (answers or {}).get(field_id, "").strip():
                return True
    return False


def _without_field(fields: List[CustomField], field_id: str) -> List[CustomField]:
    result = []
    for field in fields:
        if field.id == field_id:
            continue
        if field.subFields:
            sub_fields = {}
            for option_id, children in field.subFields.items():
                remaining = _without_field(children, field_id)
                if remaining:
                    sub_fields[option_id] = remaining
            field = field.model_copy(update={"subFields": sub_fields or None})
        result.append(field)
    return result


def remove_field(
    fields: List[CustomField],
    field_id: str,
    answer_sets: Iterable[AnswerSet],
    confirm: ConfirmCallback,
) -> Optional[List[CustomField]]:
    """
    Remove a field at any depth. If it or anything under it has recorded
    answers, `confirm` must approve; a declined edit returns None.
    """
    index = FieldIndex(fields)
    if field_id not in index:
        return list(fields)
    if _has_answers(index.subtree_ids(field_id), list(answer_sets)) and not confirm(field_id):
        return None
    return _without_field(fields, field_id)


def replace_field(fields: List[CustomField], updated: CustomField) -> List[CustomField]:
    """Swap in a new version of the field with the same id, wherever it sits."""
    result = []
    for field in fields:
        if field.id == updated.id:
            result.append(updated)
            continue
        if field.subFields:
            field = field.model_copy(
                update={
                    "subFields": {
                        option_id: replace_field(children, updated)
                        for option_id, children in field.subFields.items()
                    }
                }
            )
        result.append(field)
    return result


def remove_option(
    fields: List[CustomField],
    field_id: str,
    option_id: str,
    answer_sets: Iterable[AnswerSet],
    confirm: ConfirmCallback,
) -> Optional[List[CustomField]]:
    """
    Remove one option of a choice field together with its sub-fields. Needs
    confirmation when any answer selected it or answered one of its sub-fields.
    """
    loc = FieldIndex(fields).get(field_id)
    if loc is None:
        return list(fields)
    field = loc.field
    option = next((o for o in field.options or [] if o.id == option_id), None)
    if option is None:
        return list(fields)

    answer_sets = list(answer_sets)
    selected = any(option.value in split_answer((a or {}).get(field.id)) for a in answer_sets)
    if (selected or _has_answers(_sub_field_ids(field, option_id), answer_sets)) and not confirm(option_id):
        return None

    sub_fields = {k: v for k, v in (field.subFields or {}).items() if k != option_id}
    updated = field.model_copy(
        update={
            "options": [o for o in field.options or [] if o.id != option_id],
            "subFields": sub_fields or None,
        }
    )
    return replace_field(fields, updated)


def change_field_type(field: CustomField, new_type: CustomFieldType) -> CustomField:
    """Switching to text discards options, sub-fields and any value-set link."""
    if new_type == CustomFieldType.TEXT:
        return CustomField(id=field.id, name=field.name, type=new_type)
    options = field.options if field.options is not None else [FieldOption()]
    return field.model_copy(update={"type": new_type, "options": options})
