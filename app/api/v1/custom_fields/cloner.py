"""Field duplication and value-set linking."""

from typing import Dict, List

from app.core.enums import CustomFieldType

from .schemas import CustomField, FieldOption, ValueSetData, new_id


def _copy_options(options: List[FieldOption]) -> List[FieldOption]:
    return [FieldOption(id=o.id, value=o.value, amount=o.amount) for o in options]


def clone_field(field: CustomField) -> CustomField:
    """
    Deep copy of a field subtree with fresh ids for every field and option.
    Sub-field lists are rekeyed through the old -> new option id map; a key
    with no matching option is dropped.
    """
    option_ids: Dict[str, str] = {}
    options = None
    if field.options is not None:
        options = []
        for option in field.options:
            option_ids[option.id] = new_id()
            options.append(FieldOption(id=option_ids[option.id], value=option.value, amount=option.amount))

    sub_fields = None
    if field.subFields is not None:
        sub_fields = {}
        for old_option_id, children in field.subFields.items():
            new_option_id = option_ids.get(old_option_id)
            if new_option_id:
                sub_fields[new_option_id] = [clone_field(child) for child in children]

    return CustomField(
        id=new_id(),
        name=field.name,
        type=field.type,
        options=options,
        subFields=sub_fields,
        valueSetId=field.valueSetId,
    )


def link_value_set(field: CustomField, value_set: ValueSetData) -> CustomField:
    """Snapshot the set's current options into the field. Later edits to the set do not propagate."""
    return field.model_copy(
        update={
            "options": _copy_options(value_set.options),
            "valueSetId": value_set.id,
        }
    )


def unlink_value_set(field: CustomField) -> CustomField:
    return field.model_copy(update={"valueSetId": None})


def value_set_sub_field(value_set: ValueSetData) -> CustomField:
    """A new single-choice field named after the set and linked to it."""
    return CustomField(
        name=value_set.name,
        type=CustomFieldType.OPTION,
        options=_copy_options(value_set.options),
        valueSetId=value_set.id,
    )


def add_sub_field(field: CustomField, option_id: str, sub_field: CustomField) -> CustomField:
    """Attach a dependent field under one of the field's options."""
    if not any(o.id == option_id for o in field.options or []):
        return field
    sub_fields = dict(field.subFields or {})
    sub_fields[option_id] = [*sub_fields.get(option_id, []), sub_field]
    return field.model_copy(update={"subFields": sub_fields})
