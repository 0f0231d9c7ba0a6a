"""Custom-field schema types (camelCase keys, stored and exchanged in this exact shape)."""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_serializer

from app.core.enums import CustomFieldType
from app.core.exceptions import SchemaDecodeError

logger = logging.getLogger(__name__)

# Recorded answers: field id -> raw string (checkbox values joined with ", ")
AnswerSet = Dict[str, str]


def new_id() -> str:
    return str(uuid.uuid4())


def json_number(val: Optional[Decimal]) -> Optional[Union[int, float]]:
    """Render a Decimal as a plain JSON number (150, not "150" or 150.0)."""
    if val is None:
        return None
    if val == val.to_integral_value():
        return int(val)
    return float(val)


class FieldOption(BaseModel):
    """A single selectable choice. `value` is the label recorded in answers."""

    id: str = Field(default_factory=new_id)
    value: str = ""
    amount: Optional[Decimal] = Field(None, ge=0)

    @field_serializer("amount", when_used="json")
    def _amount_as_number(self, amount: Optional[Decimal]):
        return json_number(amount)


class CustomField(BaseModel):
    """One node of the conditional question tree.

    `subFields` maps an option id of this field to the fields that become
    active when that option is selected.
    """

    id: str = Field(default_factory=new_id)
    name: str = ""
    type: CustomFieldType = CustomFieldType.TEXT
    options: Optional[List[FieldOption]] = None
    subFields: Optional[Dict[str, List["CustomField"]]] = None
    valueSetId: Optional[str] = None

    @property
    def is_choice(self) -> bool:
        return self.type in (CustomFieldType.OPTION, CustomFieldType.CHECKBOX)

    @property
    def is_linked(self) -> bool:
        """Linked fields keep option values and amounts read-only in the editor."""
        return bool(self.valueSetId)

    def option_by_value(self, value: str) -> Optional[FieldOption]:
        for option in self.options or []:
            if option.value == value:
                return option
        return None


CustomField.model_rebuild()


class ValueSetData(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    options: List[FieldOption] = Field(default_factory=list)


class NormalizationReport(BaseModel):
    """What normalization discarded, so callers can tell a clean save from a lossy one."""

    dropped_field_ids: List[str] = Field(default_factory=list)
    dropped_option_ids: List[str] = Field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.dropped_field_ids and not self.dropped_option_ids


_fields_adapter = TypeAdapter(List[CustomField])


def dump_fields(fields: List[CustomField]) -> List[Dict[str, Any]]:
    return [f.model_dump(mode="json", exclude_none=True) for f in fields]


def ensure_unique_ids(fields: List[CustomField]) -> List[CustomField]:
    """Field ids must be unique across the whole forest. Raises SchemaDecodeError otherwise."""
    seen: set[str] = set()
    stack = list(fields)
    while stack:
        field = stack.pop()
        if field.id in seen:
            logger.warning("Rejected custom fields: duplicate id %s", field.id)
            raise SchemaDecodeError(f"Duplicate custom field id: {field.id}")
        seen.add(field.id)
        for sub_fields in (field.subFields or {}).values():
            stack.extend(sub_fields)
    return fields


def load_fields(raw: Optional[Any]) -> List[CustomField]:
    """Parse stored custom fields. Raises SchemaDecodeError on malformed data."""
    if raw is None:
        return []
    try:
        fields = _fields_adapter.validate_python(raw)
    except ValidationError as e:
        logger.warning("Rejected custom fields: %s", e)
        raise SchemaDecodeError(f"Malformed custom fields: {e.error_count()} validation error(s)") from e
    return ensure_unique_ids(fields)
