"""Traversal helpers over a custom-field forest, shared by the engine modules."""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from .schemas import AnswerSet, CustomField, FieldOption

CHOICE_SEPARATOR = ", "


def split_answer(raw: Optional[str]) -> List[str]:
    """Selected values of a choice answer, in selection order. Empty or absent -> []."""
    if not raw:
        return []
    return [v for v in raw.split(CHOICE_SEPARATOR) if v]


def join_answer(values: List[str]) -> str:
    return CHOICE_SEPARATOR.join(values)


def iter_fields(fields: List[CustomField]) -> Iterator[CustomField]:
    """Every field in the forest, depth-first, parents before children."""
    for field in fields:
        yield field
        for sub_fields in (field.subFields or {}).values():
            yield from iter_fields(sub_fields)


def collect_field_ids(fields: Optional[List[CustomField]]) -> List[str]:
    return [f.id for f in iter_fields(fields or [])]


def selected_options(
    field: CustomField, answers: AnswerSet
) -> List[Tuple[str, Optional[FieldOption]]]:
    """(recorded value, matching option or None) for each selection of a choice field."""
    if not field.is_choice:
        return []
    return [(value, field.option_by_value(value)) for value in split_answer(answers.get(field.id))]


def active_sub_fields(field: CustomField, option: Optional[FieldOption]) -> List[CustomField]:
    if option is None or not field.subFields:
        return []
    return field.subFields.get(option.id) or []


@dataclass(frozen=True)
class FieldLocation:
    field: CustomField
    parent_field_id: Optional[str] = None
    parent_option_id: Optional[str] = None
    depth: int = 0


class FieldIndex:
    """Flat id -> location view of a forest, for addressing nodes by their stable id."""

    def __init__(self, fields: List[CustomField]) -> None:
        self._locations: Dict[str, FieldLocation] = {}
        self._add(fields, None, None, 0)

    def _add(
        self,
        fields: List[CustomField],
        parent_field_id: Optional[str],
        parent_option_id: Optional[str],
        depth: int,
    ) -> None:
        for field in fields:
            self._locations[field.id] = FieldLocation(field, parent_field_id, parent_option_id, depth)
            for option_id, sub_fields in (field.subFields or {}).items():
                self._add(sub_fields, field.id, option_id, depth + 1)

    def __contains__(self, field_id: str) -> bool:
        return field_id in self._locations

    def __len__(self) -> int:
        return len(self._locations)

    def get(self, field_id: str) -> Optional[FieldLocation]:
        return self._locations.get(field_id)

    def ancestors(self, field_id: str) -> List[str]:
        """Ids of enclosing fields, nearest first."""
        result: List[str] = []
        loc = self._locations.get(field_id)
        while loc is not None and loc.parent_field_id is not None:
            result.append(loc.parent_field_id)
            loc = self._locations.get(loc.parent_field_id)
        return result

    def subtree_ids(self, field_id: str) -> List[str]:
        loc = self._locations.get(field_id)
        if loc is None:
            return []
        return collect_field_ids([loc.field])
