"""Read-only projections of recorded answers: display strings and cohort breakdowns."""

from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from app.core.enums import CustomFieldType

from .schemas import AnswerSet, CustomField
from .tree import active_sub_fields, iter_fields, selected_options, split_answer

INLINE_SEPARATOR = " • "
NESTED_SEPARATOR = " - "
BRANCH_MARKER = "↳ "


class FieldBreakdown(BaseModel):
    field_id: str
    field_name: str
    counts: Dict[str, int] = Field(default_factory=dict)


def _recorded(answers: AnswerSet, field: CustomField) -> Optional[str]:
    value = answers.get(field.id)
    if not value or not value.strip():
        return None
    return value


def _inline_part(field: CustomField, answers: AnswerSet) -> Optional[str]:
    value = _recorded(answers, field)
    if value is None:
        return None
    part = f"{field.name}: {value}"
    if field.is_choice and field.subFields:
        chosen = set(split_answer(value))
        sub_parts = []
        for option in field.options or []:
            if option.value not in chosen:
                continue
            for sub_field in active_sub_fields(field, option):
                sub_part = _inline_part(sub_field, answers)
                if sub_part:
                    sub_parts.append(sub_part)
        if sub_parts:
            part += NESTED_SEPARATOR + NESTED_SEPARATOR.join(sub_parts)
    return part


def format_answers_inline(fields: Optional[List[CustomField]], answers: Optional[AnswerSet]) -> str:
    """Compact one-line form, e.g. "Size: Large - Color: Blue • Name: Ana"."""
    answers = answers or {}
    parts = [_inline_part(f, answers) for f in fields or []]
    return INLINE_SEPARATOR.join(p for p in parts if p)


def _lines(fields: List[CustomField], answers: AnswerSet, indent: str, step: str) -> List[str]:
    lines: List[str] = []
    for field in fields:
        value = _recorded(answers, field)
        if value is None:
            continue
        lines.append(f"{indent}{field.name}: {value}")
        if not field.is_choice or not field.subFields:
            continue
        for selected_value, option in selected_options(field, answers):
            sub_fields = active_sub_fields(field, option)
            if not sub_fields:
                continue
            if field.type == CustomFieldType.CHECKBOX:
                lines.append(f"{indent}{step}{BRANCH_MARKER}{selected_value}")
                lines.extend(_lines(sub_fields, answers, indent + step * 2, step))
            else:
                lines.extend(_lines(sub_fields, answers, indent + step, step))
    return lines


def format_answers_lines(
    fields: Optional[List[CustomField]],
    answers: Optional[AnswerSet],
    indent: str = "  ",
) -> str:
    """Indented multi-line form for detail views. Checkbox branches get a marker line per selected option."""
    return "\n".join(_lines(fields or [], answers or {}, indent, indent or "  "))


def _count(
    fields: List[CustomField],
    answers: AnswerSet,
    breakdown: Dict[str, FieldBreakdown],
    seen: set,
) -> None:
    for field in fields:
        if not field.is_choice:
            continue
        for value, option in selected_options(field, answers):
            if (field.id, value) not in seen:
                seen.add((field.id, value))
                counts = breakdown[field.id].counts
                counts[value] = counts.get(value, 0) + 1
            _count(active_sub_fields(field, option), answers, breakdown, seen)


def aggregate_breakdown(
    fields: Optional[List[CustomField]],
    answer_sets: Iterable[Optional[AnswerSet]],
) -> List[FieldBreakdown]:
    """
    For every choice field, how many payments selected each value. A value
    counts once per payment; values no longer in the schema are still counted.
    Fields nobody answered are omitted. Order follows the schema.
    """
    fields = fields or []
    breakdown = {
        f.id: FieldBreakdown(field_id=f.id, field_name=f.name)
        for f in iter_fields(fields)
        if f.is_choice
    }
    for answers in answer_sets:
        if answers:
            _count(fields, answers, breakdown, set())
    return [b for b in breakdown.values() if b.counts]
