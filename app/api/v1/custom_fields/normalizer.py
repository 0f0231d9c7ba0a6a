"""
Pre-save validation of a custom-field forest.

Invalid nodes are dropped rather than rejected:
- fields whose trimmed name is empty (with everything nested under them)
- options whose trimmed value is empty
- choice fields left with no options
- sub-field lists that end up empty, or that hang off an option no longer present
Text fields lose any stray options, sub-fields and value-set link.
Ids are never regenerated, so normalize(normalize(x)) == normalize(x).
"""

import logging
from typing import List, Optional, Tuple

from .schemas import CustomField, FieldOption, NormalizationReport
from .tree import collect_field_ids

logger = logging.getLogger(__name__)


def _drop_subtree(field: CustomField, report: NormalizationReport) -> None:
    report.dropped_field_ids.extend(collect_field_ids([field]))


def normalize_options(
    options_in: Optional[List[FieldOption]], report: Optional[NormalizationReport] = None
) -> List[FieldOption]:
    """Trimmed copies of the options, without the ones left empty."""
    options: List[FieldOption] = []
    for option in options_in or []:
        value = option.value.strip()
        if not value:
            if report is not None:
                report.dropped_option_ids.append(option.id)
            continue
        options.append(FieldOption(id=option.id, value=value, amount=option.amount))
    return options


def _normalize_field(field: CustomField, report: NormalizationReport) -> Optional[CustomField]:
    name = field.name.strip()
    if not name:
        _drop_subtree(field, report)
        return None

    if not field.is_choice:
        report.dropped_option_ids.extend(o.id for o in field.options or [])
        for children in (field.subFields or {}).values():
            report.dropped_field_ids.extend(collect_field_ids(children))
        return CustomField(id=field.id, name=name, type=field.type)

    options = normalize_options(field.options, report)
    if not options:
        _drop_subtree(field, report)
        return None

    kept_option_ids = {o.id for o in options}
    sub_fields = {}
    for option_id, children in (field.subFields or {}).items():
        if option_id not in kept_option_ids:
            report.dropped_field_ids.extend(collect_field_ids(children))
            continue
        normalized = _normalize_list(children, report)
        if normalized:
            sub_fields[option_id] = normalized

    return CustomField(
        id=field.id,
        name=name,
        type=field.type,
        options=options,
        subFields=sub_fields or None,
        valueSetId=field.valueSetId,
    )


def _normalize_list(fields: List[CustomField], report: NormalizationReport) -> List[CustomField]:
    result = []
    for field in fields:
        normalized = _normalize_field(field, report)
        if normalized is not None:
            result.append(normalized)
    return result


def normalize_fields(fields: Optional[List[CustomField]]) -> Tuple[List[CustomField], NormalizationReport]:
    """Return the cleaned forest and a report of dropped field and option ids. Input is not mutated."""
    report = NormalizationReport()
    result = _normalize_list(fields or [], report)
    if not report.is_clean:
        logger.debug(
            "Normalization dropped %d field(s) and %d option(s)",
            len(report.dropped_field_ids),
            len(report.dropped_option_ids),
        )
    return result, report


def normalize(fields: Optional[List[CustomField]]) -> List[CustomField]:
    return normalize_fields(fields)[0]
