"""Collections service: schema editing (normalized on save), amounts due, breakdowns."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.v1.custom_fields.breakdown import (
    FieldBreakdown,
    aggregate_breakdown,
    format_answers_inline,
    format_answers_lines,
)
from app.api.v1.custom_fields.cloner import add_sub_field, clone_field, link_value_set, unlink_value_set, value_set_sub_field
from app.api.v1.custom_fields.editor import (
    has_amount_fields,
    remove_field,
    remove_option,
    replace_field,
    strip_answers,
)
from app.api.v1.custom_fields.normalizer import normalize_fields
from app.api.v1.custom_fields.schemas import (
    CustomField,
    NormalizationReport,
    dump_fields,
    ensure_unique_ids,
    load_fields,
)
from app.api.v1.custom_fields.tree import FieldIndex, collect_field_ids, split_answer
from app.api.v1.payments.ledger import apply_decision
from app.api.v1.payments.recorder import decide_payment
from app.api.v1.value_sets import service as value_set_service
from app.core.exceptions import ConfirmationRequired, ServiceError
from app.core.models import Collection, Payment, Student

from .schemas import (
    AddSubFieldRequest,
    CollectionCreate,
    CollectionResponse,
    CollectionSaveResponse,
    CollectionSummary,
    CollectionUpdate,
    PaymentDisplayItem,
    StudentStandingResponse,
)
from .summary import student_standing, summarize

logger = logging.getLogger(__name__)


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _to_response(c: Collection) -> CollectionResponse:
    fields = load_fields(c.custom_fields)
    return CollectionResponse(
        id=_to_uuid(c.id),
        name=c.name,
        collection_type=c.collection_type,
        target_amount=c.target_amount,
        deadline=c.deadline,
        notes=c.notes,
        custom_fields=fields,
        included_student_ids=[_to_uuid(i) for i in c.included_student_ids]
        if c.included_student_ids is not None
        else None,
        has_amount_fields=has_amount_fields(fields),
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _answer_sets(c: Collection) -> List[dict]:
    return [p.custom_field_values or {} for p in c.payments]


async def get_collection_model(db: AsyncSession, collection_id: UUID) -> Optional[Collection]:
    """Collection with its payments, always re-read from the database."""
    result = await db.execute(
        select(Collection)
        .options(selectinload(Collection.payments))
        .where(Collection.id == collection_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def included_students(db: AsyncSession, c: Collection) -> List[Student]:
    stmt = select(Student).order_by(Student.student_name)
    if c.included_student_ids is not None:
        stmt = stmt.where(Student.id.in_([_to_uuid(i) for i in c.included_student_ids]))
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> None:
    stmt = select(Collection.id).where(func.lower(Collection.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(Collection.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ServiceError("Another collection with this name already exists.", status.HTTP_409_CONFLICT)


def _save_fields(c: Collection, fields: List[CustomField]) -> NormalizationReport:
    normalized, report = normalize_fields(ensure_unique_ids(fields))
    c.custom_fields = dump_fields(normalized) or None
    return report


async def _reload_response(db: AsyncSession, collection_id: UUID) -> CollectionResponse:
    return _to_response(await get_collection_model(db, collection_id))


async def create_collection(db: AsyncSession, payload: CollectionCreate) -> CollectionSaveResponse:
    name = payload.name.strip()
    if not name:
        raise ServiceError("Collection name is required", status.HTTP_400_BAD_REQUEST)
    await _ensure_unique_name(db, name)
    c = Collection(
        name=name,
        collection_type=payload.collection_type.strip().lower(),
        target_amount=payload.target_amount,
        deadline=payload.deadline,
        notes=(payload.notes or "").strip() or None,
        included_student_ids=[str(i) for i in payload.included_student_ids]
        if payload.included_student_ids is not None
        else None,
    )
    report = _save_fields(c, payload.custom_fields)
    db.add(c)
    await db.commit()
    return CollectionSaveResponse(collection=await _reload_response(db, c.id), normalization=report)


async def list_collections(db: AsyncSession) -> List[CollectionResponse]:
    result = await db.execute(
        select(Collection).options(selectinload(Collection.payments)).order_by(Collection.created_at.desc())
    )
    return [_to_response(c) for c in result.scalars().all()]


async def get_collection(db: AsyncSession, collection_id: UUID) -> Optional[CollectionResponse]:
    c = await get_collection_model(db, collection_id)
    return _to_response(c) if c else None


async def _strip_payment_answers(db: AsyncSession, c: Collection, field_ids: List[str]) -> int:
    """
    Remove answers of deleted fields from every payment. Each payment goes
    back through the recorder, so one left with no amount and no answers is
    removed and logged. Returns how many payments changed. Caller must commit.
    """
    changed = 0
    drop = set(field_ids)
    for p in list(c.payments):
        answers = p.custom_field_values or {}
        if not drop.intersection(answers):
            continue
        decision = decide_payment(p.amount, p.amount, strip_answers(answers, drop))
        student = await db.get(Student, p.student_id)
        await apply_decision(db, c, student, p, decision)
        changed += 1
    return changed


async def update_collection(
    db: AsyncSession,
    collection_id: UUID,
    payload: CollectionUpdate,
) -> Optional[CollectionSaveResponse]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ServiceError("Collection name is required", status.HTTP_400_BAD_REQUEST)
        await _ensure_unique_name(db, name, exclude_id=c.id)
        c.name = name
    # explicit null clears these, an omitted key leaves them alone
    if "target_amount" in payload.model_fields_set:
        c.target_amount = payload.target_amount
    if "deadline" in payload.model_fields_set:
        c.deadline = payload.deadline
    if payload.notes is not None:
        c.notes = payload.notes.strip() or None
    if payload.included_student_ids is not None:
        c.included_student_ids = [str(i) for i in payload.included_student_ids]

    report = NormalizationReport()
    if payload.custom_fields is not None:
        old_ids = set(collect_field_ids(load_fields(c.custom_fields)))
        normalized, report = normalize_fields(ensure_unique_ids(payload.custom_fields))
        lost = old_ids - set(collect_field_ids(normalized))
        answered = [
            fid for fid in lost
            if any((answers.get(fid) or "").strip() for answers in _answer_sets(c))
        ]
        if answered and not payload.confirm_data_loss:
            raise ConfirmationRequired(
                "This edit removes fields that have data from students; resend with confirm_data_loss=true"
            )
        c.custom_fields = dump_fields(normalized) or None
        if lost:
            changed = await _strip_payment_answers(db, c, list(lost))
            if changed:
                logger.info("Collection %s: cleared answers of %d removed field(s) from %d payment(s)", c.id, len(lost), changed)

    await db.commit()
    return CollectionSaveResponse(collection=await _reload_response(db, c.id), normalization=report)


async def _apply_field_edit(db: AsyncSession, c: Collection, fields: List[CustomField]) -> CollectionResponse:
    _save_fields(c, fields)
    await db.commit()
    return await _reload_response(db, c.id)


async def delete_field(
    db: AsyncSession,
    collection_id: UUID,
    field_id: str,
    confirm: bool = False,
) -> Optional[CollectionResponse]:
    """Remove a field (any depth). Raises ConfirmationRequired if it has recorded answers and confirm is False."""
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    index = FieldIndex(fields)
    if field_id not in index:
        raise ServiceError("Field not found", status.HTTP_404_NOT_FOUND)
    removed_ids = index.subtree_ids(field_id)
    updated = remove_field(fields, field_id, _answer_sets(c), lambda _fid: confirm)
    if updated is None:
        raise ConfirmationRequired(
            "This field has data from students. Resend with confirm=true to remove it and that data."
        )
    changed = await _strip_payment_answers(db, c, removed_ids)
    if changed:
        logger.info("Collection %s: removed field %s with answers from %d payment(s)", c.id, field_id, changed)
    return await _apply_field_edit(db, c, updated)


async def delete_option(
    db: AsyncSession,
    collection_id: UUID,
    field_id: str,
    option_id: str,
    confirm: bool = False,
) -> Optional[CollectionResponse]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    loc = FieldIndex(fields).get(field_id)
    if loc is None or not any(o.id == option_id for o in loc.field.options or []):
        raise ServiceError("Option not found", status.HTTP_404_NOT_FOUND)
    removed_ids = collect_field_ids((loc.field.subFields or {}).get(option_id))
    updated = remove_option(fields, field_id, option_id, _answer_sets(c), lambda _oid: confirm)
    if updated is None:
        raise ConfirmationRequired(
            "This choice has data from students. Resend with confirm=true to remove it."
        )
    await _strip_payment_answers(db, c, removed_ids)
    return await _apply_field_edit(db, c, updated)


async def copy_field(
    db: AsyncSession,
    collection_id: UUID,
    field_id: str,
    target_collection_id: Optional[UUID] = None,
) -> Optional[CollectionResponse]:
    """Append a fresh-id copy of a field (from any depth) to the target collection's top level."""
    source = await get_collection_model(db, collection_id)
    if not source:
        return None
    loc = FieldIndex(load_fields(source.custom_fields)).get(field_id)
    if loc is None:
        raise ServiceError("Field not found", status.HTTP_404_NOT_FOUND)
    target = source
    if target_collection_id is not None and target_collection_id != source.id:
        target = await get_collection_model(db, target_collection_id)
        if not target:
            raise ServiceError("Invalid target collection", status.HTTP_400_BAD_REQUEST)
    fields = load_fields(target.custom_fields)
    fields.append(clone_field(loc.field))
    return await _apply_field_edit(db, target, fields)


async def link_field(
    db: AsyncSession,
    collection_id: UUID,
    field_id: str,
    value_set_id: Optional[UUID],
    confirm: bool = False,
) -> Optional[CollectionResponse]:
    """
    Link a choice field to a value set (snapshot of its options), or unlink when
    value_set_id is None. Replacing the options drops the sub-fields of options
    that no longer exist; if that discards recorded answers, or a recorded
    selection no longer matches an option, confirm must be True.
    """
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    loc = FieldIndex(fields).get(field_id)
    if loc is None:
        raise ServiceError("Field not found", status.HTTP_404_NOT_FOUND)
    if value_set_id is None:
        updated = unlink_value_set(loc.field)
    else:
        if not loc.field.is_choice:
            raise ServiceError("Only choice fields can be linked to a value set", status.HTTP_400_BAD_REQUEST)
        vs = await value_set_service.get_value_set(db, value_set_id)
        if not vs:
            raise ServiceError("Invalid value set", status.HTTP_400_BAD_REQUEST)
        updated = link_value_set(loc.field, vs.to_data())

    edited, _ = normalize_fields(replace_field(fields, updated))
    kept_ids = set(collect_field_ids(edited))
    lost = [fid for fid in collect_field_ids(fields) if fid not in kept_ids]
    answer_sets = _answer_sets(c)
    kept_values = {o.value for o in updated.options or []}
    lost_selection = any(
        loc.field.option_by_value(value) is not None and value not in kept_values
        for answers in answer_sets
        for value in split_answer(answers.get(field_id))
    )
    lost_answers = any((answers.get(fid) or "").strip() for fid in lost for answers in answer_sets)
    if (lost_selection or lost_answers) and not confirm:
        raise ConfirmationRequired(
            "Linking replaces choices that have data from students. Resend with confirm=true to apply it."
        )
    if lost:
        changed = await _strip_payment_answers(db, c, lost)
        if changed:
            logger.info("Collection %s: linking field %s cleared answers from %d payment(s)", c.id, field_id, changed)
    return await _apply_field_edit(db, c, edited)


async def create_sub_field(
    db: AsyncSession,
    collection_id: UUID,
    field_id: str,
    option_id: str,
    payload: AddSubFieldRequest,
) -> Optional[CollectionResponse]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    loc = FieldIndex(fields).get(field_id)
    if loc is None or not any(o.id == option_id for o in loc.field.options or []):
        raise ServiceError("Option not found", status.HTTP_404_NOT_FOUND)
    if payload.value_set_id is not None:
        vs = await value_set_service.get_value_set(db, payload.value_set_id)
        if not vs:
            raise ServiceError("Invalid value set", status.HTTP_400_BAD_REQUEST)
        sub_field = value_set_sub_field(vs.to_data())
    elif payload.field is not None:
        sub_field = payload.field
    else:
        raise ServiceError("Provide a field or a value set", status.HTTP_400_BAD_REQUEST)
    if sub_field.id in FieldIndex(fields):
        sub_field = clone_field(sub_field)
    updated = add_sub_field(loc.field, option_id, sub_field)
    return await _apply_field_edit(db, c, replace_field(fields, updated))


def _payment_for(c: Collection, student_id: UUID) -> Optional[Payment]:
    return next((p for p in c.payments if _to_uuid(p.student_id) == student_id), None)


async def get_student_standing(
    db: AsyncSession,
    collection_id: UUID,
    student_id: UUID,
) -> Optional[StudentStandingResponse]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    payment = _payment_for(c, student_id)
    standing = student_standing(
        load_fields(c.custom_fields),
        c.target_amount,
        str(student_id),
        amount_paid=payment.amount if payment else None,
        answers=payment.custom_field_values if payment else None,
    )
    return StudentStandingResponse(
        student_id=student_id,
        amount_due=standing.amount_due,
        matched_any_amount=standing.matched_any_amount,
        amount_paid=standing.amount_paid,
        balance=standing.balance,
        status=standing.status,
    )


async def get_summary(db: AsyncSession, collection_id: UUID) -> Optional[CollectionSummary]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    standings = []
    for student in await included_students(db, c):
        payment = _payment_for(c, _to_uuid(student.id))
        standings.append(
            student_standing(
                fields,
                c.target_amount,
                str(student.id),
                amount_paid=payment.amount if payment else None,
                answers=payment.custom_field_values if payment else None,
            )
        )
    return CollectionSummary(collection_id=_to_uuid(c.id), **summarize(standings))


async def get_breakdown(db: AsyncSession, collection_id: UUID) -> Optional[List[FieldBreakdown]]:
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    student_ids = {_to_uuid(s.id) for s in await included_students(db, c)}
    answer_sets = [p.custom_field_values for p in c.payments if _to_uuid(p.student_id) in student_ids]
    return aggregate_breakdown(load_fields(c.custom_fields), answer_sets)


async def list_payment_displays(db: AsyncSession, collection_id: UUID) -> Optional[List[PaymentDisplayItem]]:
    """Recorded payments with their answers rendered, sorted by student name."""
    c = await get_collection_model(db, collection_id)
    if not c:
        return None
    fields = load_fields(c.custom_fields)
    items = []
    for student in await included_students(db, c):
        payment = _payment_for(c, _to_uuid(student.id))
        if payment is None:
            continue
        items.append(
            PaymentDisplayItem(
                student_id=_to_uuid(student.id),
                student_name=student.student_name,
                amount=payment.amount,
                timestamp=payment.timestamp,
                inline=format_answers_inline(fields, payment.custom_field_values),
                lines=format_answers_lines(fields, payment.custom_field_values),
            )
        )
    return items
