"""
Value set registry. Sets live independently of collections: editing or
deleting one never touches fields that linked to it earlier, those keep
their snapshot and a dangling valueSetId.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.custom_fields.normalizer import normalize_options
from app.api.v1.custom_fields.schemas import FieldOption
from app.core.exceptions import ServiceError
from app.core.models import ValueSet

from .schemas import ValueSetCreate, ValueSetResponse, ValueSetUpdate

logger = logging.getLogger(__name__)


def _to_response(vs: ValueSet) -> ValueSetResponse:
    return ValueSetResponse(
        id=vs.id,
        name=vs.name,
        options=[FieldOption.model_validate(o) for o in vs.options or []],
        created_at=vs.created_at,
        updated_at=vs.updated_at,
    )


def _clean_options(options: List[FieldOption]) -> list:
    cleaned = normalize_options(options)
    if not cleaned:
        raise ServiceError("A value set needs at least one non-empty option", status.HTTP_400_BAD_REQUEST)
    return [o.model_dump(mode="json", exclude_none=True) for o in cleaned]


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[UUID] = None) -> None:
    stmt = select(ValueSet.id).where(func.lower(ValueSet.name) == name.lower())
    if exclude_id is not None:
        stmt = stmt.where(ValueSet.id != exclude_id)
    if (await db.execute(stmt)).first() is not None:
        raise ServiceError("A set with this name already exists.", status.HTTP_409_CONFLICT)


async def create_value_set(db: AsyncSession, payload: ValueSetCreate) -> ValueSetResponse:
    name = payload.name.strip()
    if not name:
        raise ServiceError("Value set name is required", status.HTTP_400_BAD_REQUEST)
    await _ensure_unique_name(db, name)
    vs = ValueSet(name=name, options=_clean_options(payload.options))
    db.add(vs)
    await db.commit()
    await db.refresh(vs)
    return _to_response(vs)


async def list_value_sets(db: AsyncSession) -> List[ValueSetResponse]:
    result = await db.execute(select(ValueSet).order_by(ValueSet.name))
    return [_to_response(vs) for vs in result.scalars().all()]


async def get_value_set(db: AsyncSession, value_set_id: UUID) -> Optional[ValueSetResponse]:
    vs = await db.get(ValueSet, value_set_id)
    return _to_response(vs) if vs else None


async def update_value_set(
    db: AsyncSession,
    value_set_id: UUID,
    payload: ValueSetUpdate,
) -> Optional[ValueSetResponse]:
    vs = await db.get(ValueSet, value_set_id)
    if not vs:
        return None
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ServiceError("Value set name is required", status.HTTP_400_BAD_REQUEST)
        await _ensure_unique_name(db, name, exclude_id=vs.id)
        vs.name = name
    if payload.options is not None:
        vs.options = _clean_options(payload.options)
    await db.commit()
    await db.refresh(vs)
    return _to_response(vs)


async def delete_value_set(db: AsyncSession, value_set_id: UUID) -> bool:
    vs = await db.get(ValueSet, value_set_id)
    if not vs:
        return False
    await db.delete(vs)
    await db.commit()
    logger.info("Deleted value set %s; linked fields keep their copied options", value_set_id)
    return True
