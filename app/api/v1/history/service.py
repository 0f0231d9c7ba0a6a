"""
History of payment amount changes. Entries are only ever appended; the
payment recorder decides when one is due.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.enums import HistoryEntryType
from app.core.models import Collection, HistoryEntry, Student

from .schemas import HistoryEntryResponse


async def append_history_entry(
    db: AsyncSession,
    entry_type: HistoryEntryType,
    student: Student,
    collection: Collection,
    *,
    amount: Optional[Decimal] = None,
    previous_amount: Optional[Decimal] = None,
) -> HistoryEntry:
    """Append one history entry. Caller must commit."""
    entry = HistoryEntry(
        timestamp=datetime.utcnow(),
        entry_type=entry_type.value,
        student_id=student.id,
        student_name=student.student_name,
        collection_id=collection.id,
        collection_name=collection.name,
        amount=amount,
        previous_amount=previous_amount,
    )
    db.add(entry)
    return entry


async def list_history(
    db: AsyncSession,
    collection_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
    limit: Optional[int] = None,
) -> List[HistoryEntryResponse]:
    """Newest first."""
    stmt = select(HistoryEntry)
    if collection_id is not None:
        stmt = stmt.where(HistoryEntry.collection_id == collection_id)
    if student_id is not None:
        stmt = stmt.where(HistoryEntry.student_id == student_id)
    stmt = stmt.order_by(HistoryEntry.timestamp.desc()).limit(limit or settings.history_page_size)
    result = await db.execute(stmt)
    return [HistoryEntryResponse.model_validate(e) for e in result.scalars().all()]
