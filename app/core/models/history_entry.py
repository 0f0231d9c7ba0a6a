"""History entry: append-only log of payment amount changes."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Numeric, String, Uuid

from app.db.session import Base


class HistoryEntry(Base):
    """Names are denormalized so entries survive student/collection deletion."""

    __tablename__ = "history_entries"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    timestamp = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False, index=True)
    entry_type = Column(String(30), nullable=False)  # payment_add, payment_update, payment_remove
    student_id = Column(Uuid, nullable=False)
    student_name = Column(String(255), nullable=False)
    collection_id = Column(Uuid, nullable=False)
    collection_name = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=True)
    previous_amount = Column(Numeric(12, 2), nullable=True)
