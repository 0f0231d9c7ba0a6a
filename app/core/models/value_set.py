"""Value set: a reusable list of options that fields snapshot-copy when linked."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Uuid

from app.db.session import Base


class ValueSet(Base):
    """Name uniqueness is case-insensitive and enforced by the service layer."""

    __tablename__ = "value_sets"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    options = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
