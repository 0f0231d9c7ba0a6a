"""Collection: a fundraising campaign with a custom-field schema and a payment roster."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class Collection(Base):
    """Custom fields are stored in their wire shape (list of nested field dicts)."""

    __tablename__ = "collections"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    collection_type = Column(String(30), nullable=False, default="regular")
    target_amount = Column(Numeric(12, 2), nullable=True)
    deadline = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)
    custom_fields = Column(JSON, nullable=True)
    # None means every student on the roster is included
    included_student_ids = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    payments = relationship(
        "Payment",
        back_populates="collection",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
