"""Payment: one row per (collection, student), carrying the amount and the recorded answers."""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        UniqueConstraint("collection_id", "student_id", name="uq_payment_collection_student"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    collection_id = Column(Uuid, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    custom_field_values = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=True)

    collection = relationship("Collection", back_populates="payments")
    student = relationship("Student")
