"""Student roster entry. Payments and history reference students by id."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid

from app.db.session import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_name = Column(String(255), nullable=False)
    student_no = Column(String(50), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
