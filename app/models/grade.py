"""Grade model — the twelve grade levels resources are filed under."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Integer, Text
from sqlalchemy.orm import relationship

from app.database import Base


class Grade(Base):
    __tablename__ = "grades"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    grade_level = Column(String(50), unique=True, nullable=False)  # "Grade 3"
    grade_number = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    resources = relationship("Resource", back_populates="grade")
