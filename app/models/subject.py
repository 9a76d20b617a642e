"""Subject model."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship

from app.database import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_name = Column(String(100), unique=True, nullable=False)
    color = Column(String(20), nullable=True)  # hex, e.g. #EF4444
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    resources = relationship("Resource", back_populates="subject")
