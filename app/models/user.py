"""User model — admin and school accounts."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from app.database import Base

USER_ROLES = ("admin", "school")
USER_STATUSES = ("active", "inactive", "banned")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="school")  # admin | school
    organization = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active | inactive | banned
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    resources = relationship("Resource", back_populates="creator")
    likes = relationship("ResourceLike", back_populates="user", cascade="all, delete-orphan")
