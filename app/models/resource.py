"""Resource model — an uploaded educational file plus its metadata."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, DateTime, ForeignKey, Text, Integer, BigInteger, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.database import Base
from app.models.tag import resource_tag_map

RESOURCE_STATUSES = ("draft", "published")


class Resource(Base):
    __tablename__ = "resources"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="published")  # draft | published

    grade_id = Column(String(36), ForeignKey("grades.id"), nullable=False, index=True)
    subject_id = Column(String(36), ForeignKey("subjects.id"), nullable=False, index=True)
    type_id = Column(String(36), ForeignKey("resource_types.id"), nullable=False, index=True)

    # Stored name is "<epoch-millis>-<token>.<ext>" under UPLOAD_DIR
    file_name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    preview_image = Column(String(255), nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    download_count = Column(Integer, nullable=False, default=0)
    view_count = Column(Integer, nullable=False, default=0)
    likes = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    grade = relationship("Grade", back_populates="resources")
    subject = relationship("Subject", back_populates="resources")
    resource_type = relationship("ResourceType", back_populates="resources")
    creator = relationship("User", back_populates="resources")
    tags = relationship("Tag", secondary=resource_tag_map, order_by="Tag.tag_name")
    like_rows = relationship("ResourceLike", back_populates="resource", cascade="all, delete-orphan")


class ResourceLike(Base):
    __tablename__ = "resource_likes"
    __table_args__ = (UniqueConstraint("user_id", "resource_id", name="uq_resource_like"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    resource_id = Column(String(36), ForeignKey("resources.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="likes")
    resource = relationship("Resource", back_populates="like_rows")
