"""Tag model and the resource <-> tag association table."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Table

from app.database import Base

resource_tag_map = Table(
    "resource_tag_map",
    Base.metadata,
    Column("resource_id", String(36), ForeignKey("resources.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("resource_tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    __tablename__ = "resource_tags"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tag_name = Column(String(100), unique=True, nullable=False)
    color = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
