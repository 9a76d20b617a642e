"""Resource type model — governs the extensions and size a primary file may have."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Text, BigInteger
from sqlalchemy.orm import relationship

from app.database import Base


class ResourceType(Base):
    __tablename__ = "resource_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    type_name = Column(String(50), unique=True, nullable=False)
    allowed_extensions = Column(String(255), nullable=True)  # "pdf,doc,docx"
    icon = Column(String(50), nullable=True)
    max_file_size = Column(BigInteger, nullable=True)  # bytes; NULL = request cap only
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    resources = relationship("Resource", back_populates="resource_type")

    @property
    def extension_list(self) -> list[str]:
        if not self.allowed_extensions:
            return []
        return [e.strip().lower().lstrip(".") for e in self.allowed_extensions.split(",") if e.strip()]
