"""SQLAlchemy ORM models."""

from app.models.user import User
from app.models.grade import Grade
from app.models.subject import Subject
from app.models.resource_type import ResourceType
from app.models.tag import Tag, resource_tag_map
from app.models.resource import Resource, ResourceLike

__all__ = [
    "User",
    "Grade",
    "Subject",
    "ResourceType",
    "Tag",
    "resource_tag_map",
    "Resource",
    "ResourceLike",
]
