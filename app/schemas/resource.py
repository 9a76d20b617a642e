"""Resource request/response schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    return value


class ResourceCreate(BaseModel):
    title: str
    description: Optional[str] = None
    status: Literal["draft", "published"] = "published"
    grade_id: str
    subject_id: str
    type_id: str
    tag_ids: list[str] = []

    @field_validator("title")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)


class ResourceUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[Literal["draft", "published"]] = None
    grade_id: Optional[str] = None
    subject_id: Optional[str] = None
    type_id: Optional[str] = None
    tag_ids: Optional[list[str]] = None

    @field_validator("title")
    @classmethod
    def clean_title(cls, value):
        return _clean_title(value)


class TagBrief(BaseModel):
    id: str
    tag_name: str
    color: Optional[str] = None


class ResourceResponse(BaseModel):
    id: str
    title: str
    description: Optional[str]
    status: str
    grade_id: str
    grade_level: Optional[str]
    subject_id: str
    subject_name: Optional[str]
    subject_color: Optional[str]
    type_id: str
    type_name: Optional[str]
    icon: Optional[str]
    tags: list[TagBrief] = []
    file_name: str
    original_name: str
    file_size: int
    preview_image: Optional[str]
    created_by: str
    author_name: Optional[str]
    download_count: int
    view_count: int
    likes: int
    created_at: datetime
    updated_at: datetime


class ResourceCreated(BaseModel):
    resource_id: str
    resource: ResourceResponse


class LikeResponse(BaseModel):
    liked: bool
    likes: int


class GradeColumn(BaseModel):
    grade_id: str
    grade_level: str
    color: str
    count: int
    resources: list[ResourceResponse]
