"""Reference data schemas: grades, subjects, resource types, tags."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class GradeCreate(BaseModel):
    grade_level: str = Field(min_length=1, max_length=50)
    grade_number: Optional[int] = None
    description: Optional[str] = None


class GradeUpdate(BaseModel):
    grade_level: Optional[str] = Field(default=None, min_length=1, max_length=50)
    grade_number: Optional[int] = None
    description: Optional[str] = None


class GradeResponse(BaseModel):
    id: str
    grade_level: str
    grade_number: Optional[int]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    subject_name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class SubjectUpdate(BaseModel):
    subject_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class SubjectResponse(BaseModel):
    id: str
    subject_name: str
    color: Optional[str]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ResourceTypeCreate(BaseModel):
    type_name: str = Field(min_length=1, max_length=50)
    allowed_extensions: Optional[str] = None  # "pdf,doc,docx"
    icon: Optional[str] = None
    max_file_size: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None


class ResourceTypeUpdate(BaseModel):
    type_name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    allowed_extensions: Optional[str] = None
    icon: Optional[str] = None
    max_file_size: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None


class ResourceTypeResponse(BaseModel):
    id: str
    type_name: str
    allowed_extensions: Optional[str]
    icon: Optional[str]
    max_file_size: Optional[int]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class TagCreate(BaseModel):
    tag_name: str = Field(min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class TagUpdate(BaseModel):
    tag_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = None
    description: Optional[str] = None


class TagResponse(BaseModel):
    id: str
    tag_name: str
    color: Optional[str]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class StatsResponse(BaseModel):
    total_resources: int
    published: int
    drafts: int
    total_users: int
    total_downloads: int
    total_views: int
    total_likes: int
