"""Catalog service — CRUD for the reference data resources are classified by.

Grades, subjects, resource types and tags share one shape: a generated id, a
unique human-readable natural key, and a few descriptive columns. Grades,
subjects and types cannot be deleted while a resource still points at them;
deleting a tag detaches it from every resource first.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import commit_or_conflict
from app.errors import Conflict, NotFound
from app.models.grade import Grade
from app.models.resource import Resource
from app.models.resource_type import ResourceType
from app.models.subject import Subject
from app.models.tag import Tag, resource_tag_map


@dataclass(frozen=True)
class CatalogEntity:
    model: Any
    key: str  # natural key column
    label: str
    resource_fk: Optional[str]  # Resource column that references this entity

    @property
    def key_column(self):
        return getattr(self.model, self.key)


GRADES = CatalogEntity(Grade, "grade_level", "Grade", "grade_id")
SUBJECTS = CatalogEntity(Subject, "subject_name", "Subject", "subject_id")
RESOURCE_TYPES = CatalogEntity(ResourceType, "type_name", "Resource type", "type_id")
TAGS = CatalogEntity(Tag, "tag_name", "Tag", None)


def list_entries(db: Session, entity: CatalogEntity) -> list:
    query = db.query(entity.model)
    if entity is GRADES:
        # Grades without a number sort after the numbered ones
        query = query.order_by(Grade.grade_number.is_(None), Grade.grade_number, Grade.grade_level)
    else:
        query = query.order_by(entity.key_column)
    return query.all()


def get_entry(db: Session, entity: CatalogEntity, entry_id: str):
    entry = db.query(entity.model).filter(entity.model.id == entry_id).first()
    if not entry:
        raise NotFound(f"{entity.label} not found")
    return entry


def _ensure_key_free(db: Session, entity: CatalogEntity, value: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(entity.model.id).filter(entity.key_column == value)
    if exclude_id is not None:
        query = query.filter(entity.model.id != exclude_id)
    if query.first():
        raise Conflict(f"{entity.label} '{value}' already exists")


def create_entry(db: Session, entity: CatalogEntity, data: dict):
    """Insert a new row; the natural key must not be taken (exact match)."""
    _ensure_key_free(db, entity, data[entity.key])
    entry = entity.model(**data)
    db.add(entry)
    commit_or_conflict(db, f"{entity.label} '{data[entity.key]}' already exists")
    db.refresh(entry)
    return entry


def update_entry(db: Session, entity: CatalogEntity, entry_id: str, data: dict):
    """Apply a partial update; a new natural key must not belong to another row."""
    entry = get_entry(db, entity, entry_id)
    new_key = data.get(entity.key)
    if new_key is not None:
        _ensure_key_free(db, entity, new_key, exclude_id=entry.id)
    for field, value in data.items():
        if field == entity.key and value is None:
            continue
        setattr(entry, field, value)
    commit_or_conflict(db, f"{entity.label} '{new_key}' already exists")
    db.refresh(entry)
    return entry


def delete_entry(db: Session, entity: CatalogEntity, entry_id: str) -> None:
    """Hard-delete a row.

    The reference check and the delete run in one transaction, with the row
    locked where the engine supports it, so a resource cannot start
    referencing the row between the two.
    """
    entry = (
        db.query(entity.model)
        .filter(entity.model.id == entry_id)
        .with_for_update()
        .first()
    )
    if not entry:
        raise NotFound(f"{entity.label} not found")

    if entity.resource_fk is not None:
        in_use = (
            db.query(func.count(Resource.id))
            .filter(getattr(Resource, entity.resource_fk) == entry.id)
            .scalar()
        )
        if in_use:
            db.rollback()
            raise Conflict(
                f"Cannot delete {entity.label.lower()} that is being used by {in_use} resource(s)"
            )
    else:
        db.execute(resource_tag_map.delete().where(resource_tag_map.c.tag_id == entry.id))

    db.delete(entry)
    commit_or_conflict(db, f"{entity.label} is still in use")
