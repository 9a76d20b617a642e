"""Resource service — upload, edit, delete, query and count resources.

Writes follow one order: validate every incoming file, store the accepted
files, then write the metadata row in a single transaction. If the
metadata write fails the files stored by this call are removed again, so a
failed request leaves neither a row nor an orphaned file behind.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from app.config import Settings
from app.database import commit_or_conflict
from app.errors import Forbidden, NotFound, ValidationError
from app.models.grade import Grade
from app.models.resource import Resource, ResourceLike
from app.models.resource_type import ResourceType
from app.models.subject import Subject
from app.models.tag import Tag, resource_tag_map
from app.models.user import User
from app.schemas.resource import ResourceCreate, ResourceUpdate
from app.services.storage import LocalStorage
from app.services.upload_validation import (
    preview_image_slot,
    resource_file_slot,
    validate_for_type,
    validate_upload,
)

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """A file taken off the wire, not yet stored."""

    filename: Optional[str]
    size: int
    stream: BinaryIO


@dataclass
class ResourceFilters:
    status: Optional[str] = None
    subject: Optional[str] = None
    grade: Optional[str] = None
    type: Optional[str] = None
    search: Optional[str] = None
    sort: str = "recent"  # recent | popular
    limit: int = 20
    offset: int = 0


POPULARITY = Resource.download_count + Resource.view_count + 2 * Resource.likes


# ── Helpers ───────────────────────────────────────────────────────────────────

def _is_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == "admin"


def _can_see(resource: Resource, viewer: Optional[User]) -> bool:
    if resource.status == "published":
        return True
    return viewer is not None and (_is_admin(viewer) or resource.created_by == viewer.id)


def _ensure_can_modify(resource: Resource, user: User) -> None:
    if not (_is_admin(user) or resource.created_by == user.id):
        raise Forbidden("You can only modify your own resources")


def _require(db: Session, model, entry_id: str, label: str):
    entry = db.query(model).filter(model.id == entry_id).first()
    if not entry:
        raise NotFound(f"{label} not found")
    return entry


def _resolve_tags(db: Session, tag_ids: list[str]) -> list[Tag]:
    wanted = list(dict.fromkeys(tag_ids))
    if not wanted:
        return []
    tags = db.query(Tag).filter(Tag.id.in_(wanted)).all()
    missing = set(wanted) - {t.id for t in tags}
    if missing:
        raise NotFound(f"Tag not found: {', '.join(sorted(missing))}")
    return tags


def _validate_files(
    settings: Settings,
    resource_type: ResourceType,
    file: Optional[IncomingFile],
    preview: Optional[IncomingFile],
) -> None:
    if file is not None:
        validate_upload(file.filename, file.size, resource_file_slot(settings))
        validate_for_type(file.filename, file.size, resource_type)
    if preview is not None:
        validate_upload(preview.filename, preview.size, preview_image_slot(settings))


def _replace_tags(db: Session, resource: Resource, tags: list[Tag]) -> None:
    """Rewrite the whole tag set, not just the difference from what this session loaded."""
    db.execute(resource_tag_map.delete().where(resource_tag_map.c.resource_id == resource.id))
    if tags:
        db.execute(
            resource_tag_map.insert(),
            [{"resource_id": resource.id, "tag_id": tag.id} for tag in tags],
        )
    db.expire(resource, ["tags"])


def _discard(storage: LocalStorage, names: list[str]) -> None:
    for name in names:
        storage.delete(name)
    if names:
        logger.warning("Discarded %d stored file(s) after a failed resource write", len(names))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


# ── Writes ────────────────────────────────────────────────────────────────────

def create_resource(
    db: Session,
    storage: LocalStorage,
    settings: Settings,
    data: ResourceCreate,
    file: Optional[IncomingFile],
    preview: Optional[IncomingFile],
    requester: User,
) -> Resource:
    """Validate, store and record a new resource owned by ``requester``."""
    if file is None:
        raise ValidationError("A resource file is required")

    _require(db, Grade, data.grade_id, "Grade")
    _require(db, Subject, data.subject_id, "Subject")
    resource_type = _require(db, ResourceType, data.type_id, "Resource type")
    tags = _resolve_tags(db, data.tag_ids)

    _validate_files(settings, resource_type, file, preview)

    stored: list[str] = []
    try:
        file_name = storage.save(file.stream, file.filename)
        stored.append(file_name)
        preview_name = None
        if preview is not None:
            preview_name = storage.save(preview.stream, preview.filename)
            stored.append(preview_name)

        resource = Resource(
            title=data.title,
            description=data.description,
            status=data.status,
            grade_id=data.grade_id,
            subject_id=data.subject_id,
            type_id=data.type_id,
            file_name=file_name,
            original_name=file.filename or file_name,
            file_size=file.size,
            preview_image=preview_name,
            created_by=requester.id,
        )
        resource.tags = tags
        db.add(resource)
        commit_or_conflict(db, "Could not save resource")
    except Exception:
        db.rollback()
        _discard(storage, stored)
        raise

    db.refresh(resource)
    logger.info("Resource %s created by %s (%s, %d bytes)",
                resource.id, requester.id, resource.original_name, resource.file_size)
    return resource


def update_resource(
    db: Session,
    storage: LocalStorage,
    settings: Settings,
    resource_id: str,
    data: ResourceUpdate,
    file: Optional[IncomingFile],
    preview: Optional[IncomingFile],
    requester: User,
) -> Resource:
    """Apply a partial update; new files replace the stored ones.

    Every submitted column goes into the UPDATE even when it matches the
    loaded value, so concurrent edits resolve last-write-wins on the whole
    payload rather than merging field by field.
    """
    resource = _require(db, Resource, resource_id, "Resource")
    _ensure_can_modify(resource, requester)

    fields = data.model_dump(exclude_unset=True)
    tag_ids = fields.pop("tag_ids", None)
    for key in ("title", "status", "grade_id", "subject_id", "type_id"):
        if key in fields and fields[key] is None:
            fields.pop(key)

    if "grade_id" in fields:
        _require(db, Grade, fields["grade_id"], "Grade")
    if "subject_id" in fields:
        _require(db, Subject, fields["subject_id"], "Subject")
    resource_type = _require(db, ResourceType, fields.get("type_id", resource.type_id), "Resource type")
    tags = _resolve_tags(db, tag_ids) if tag_ids is not None else None

    _validate_files(settings, resource_type, file, preview)

    stored: list[str] = []
    superseded: list[str] = []
    try:
        if file is not None:
            new_name = storage.save(file.stream, file.filename)
            stored.append(new_name)
            superseded.append(resource.file_name)
            fields.update(
                file_name=new_name,
                original_name=file.filename or new_name,
                file_size=file.size,
            )
        if preview is not None:
            new_preview = storage.save(preview.stream, preview.filename)
            stored.append(new_preview)
            if resource.preview_image:
                superseded.append(resource.preview_image)
            fields["preview_image"] = new_preview

        for key, value in fields.items():
            setattr(resource, key, value)
            flag_modified(resource, key)
        if tags is not None:
            _replace_tags(db, resource, tags)
        commit_or_conflict(db, "Could not save resource")
    except Exception:
        db.rollback()
        _discard(storage, stored)
        raise

    for name in superseded:
        storage.delete(name)

    db.refresh(resource)
    return resource


def delete_resource(db: Session, storage: LocalStorage, resource_id: str, requester: User) -> None:
    """Delete the row, then its stored file and preview image."""
    resource = _require(db, Resource, resource_id, "Resource")
    _ensure_can_modify(resource, requester)

    files = [resource.file_name, resource.preview_image]
    db.delete(resource)
    commit_or_conflict(db, "Could not delete resource")

    for name in files:
        if name and not storage.delete(name):
            logger.warning("Stored file %s of deleted resource %s was already gone", name, resource_id)


# ── Reads ─────────────────────────────────────────────────────────────────────

def get_resource(db: Session, resource_id: str, viewer: Optional[User], count_view: bool = True) -> Resource:
    """Fetch one resource; drafts are only visible to their creator and admins."""
    resource = db.query(Resource).filter(Resource.id == resource_id).first()
    if not resource or not _can_see(resource, viewer):
        raise NotFound("Resource not found")

    if count_view:
        db.query(Resource).filter(Resource.id == resource_id).update(
            {Resource.view_count: Resource.view_count + 1}, synchronize_session=False
        )
        db.commit()
        db.refresh(resource)
    return resource


def list_resources(
    db: Session,
    filters: ResourceFilters,
    viewer: Optional[User],
    scope: str = "public",
) -> tuple[list[Resource], int]:
    """Filter, search and page resources.

    ``scope`` decides the baseline visibility:
      public -- published only, unless the viewer is an admin
      all    -- admins see everything, others published plus their own
      mine   -- the viewer's own resources
    """
    query = (
        db.query(Resource)
        .join(Resource.grade)
        .join(Resource.subject)
        .join(Resource.resource_type)
    )

    if scope == "mine":
        query = query.filter(Resource.created_by == viewer.id)
    elif scope == "all":
        if not _is_admin(viewer):
            query = query.filter(or_(Resource.status == "published", Resource.created_by == viewer.id))
    elif not _is_admin(viewer):
        query = query.filter(Resource.status == "published")

    if filters.status:
        query = query.filter(Resource.status == filters.status)
    if filters.subject:
        query = query.filter(or_(Subject.id == filters.subject, Subject.subject_name == filters.subject))
    if filters.grade:
        query = query.filter(or_(Grade.id == filters.grade, Grade.grade_level == filters.grade))
    if filters.type:
        query = query.filter(or_(ResourceType.id == filters.type, ResourceType.type_name == filters.type))
    if filters.search and filters.search.strip():
        term = f"%{_escape_like(filters.search.strip())}%"
        query = query.filter(or_(
            Resource.title.ilike(term, escape="\\"),
            Resource.description.ilike(term, escape="\\"),
            Subject.subject_name.ilike(term, escape="\\"),
            Grade.grade_level.ilike(term, escape="\\"),
            Resource.tags.any(Tag.tag_name.ilike(term, escape="\\")),
        ))

    total = query.count()

    if filters.sort == "popular":
        query = query.order_by(POPULARITY.desc(), Resource.created_at.desc())
    else:
        query = query.order_by(Resource.created_at.desc(), Resource.id)

    items = query.offset(filters.offset).limit(filters.limit).all()
    return items, total


# ── Counters ──────────────────────────────────────────────────────────────────

def record_download(
    db: Session, storage: LocalStorage, resource_id: str, viewer: Optional[User]
) -> tuple[Resource, Path]:
    """Count one download and return the resource with its file path.

    The counter moves through a single ``UPDATE ... SET n = n + 1`` so
    concurrent downloads each count exactly once.
    """
    resource = get_resource(db, resource_id, viewer, count_view=False)
    if not storage.exists(resource.file_name):
        logger.error("Stored file %s for resource %s is missing", resource.file_name, resource.id)
        raise NotFound("File not found on disk")

    db.query(Resource).filter(Resource.id == resource_id).update(
        {Resource.download_count: Resource.download_count + 1}, synchronize_session=False
    )
    db.commit()
    db.refresh(resource)
    return resource, storage.path_for(resource.file_name)


def toggle_like(db: Session, resource_id: str, user: User) -> tuple[bool, int]:
    """Like a resource, or take the like back if the user already liked it."""
    resource = get_resource(db, resource_id, user, count_view=False)

    existing = (
        db.query(ResourceLike)
        .filter(ResourceLike.resource_id == resource.id, ResourceLike.user_id == user.id)
        .first()
    )
    if existing:
        db.delete(existing)
        delta = -1
    else:
        db.add(ResourceLike(resource_id=resource.id, user_id=user.id))
        delta = 1
    db.query(Resource).filter(Resource.id == resource.id).update(
        {Resource.likes: Resource.likes + delta}, synchronize_session=False
    )
    commit_or_conflict(db, "Like already recorded")

    db.refresh(resource)
    return delta > 0, resource.likes


def library_stats(db: Session) -> dict:
    counts = db.query(
        func.count(Resource.id),
        func.coalesce(func.sum(Resource.download_count), 0),
        func.coalesce(func.sum(Resource.view_count), 0),
        func.coalesce(func.sum(Resource.likes), 0),
    ).one()
    published = db.query(func.count(Resource.id)).filter(Resource.status == "published").scalar()
    return {
        "total_resources": counts[0],
        "published": published,
        "drafts": counts[0] - published,
        "total_users": db.query(func.count(User.id)).scalar(),
        "total_downloads": counts[1],
        "total_views": counts[2],
        "total_likes": counts[3],
    }
