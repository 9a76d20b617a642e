"""Resources router — upload, browse, edit, download and like resources."""

import json
import mimetypes
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import FileResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.database import get_db
from app.errors import ValidationError
from app.middleware.auth import get_current_user, get_optional_user, require_school_or_admin
from app.models.resource import Resource
from app.models.user import User
from app.schemas.common import ApiResponse, Page
from app.schemas.resource import (
    GradeColumn,
    LikeResponse,
    ResourceCreate,
    ResourceCreated,
    ResourceResponse,
    ResourceUpdate,
    TagBrief,
)
from app.services import browse, catalog_service, resource_service
from app.services.resource_service import IncomingFile, ResourceFilters
from app.services.upload_validation import check_file_counts

router = APIRouter(prefix="/api/resources", tags=["resources"])

FILE_LIMITS = {"file": 1, "preview_image": 1}
FORM_FIELDS = ("title", "description", "status", "grade_id", "subject_id", "type_id")


def _resource_to_response(resource: Resource) -> ResourceResponse:
    return ResourceResponse(
        id=resource.id,
        title=resource.title,
        description=resource.description,
        status=resource.status,
        grade_id=resource.grade_id,
        grade_level=resource.grade.grade_level if resource.grade else None,
        subject_id=resource.subject_id,
        subject_name=resource.subject.subject_name if resource.subject else None,
        subject_color=resource.subject.color if resource.subject else None,
        type_id=resource.type_id,
        type_name=resource.resource_type.type_name if resource.resource_type else None,
        icon=resource.resource_type.icon if resource.resource_type else None,
        tags=[TagBrief(id=t.id, tag_name=t.tag_name, color=t.color) for t in resource.tags],
        file_name=resource.file_name,
        original_name=resource.original_name,
        file_size=resource.file_size,
        preview_image=resource.preview_image,
        created_by=resource.created_by,
        author_name=resource.creator.name if resource.creator else None,
        download_count=resource.download_count,
        view_count=resource.view_count,
        likes=resource.likes,
        created_at=resource.created_at,
        updated_at=resource.updated_at,
    )


def _page(items: list[Resource], total: int, filters: ResourceFilters) -> Page[ResourceResponse]:
    return Page[ResourceResponse](
        items=[_resource_to_response(r) for r in items],
        total=total,
        limit=filters.limit,
        offset=filters.offset,
    )


# ── Request parsing ───────────────────────────────────────────────────────────

def _parse_tag_ids(values) -> list[str]:
    """Tags arrive as repeated fields, a JSON array, or a comma-separated string."""
    if values is None:
        return []
    if not isinstance(values, list):
        values = [values]
    tag_ids: list[str] = []
    for value in values:
        if isinstance(value, str):
            value = value.strip()
            if value.startswith("["):
                try:
                    value = json.loads(value)
                except ValueError:
                    raise ValidationError("Tags must be a list of tag ids")
            else:
                value = value.split(",")
        if not isinstance(value, list):
            raise ValidationError("Tags must be a list of tag ids")
        tag_ids.extend(str(v).strip() for v in value if str(v).strip())
    return tag_ids


def _upload_size(upload: UploadFile) -> int:
    if upload.size is not None:
        return upload.size
    upload.file.seek(0, 2)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def _incoming(uploads: list[UploadFile]) -> Optional[IncomingFile]:
    if not uploads:
        return None
    upload = uploads[0]
    upload.file.seek(0)
    return IncomingFile(filename=upload.filename, size=_upload_size(upload), stream=upload.file)


async def _read_payload(request: Request) -> tuple[dict, dict[str, list[UploadFile]]]:
    """Split a JSON or multipart body into metadata fields and uploaded files."""
    content_type = request.headers.get("content-type", "")
    files: dict[str, list[UploadFile]] = {}
    fields: dict = {}

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        tags: list[str] = []
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                files.setdefault(key, []).append(value)
            elif key in ("tags", "tag_ids"):
                tags.append(value)
            elif key in FORM_FIELDS:
                # Blank form inputs mean "not provided", except for description
                if value == "" and key != "description":
                    continue
                fields[key] = value
        if tags:
            fields["tag_ids"] = _parse_tag_ids(tags)
        return fields, files

    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be JSON or multipart form data")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    fields = {k: v for k, v in body.items() if k in FORM_FIELDS}
    if "tags" in body or "tag_ids" in body:
        fields["tag_ids"] = _parse_tag_ids(body.get("tag_ids", body.get("tags")))
    return fields, files


def _build(schema, fields: dict):
    try:
        return schema(**fields)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(p) for p in error.get("loc", ())) or "request"
        raise ValidationError(f"Invalid {field}: {error.get('msg', 'invalid value')}")


def _filters(request: Request, status, subject, grade, type_, search, sort, limit, offset) -> ResourceFilters:
    settings = request.app.state.settings
    return ResourceFilters(
        status=status,
        subject=subject,
        grade=grade,
        type=type_,
        search=search,
        sort=sort,
        limit=min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE),
        offset=offset,
    )


# ── Collection endpoints ──────────────────────────────────────────────────────

@router.post("", response_model=ApiResponse[ResourceCreated], status_code=201)
async def create_resource(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_school_or_admin),
):
    """Upload a resource: multipart fields plus ``file`` and optional ``preview_image``."""
    fields, files = await _read_payload(request)
    check_file_counts({k: len(v) for k, v in files.items()}, FILE_LIMITS)
    data = _build(ResourceCreate, fields)

    resource = await run_in_threadpool(
        resource_service.create_resource,
        db,
        request.app.state.storage,
        request.app.state.settings,
        data,
        _incoming(files.get("file", [])),
        _incoming(files.get("preview_image", [])),
        current_user,
    )
    return ApiResponse(
        message="Resource created successfully",
        data=ResourceCreated(resource_id=resource.id, resource=_resource_to_response(resource)),
    )


@router.get("", response_model=ApiResponse[Page[ResourceResponse]])
def list_resources(
    request: Request,
    status: Optional[Literal["draft", "published"]] = None,
    subject: Optional[str] = None,
    grade: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    sort: Literal["recent", "popular"] = "recent",
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """Published resources (admins see every status), filtered and paged."""
    filters = _filters(request, status, subject, grade, type, search, sort, limit, offset)
    items, total = resource_service.list_resources(db, filters, viewer, scope="public")
    return ApiResponse(data=_page(items, total, filters))


@router.get("/all", response_model=ApiResponse[Page[ResourceResponse]])
def list_all_resources(
    request: Request,
    status: Optional[Literal["draft", "published"]] = None,
    subject: Optional[str] = None,
    grade: Optional[str] = None,
    type: Optional[str] = None,
    search: Optional[str] = None,
    sort: Literal["recent", "popular"] = "recent",
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Everything for admins; published plus own drafts for schools."""
    filters = _filters(request, status, subject, grade, type, search, sort, limit, offset)
    items, total = resource_service.list_resources(db, filters, current_user, scope="all")
    return ApiResponse(data=_page(items, total, filters))


@router.get("/popular", response_model=ApiResponse[list[ResourceResponse]])
def popular_resources(
    request: Request,
    limit: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    filters = ResourceFilters(sort="popular", limit=min(limit, request.app.state.settings.MAX_PAGE_SIZE))
    items, _ = resource_service.list_resources(db, filters, None, scope="public")
    return ApiResponse(data=[_resource_to_response(r) for r in items])


@router.get("/board", response_model=ApiResponse[list[GradeColumn]])
def grade_board(
    request: Request,
    search: Optional[str] = None,
    subjects: list[str] = Query([]),
    types: list[str] = Query([]),
    db: Session = Depends(get_db),
):
    """Published resources laid out in one column per grade."""
    cap = request.app.state.settings.MAX_PAGE_SIZE * 10
    items, _ = resource_service.list_resources(db, ResourceFilters(limit=cap), None, scope="public")
    resources = [_resource_to_response(r).model_dump() for r in items]
    grades = [
        {"id": g.id, "grade_level": g.grade_level}
        for g in catalog_service.list_entries(db, catalog_service.GRADES)
    ]
    visible = browse.filter_resources(resources, search=search, subject_ids=subjects, type_ids=types)
    return ApiResponse(data=browse.group_by_grade(visible, grades))


@router.get("/user/my-resources", response_model=ApiResponse[Page[ResourceResponse]])
def my_resources(
    request: Request,
    status: Optional[Literal["draft", "published"]] = None,
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    filters = _filters(request, status, None, None, None, None, "recent", limit, offset)
    items, total = resource_service.list_resources(db, filters, current_user, scope="mine")
    return ApiResponse(data=_page(items, total, filters))


# ── Single resource endpoints ─────────────────────────────────────────────────

@router.get("/{resource_id}", response_model=ApiResponse[ResourceResponse])
def get_resource(
    resource_id: str,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """Fetch one resource and count the view."""
    resource = resource_service.get_resource(db, resource_id, viewer)
    return ApiResponse(data=_resource_to_response(resource))


@router.put("/{resource_id}", response_model=ApiResponse[ResourceResponse])
async def update_resource(
    resource_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_school_or_admin),
):
    """Edit metadata (JSON or multipart); multipart may also replace the files."""
    fields, files = await _read_payload(request)
    check_file_counts({k: len(v) for k, v in files.items()}, FILE_LIMITS)
    data = _build(ResourceUpdate, fields)

    resource = await run_in_threadpool(
        resource_service.update_resource,
        db,
        request.app.state.storage,
        request.app.state.settings,
        resource_id,
        data,
        _incoming(files.get("file", [])),
        _incoming(files.get("preview_image", [])),
        current_user,
    )
    return ApiResponse(message="Resource updated successfully", data=_resource_to_response(resource))


@router.delete("/{resource_id}", response_model=ApiResponse[None])
def delete_resource(
    resource_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_school_or_admin),
):
    resource_service.delete_resource(db, request.app.state.storage, resource_id, current_user)
    return ApiResponse(message="Resource deleted successfully")


@router.get("/{resource_id}/download")
def download_resource(
    resource_id: str,
    request: Request,
    db: Session = Depends(get_db),
    viewer: Optional[User] = Depends(get_optional_user),
):
    """Stream the stored file and count the download."""
    resource, path = resource_service.record_download(db, request.app.state.storage, resource_id, viewer)
    media_type, _ = mimetypes.guess_type(resource.original_name)
    return FileResponse(
        path=str(path),
        filename=resource.original_name,
        media_type=media_type or "application/octet-stream",
    )


@router.post("/{resource_id}/like", response_model=ApiResponse[LikeResponse])
def like_resource(
    resource_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like a resource, or unlike it if already liked."""
    liked, likes = resource_service.toggle_like(db, resource_id, current_user)
    return ApiResponse(
        message="Resource liked" if liked else "Like removed",
        data=LikeResponse(liked=liked, likes=likes),
    )
