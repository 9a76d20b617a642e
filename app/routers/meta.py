"""Meta router — grades, subjects, resource types, tags and library stats.

Reads are public; writes are admin only.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.middleware.auth import require_admin
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.meta import (
    GradeCreate, GradeUpdate, GradeResponse,
    SubjectCreate, SubjectUpdate, SubjectResponse,
    ResourceTypeCreate, ResourceTypeUpdate, ResourceTypeResponse,
    TagCreate, TagUpdate, TagResponse,
    StatsResponse,
)
from app.services import catalog_service
from app.services.catalog_service import GRADES, SUBJECTS, RESOURCE_TYPES, TAGS
from app.services.resource_service import library_stats

router = APIRouter(prefix="/api/meta", tags=["meta"])


# ── Grades ────────────────────────────────────────────────────────────────────

@router.get("/grades", response_model=ApiResponse[list[GradeResponse]])
def list_grades(db: Session = Depends(get_db)):
    return ApiResponse(data=[GradeResponse.model_validate(g) for g in catalog_service.list_entries(db, GRADES)])


@router.post("/grades", response_model=ApiResponse[GradeResponse], status_code=201)
def create_grade(req: GradeCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    grade = catalog_service.create_entry(db, GRADES, req.model_dump())
    return ApiResponse(message="Grade created successfully", data=GradeResponse.model_validate(grade))


@router.put("/grades/{grade_id}", response_model=ApiResponse[GradeResponse])
def update_grade(
    grade_id: str,
    req: GradeUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    grade = catalog_service.update_entry(db, GRADES, grade_id, req.model_dump(exclude_unset=True))
    return ApiResponse(message="Grade updated successfully", data=GradeResponse.model_validate(grade))


@router.delete("/grades/{grade_id}", response_model=ApiResponse[None])
def delete_grade(grade_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    catalog_service.delete_entry(db, GRADES, grade_id)
    return ApiResponse(message="Grade deleted successfully")


# ── Subjects ──────────────────────────────────────────────────────────────────

@router.get("/subjects", response_model=ApiResponse[list[SubjectResponse]])
def list_subjects(db: Session = Depends(get_db)):
    return ApiResponse(data=[SubjectResponse.model_validate(s) for s in catalog_service.list_entries(db, SUBJECTS)])


@router.post("/subjects", response_model=ApiResponse[SubjectResponse], status_code=201)
def create_subject(req: SubjectCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    subject = catalog_service.create_entry(db, SUBJECTS, req.model_dump())
    return ApiResponse(message="Subject created successfully", data=SubjectResponse.model_validate(subject))


@router.put("/subjects/{subject_id}", response_model=ApiResponse[SubjectResponse])
def update_subject(
    subject_id: str,
    req: SubjectUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    subject = catalog_service.update_entry(db, SUBJECTS, subject_id, req.model_dump(exclude_unset=True))
    return ApiResponse(message="Subject updated successfully", data=SubjectResponse.model_validate(subject))


@router.delete("/subjects/{subject_id}", response_model=ApiResponse[None])
def delete_subject(subject_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    catalog_service.delete_entry(db, SUBJECTS, subject_id)
    return ApiResponse(message="Subject deleted successfully")


# ── Resource types ────────────────────────────────────────────────────────────

@router.get("/resource-types", response_model=ApiResponse[list[ResourceTypeResponse]])
def list_resource_types(db: Session = Depends(get_db)):
    return ApiResponse(data=[ResourceTypeResponse.model_validate(t) for t in catalog_service.list_entries(db, RESOURCE_TYPES)])


@router.post("/resource-types", response_model=ApiResponse[ResourceTypeResponse], status_code=201)
def create_resource_type(
    req: ResourceTypeCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    resource_type = catalog_service.create_entry(db, RESOURCE_TYPES, req.model_dump())
    return ApiResponse(message="Resource type created successfully", data=ResourceTypeResponse.model_validate(resource_type))


@router.put("/resource-types/{type_id}", response_model=ApiResponse[ResourceTypeResponse])
def update_resource_type(
    type_id: str,
    req: ResourceTypeUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    resource_type = catalog_service.update_entry(
        db, RESOURCE_TYPES, type_id, req.model_dump(exclude_unset=True)
    )
    return ApiResponse(message="Resource type updated successfully", data=ResourceTypeResponse.model_validate(resource_type))


@router.delete("/resource-types/{type_id}", response_model=ApiResponse[None])
def delete_resource_type(type_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    catalog_service.delete_entry(db, RESOURCE_TYPES, type_id)
    return ApiResponse(message="Resource type deleted successfully")


# ── Tags ──────────────────────────────────────────────────────────────────────

@router.get("/tags", response_model=ApiResponse[list[TagResponse]])
def list_tags(db: Session = Depends(get_db)):
    return ApiResponse(data=[TagResponse.model_validate(t) for t in catalog_service.list_entries(db, TAGS)])


@router.post("/tags", response_model=ApiResponse[TagResponse], status_code=201)
def create_tag(req: TagCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    tag = catalog_service.create_entry(db, TAGS, req.model_dump())
    return ApiResponse(message="Tag created successfully", data=TagResponse.model_validate(tag))


@router.put("/tags/{tag_id}", response_model=ApiResponse[TagResponse])
def update_tag(
    tag_id: str,
    req: TagUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    tag = catalog_service.update_entry(db, TAGS, tag_id, req.model_dump(exclude_unset=True))
    return ApiResponse(message="Tag updated successfully", data=TagResponse.model_validate(tag))


@router.delete("/tags/{tag_id}", response_model=ApiResponse[None])
def delete_tag(tag_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    """Delete a tag and detach it from every resource that carried it."""
    catalog_service.delete_entry(db, TAGS, tag_id)
    return ApiResponse(message="Tag deleted successfully")


# ── Stats ─────────────────────────────────────────────────────────────────────

@router.get("/stats", response_model=ApiResponse[StatsResponse])
def get_stats(db: Session = Depends(get_db)):
    return ApiResponse(data=StatsResponse(**library_stats(db)))
