"""Users router — admin management of school accounts."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db, commit_or_conflict
from app.errors import Conflict, NotFound
from app.middleware.auth import hash_password, require_admin
from app.models.resource import Resource
from app.models.user import User
from app.schemas.auth import SchoolCreate, UserResponse, UserStatusUpdate
from app.schemas.common import ApiResponse

router = APIRouter(prefix="/api/users", tags=["users"])


def _get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


@router.get("", response_model=ApiResponse[list[UserResponse]])
def list_users(
    role: Optional[str] = None,
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    users = query.order_by(User.created_at.desc()).all()
    return ApiResponse(data=[UserResponse.model_validate(u) for u in users])


@router.post("/schools", response_model=ApiResponse[UserResponse], status_code=201)
def create_school(
    req: SchoolCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Create a school account (admin only)."""
    email = req.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise Conflict("Email already registered")

    user = User(
        name=req.name,
        email=email,
        password_hash=hash_password(req.password),
        role="school",
        organization=req.organization,
        designation=req.designation,
        status="active",
    )
    db.add(user)
    commit_or_conflict(db, "Email already registered")
    db.refresh(user)
    return ApiResponse(message="School account created successfully", data=UserResponse.model_validate(user))


@router.put("/{user_id}/status", response_model=ApiResponse[UserResponse])
def update_status(
    user_id: str,
    req: UserStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user(db, user_id)
    if user.id == admin.id and req.status != "active":
        raise Conflict("You cannot deactivate your own account")
    user.status = req.status
    db.commit()
    db.refresh(user)
    return ApiResponse(message=f"User status updated to {user.status}", data=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    user = _get_user(db, user_id)
    if user.id == admin.id:
        raise Conflict("You cannot delete your own account")
    owned = db.query(func.count(Resource.id)).filter(Resource.created_by == user.id).scalar()
    if owned:
        raise Conflict("Cannot delete a user who still owns resources")
    db.delete(user)
    db.commit()
    return ApiResponse(message="User deleted successfully")
