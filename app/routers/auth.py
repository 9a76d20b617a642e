"""Auth router — login and current user info.

Schools never self-register; admins create their accounts in ``users``.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import Forbidden, Unauthorized
from app.middleware.auth import create_access_token, get_current_user, verify_password
from app.middleware.rate_limit import login_rate_limit
from app.models.user import User
from app.schemas.auth import LoginRequest, TokenResponse, UserResponse
from app.schemas.common import ApiResponse

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=ApiResponse[TokenResponse],
    dependencies=[Depends(login_rate_limit)],
)
def login(request: Request, req: LoginRequest, db: Session = Depends(get_db)):
    """Login and get JWT token."""
    user = db.query(User).filter(User.email == req.email.strip().lower()).first()
    if not user or not verify_password(req.password, user.password_hash):
        raise Unauthorized("Invalid email or password")
    if user.status != "active":
        raise Forbidden(f"Account is {user.status}")

    token = create_access_token({"sub": user.id, "role": user.role}, request.app.state.settings)
    return ApiResponse(
        message="Login successful",
        data=TokenResponse(access_token=token, user=UserResponse.model_validate(user)),
    )


@router.get("/me", response_model=ApiResponse[UserResponse])
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user info."""
    return ApiResponse(data=UserResponse.model_validate(current_user))
