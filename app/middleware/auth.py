"""JWT authentication middleware and dependencies."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import Settings
from app.database import get_db
from app.errors import Forbidden, Unauthorized
from app.models.user import User

security = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt directly (passlib is broken with bcrypt>=4.1)."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(pwd_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(
        plain_password.encode("utf-8"),
        hashed_password.encode("utf-8"),
    )


def create_access_token(data: dict, settings: Settings) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """The caller if a bearer token was sent, else None. A bad token is still an error."""
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials, request.app.state.settings)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token payload")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise Unauthorized("User not found")
    if user.status != "active":
        raise Forbidden("Account is not active")
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise Unauthorized("Access token required")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise Forbidden("Admin role required")
    return current_user


def require_school_or_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in ("admin", "school"):
        raise Forbidden("School or admin role required")
    return current_user
