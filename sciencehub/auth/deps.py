from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from sciencehub.core.config import settings
from sciencehub.db import get_db
from sciencehub.models import User
from sciencehub.models.user import UserRole, UserStatus

logger = structlog.get_logger(__name__)

DBSession = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str = "unauthorized") -> HTTPException:
    return HTTPException(
        status_code=401,
        detail={"code": "UNAUTHORIZED", "message": detail},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        raise _unauthorized("missing bearer token")
    return auth.removeprefix("Bearer ").strip()


def _user_for_dev_token(db: Session, token: str) -> User:
    prefix = settings.dev_auth_prefix
    if not token.startswith(prefix):
        raise _unauthorized(f"invalid dev token (expected prefix {prefix})")

    email = token.removeprefix(prefix).strip().lower()
    if "@" not in email:
        raise _unauthorized("invalid email in token")

    user = db.scalar(select(User).where(User.email == email))
    if user is None:
        user = User(email=email)
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("dev_user_created", user_id=str(user.id))
    return user


def get_current_user(request: Request, db: DBSession) -> User:
    token = _bearer_token(request)

    # Dev tokens are only honoured outside production
    if settings.auth_mode == "dev" and settings.env in {"local", "dev", "test"}:
        user = _user_for_dev_token(db, token)
    else:
        raise _unauthorized("auth not configured")

    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=403,
            detail={"code": "USER_INACTIVE", "message": "user is not active"},
        )
    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN or (user.email or "").lower() in settings.admin_emails


def require_admin(user: CurrentUser) -> User:
    if not is_admin(user):
        raise HTTPException(
            status_code=403,
            detail={"code": "FORBIDDEN", "message": "admin role required"},
        )
    return user


AdminUser = Annotated[User, Depends(require_admin)]
