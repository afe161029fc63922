"""FastAPI dependency injection: database sessions, the signed-in user and permission gates."""
from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import date

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from magic_yarn.auth.roles import has_permission, is_admin
from magic_yarn.core.security import InvalidSessionToken, SessionTokenService, get_token_service
from magic_yarn.core.settings import get_settings
from magic_yarn.db import models
from magic_yarn.db.session import get_db_session


def get_db() -> Generator[Session, None, None]:
    """Yield a SQLAlchemy session; commit on success, rollback on error."""
    yield from get_db_session()


def _request_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(get_settings().session_cookie_name) or None


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    tokens: SessionTokenService = Depends(get_token_service),
) -> models.UserProfile:
    """Return the signed-in user; 401 without a valid session."""
    token = _request_token(request)
    if token is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    try:
        user_id = tokens.read_session(token)
    except InvalidSessionToken:
        raise HTTPException(status_code=401, detail="Session expired or invalid")
    user = db.get(models.UserProfile, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Session user no longer exists")
    return user


def get_approved_user(user: models.UserProfile = Depends(get_current_user)) -> models.UserProfile:
    if not user.is_approved:
        raise HTTPException(status_code=403, detail="Your account is awaiting approval")
    return user


def require_permission(permission: str) -> Callable[..., models.UserProfile]:
    """Dependency factory: the approved caller must hold *permission*."""

    def _dependency(
        user: models.UserProfile = Depends(get_approved_user),
        db: Session = Depends(get_db),
    ) -> models.UserProfile:
        if not has_permission(db, user, permission):
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return user

    return _dependency


def require_admin(user: models.UserProfile = Depends(get_approved_user)) -> models.UserProfile:
    if not is_admin(user):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def get_today() -> date:
    """Calendar date used for planning; overridden in tests."""
    return date.today()
