"""Sign-in routes.

GET  /auth/google/login     — redirect to Google's consent screen
GET  /auth/google/callback  — finish sign-in, set the session cookie
GET  /auth/me               — current profile, role and permissions
POST /auth/logout           — clear the session cookie
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import RedirectResponse, Response
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_current_user, get_db
from magic_yarn.api.serializers import serialize_user
from magic_yarn.auth.google import GoogleOAuthError, GoogleOAuthProvider
from magic_yarn.auth.profiles import ensure_user_profile
from magic_yarn.auth.roles import granted_permissions
from magic_yarn.core.security import InvalidSessionToken, SessionTokenService, get_token_service
from magic_yarn.core.settings import get_settings
from magic_yarn.db import models

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def get_google_provider() -> GoogleOAuthProvider:
    return GoogleOAuthProvider()


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.app_env not in ("local", "test"),
    )


@router.get("/google/login", summary="Start Google sign-in")
def google_login(
    provider: GoogleOAuthProvider = Depends(get_google_provider),
    tokens: SessionTokenService = Depends(get_token_service),
):
    if not provider.configured:
        raise HTTPException(status_code=503, detail="Google sign-in is not configured")
    return RedirectResponse(provider.get_authorization_url(tokens.issue_state()), status_code=302)


@router.get("/google/callback", summary="Finish Google sign-in")
def google_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: Session = Depends(get_db),
    provider: GoogleOAuthProvider = Depends(get_google_provider),
    tokens: SessionTokenService = Depends(get_token_service),
):
    if error:
        raise HTTPException(status_code=400, detail=f"Google sign-in was cancelled: {error}")
    if not code or not state:
        raise HTTPException(status_code=400, detail="Missing code or state")
    try:
        tokens.verify_state(state)
    except InvalidSessionToken as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        account = provider.authenticate(code)
    except GoogleOAuthError as exc:
        logger.warning("Google sign-in failed: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    profile = ensure_user_profile(db, account)
    response = RedirectResponse(get_settings().frontend_url, status_code=302)
    _set_session_cookie(response, tokens.issue_session(profile.id))
    return response


@router.get("/me", summary="Current user")
def me(db: Session = Depends(get_db), user: models.UserProfile = Depends(get_current_user)):
    return {
        **serialize_user(user),
        "permissions": granted_permissions(db, user),
        "awaiting_approval": not user.is_approved,
    }


@router.post("/logout", status_code=204, summary="Sign out")
def logout(response: Response):
    response.delete_cookie(get_settings().session_cookie_name)
