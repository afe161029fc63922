from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from magic_yarn.auth.google import GoogleUser
from magic_yarn.auth.roles import ROLE_ADMIN, ROLE_VIEW_ONLY
from magic_yarn.core.settings import get_settings
from magic_yarn.db import models
from magic_yarn.db.repositories import UserProfileRepository

logger = logging.getLogger(__name__)


def ensure_user_profile(db: Session, account: GoogleUser) -> models.UserProfile:
    """Return the profile for *account*, creating it on first sign-in.

    New profiles start as unapproved ``view_only`` users unless the e-mail is
    listed in ``BOOTSTRAP_ADMIN_EMAILS``.  Later sign-ins refresh the name
    and avatar and link the Google account id when missing.
    """
    repo = UserProfileRepository(db)
    profile = repo.get_by_google_sub(account.google_sub) or repo.get_by_email(account.email)

    if profile is None:
        bootstrap_admin = account.email in get_settings().bootstrap_admin_email_set
        profile = repo.create(
            email=account.email,
            google_sub=account.google_sub,
            full_name=account.full_name,
            avatar_url=account.avatar_url,
            role=ROLE_ADMIN if bootstrap_admin else ROLE_VIEW_ONLY,
            is_approved=bootstrap_admin,
        )
        logger.info("Created user profile %s (role=%s)", profile.id, profile.role)
        return profile

    changes: dict[str, object] = {}
    if profile.google_sub is None:
        changes["google_sub"] = account.google_sub
    if account.full_name and account.full_name != profile.full_name:
        changes["full_name"] = account.full_name
    if account.avatar_url and account.avatar_url != profile.avatar_url:
        changes["avatar_url"] = account.avatar_url
    if changes:
        repo.update(profile, **changes)
    return profile
