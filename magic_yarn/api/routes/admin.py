"""Administration routes (admin only), plus the coordinator picker.

GET   /admin/users                       — list user profiles
PATCH /admin/users/{id}/role             — set role
PATCH /admin/users/{id}/approval         — approve or revoke
GET   /admin/regions                     — list regions
GET   /admin/user-regions                — list user/region memberships
PUT   /admin/users/{id}/regions          — replace a user's regions
GET   /admin/permissions                 — role-permission matrix
PUT   /admin/permissions                 — set one matrix cell
GET   /users/assignable                  — approved coordinators
"""
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from magic_yarn.api.deps import get_db, require_admin, require_permission
from magic_yarn.api.serializers import serialize_user
from magic_yarn.auth.roles import (
    ASSIGNABLE_ROLES,
    EDITABLE_ROLES,
    PERMISSIONS,
    ROLES,
    permission_matrix,
    set_role_permission,
    validate_role,
)
from magic_yarn.db import models
from magic_yarn.db.repositories import RegionRepository, UserProfileRepository, UserRegionRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])
users_router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class RoleBody(BaseModel):
    role: str


class ApprovalBody(BaseModel):
    is_approved: bool


class RegionsBody(BaseModel):
    region_codes: list[str]


class PermissionCellBody(BaseModel):
    role: str
    permission: str
    allowed: bool


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get_user(db: Session, user_id: UUID) -> models.UserProfile:
    user = UserProfileRepository(db).get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.get("/users", summary="List user profiles")
def list_users(db: Session = Depends(get_db), _admin: models.UserProfile = Depends(require_admin)):
    return [serialize_user(user) for user in UserProfileRepository(db).list_all()]


@router.patch("/users/{user_id}/role", summary="Set a user's role")
def set_user_role(
    user_id: UUID,
    body: RoleBody,
    db: Session = Depends(get_db),
    admin: models.UserProfile = Depends(require_admin),
):
    user = _get_user(db, user_id)
    try:
        role = validate_role(body.role)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    UserProfileRepository(db).update(user, role=role)
    logger.info("User %s set role of %s to %s", admin.id, user.id, role)
    return serialize_user(user)


@router.patch("/users/{user_id}/approval", summary="Approve or revoke a user")
def set_user_approval(
    user_id: UUID,
    body: ApprovalBody,
    db: Session = Depends(get_db),
    admin: models.UserProfile = Depends(require_admin),
):
    user = _get_user(db, user_id)
    if user.id == admin.id and not body.is_approved:
        raise HTTPException(status_code=400, detail="You cannot revoke your own approval")
    UserProfileRepository(db).update(user, is_approved=body.is_approved)
    logger.info("User %s set approval of %s to %s", admin.id, user.id, body.is_approved)
    return serialize_user(user)


@router.get("/regions", summary="List regions")
def list_regions(db: Session = Depends(get_db), _admin: models.UserProfile = Depends(require_admin)):
    return [
        {"code": region.code, "name": region.name, "sort_order": region.sort_order}
        for region in RegionRepository(db).list_ordered()
    ]


@router.get("/user-regions", summary="List user/region memberships")
def list_user_regions(db: Session = Depends(get_db), _admin: models.UserProfile = Depends(require_admin)):
    return [
        {"user_id": str(link.user_id), "region_code": link.region_code}
        for link in UserRegionRepository(db).list_all()
    ]


@router.put("/users/{user_id}/regions", summary="Replace a user's regions")
def set_user_regions(
    user_id: UUID,
    body: RegionsBody,
    db: Session = Depends(get_db),
    _admin: models.UserProfile = Depends(require_admin),
):
    user = _get_user(db, user_id)
    try:
        links = UserRegionRepository(db).replace_for_user(user.id, body.region_codes)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"user_id": str(user.id), "region_codes": sorted(link.region_code for link in links)}


@router.get("/permissions", summary="Role-permission matrix")
def get_permissions(db: Session = Depends(get_db), _admin: models.UserProfile = Depends(require_admin)):
    return {
        "roles": ROLES,
        "editable_roles": EDITABLE_ROLES,
        "permissions": PERMISSIONS,
        "matrix": permission_matrix(db),
    }


@router.put("/permissions", summary="Set one role-permission cell")
def put_permission(
    body: PermissionCellBody,
    db: Session = Depends(get_db),
    admin: models.UserProfile = Depends(require_admin),
):
    try:
        row = set_role_permission(db, body.role, body.permission, body.allowed)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    logger.info("User %s set %s/%s to %s", admin.id, row.role, row.permission, row.allowed)
    return {"role": row.role, "permission": row.permission, "allowed": row.allowed}


@users_router.get("/assignable", summary="Users who can coordinate recipients and deliveries")
def list_assignable(
    db: Session = Depends(get_db),
    _user: models.UserProfile = Depends(require_permission("recipients.read")),
):
    return [
        {"id": str(user.id), "email": user.email, "full_name": user.full_name, "role": user.role}
        for user in UserProfileRepository(db).list_assignable(ASSIGNABLE_ROLES)
    ]
