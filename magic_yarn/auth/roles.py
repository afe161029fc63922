"""User roles and the role-permission matrix.

Roles:
- admin: every permission, not editable
- contacts_manager: maintains recipients and deliveries
- delivery_coordinator: reads recipients, maintains deliveries
- view_only: read-only access

Grants for the non-admin roles are stored in ``role_permissions``; a
missing row falls back to :data:`DEFAULT_GRANTS`.  Users awaiting approval
hold no permissions at all.
"""
from __future__ import annotations

from sqlalchemy.orm import Session

from magic_yarn.db import models
from magic_yarn.db.repositories import RolePermissionRepository

ROLE_ADMIN = "admin"
ROLE_CONTACTS_MANAGER = "contacts_manager"
ROLE_DELIVERY_COORDINATOR = "delivery_coordinator"
ROLE_VIEW_ONLY = "view_only"

ROLES = [ROLE_ADMIN, ROLE_CONTACTS_MANAGER, ROLE_DELIVERY_COORDINATOR, ROLE_VIEW_ONLY]

VALID_ROLES: frozenset[str] = frozenset(ROLES)

EDITABLE_ROLES = [ROLE_CONTACTS_MANAGER, ROLE_DELIVERY_COORDINATOR, ROLE_VIEW_ONLY]

ASSIGNABLE_ROLES = [ROLE_ADMIN, ROLE_CONTACTS_MANAGER, ROLE_DELIVERY_COORDINATOR]

PERMISSIONS = [
    "recipients.read",
    "recipients.write",
    "recipients.delete",
    "deliveries.read",
    "deliveries.write",
    "deliveries.delete",
]

VALID_PERMISSIONS: frozenset[str] = frozenset(PERMISSIONS)

DEFAULT_GRANTS: dict[str, frozenset[str]] = {
    ROLE_CONTACTS_MANAGER: frozenset(
        {"recipients.read", "recipients.write", "deliveries.read", "deliveries.write"}
    ),
    ROLE_DELIVERY_COORDINATOR: frozenset({"recipients.read", "deliveries.read", "deliveries.write"}),
    ROLE_VIEW_ONLY: frozenset({"recipients.read", "deliveries.read"}),
}


def resolve_role(role: str | None) -> str:
    """Return *role* when known, otherwise ``view_only``."""
    return role if role in VALID_ROLES else ROLE_VIEW_ONLY


def validate_role(role: str) -> str:
    if role not in VALID_ROLES:
        raise ValueError(f"Unknown role {role!r}; must be one of {ROLES}")
    return role


def validate_permission(permission: str) -> str:
    if permission not in VALID_PERMISSIONS:
        raise ValueError(f"Unknown permission {permission!r}; must be one of {PERMISSIONS}")
    return permission


def default_allowed(role: str, permission: str) -> bool:
    if role == ROLE_ADMIN:
        return True
    return permission in DEFAULT_GRANTS.get(role, frozenset())


def role_permissions(db: Session, role: str) -> dict[str, bool]:
    """Effective ``{permission: allowed}`` for *role*, stored rows over defaults."""
    role = resolve_role(role)
    if role == ROLE_ADMIN:
        return {permission: True for permission in PERMISSIONS}
    effective = {permission: default_allowed(role, permission) for permission in PERMISSIONS}
    for row in RolePermissionRepository(db).list_for_roles([role]):
        if row.permission in effective:
            effective[row.permission] = bool(row.allowed)
    return effective


def granted_permissions(db: Session, user: models.UserProfile) -> list[str]:
    if not user.is_approved:
        return []
    effective = role_permissions(db, user.role)
    return [permission for permission in PERMISSIONS if effective[permission]]


def has_permission(db: Session, user: models.UserProfile | None, permission: str) -> bool:
    """Return whether *user* currently holds *permission*."""
    if user is None or not user.is_approved:
        return False
    role = resolve_role(user.role)
    if role == ROLE_ADMIN:
        return True
    if permission not in VALID_PERMISSIONS:
        return False
    row = RolePermissionRepository(db).get_cell(role, permission)
    if row is not None:
        return bool(row.allowed)
    return default_allowed(role, permission)


def is_admin(user: models.UserProfile | None) -> bool:
    return user is not None and user.is_approved and resolve_role(user.role) == ROLE_ADMIN


def permission_matrix(db: Session) -> dict[str, dict[str, bool]]:
    """Effective grants for every role, admin included."""
    return {role: role_permissions(db, role) for role in ROLES}


def set_role_permission(db: Session, role: str, permission: str, allowed: bool) -> models.RolePermission:
    """Store one matrix cell for an editable role.

    Raises ``ValueError`` for unknown permissions and for roles outside
    :data:`EDITABLE_ROLES`.
    """
    validate_permission(permission)
    if role not in EDITABLE_ROLES:
        raise ValueError(f"Role {role!r} is not editable; must be one of {EDITABLE_ROLES}")
    return RolePermissionRepository(db).upsert(role, permission, allowed)
