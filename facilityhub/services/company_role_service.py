"""
Company-defined staff roles.

A role is a named map of permission flags. Company admins and super admins
hold every permission; staff hold what their assigned role grants, or the
company's default Staff permissions when no role is assigned.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from facilityhub.core.exceptions import AppException, ConflictError, NotFoundError
from facilityhub.models.company_role import CompanyRole, PERMISSION_FLAGS
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.company_role import CompanyRoleCreate, CompanyRoleUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.base import apply_changes

logger = logging.getLogger(__name__)

STAFF_ROLE_NAME = "Staff"


def _flags(*granted: str) -> Dict[str, bool]:
    return {flag: flag in granted for flag in PERMISSION_FLAGS}


DEFAULT_ROLES = {
    "Admin": ("Full access to company operations", _flags(*PERMISSION_FLAGS)),
    STAFF_ROLE_NAME: (
        "Day-to-day bookings and inventory",
        _flags("view_invoices", "view_bookings", "view_inventory", "create_records", "edit_records"),
    ),
    "User": ("Read-only access to bookings and inventory", _flags("view_bookings", "view_inventory")),
}


def normalize_permissions(permissions: Optional[Dict[str, bool]]) -> Dict[str, bool]:
    """Every known flag, defaulting to False."""
    permissions = permissions or {}
    return {flag: bool(permissions.get(flag, False)) for flag in PERMISSION_FLAGS}


def get_role(db: Session, role_id: int, company_id: int) -> CompanyRole:
    role = db.get(CompanyRole, role_id)
    if role is None or role.company_id != company_id:
        raise NotFoundError("Role")
    return role


def list_roles(db: Session, company_id: int) -> List[CompanyRole]:
    return db.query(CompanyRole).filter(CompanyRole.company_id == company_id).order_by(CompanyRole.name).all()


def _ensure_unique_name(db: Session, company_id: int, name: str, exclude_id: Optional[int] = None):
    query = db.query(CompanyRole).filter(CompanyRole.company_id == company_id, CompanyRole.name == name)
    if exclude_id is not None:
        query = query.filter(CompanyRole.id != exclude_id)
    if query.first():
        raise ConflictError("A role with this name already exists")


def create_role(db: Session, data: CompanyRoleCreate, actor: User) -> CompanyRole:
    _ensure_unique_name(db, actor.company_id, data.name)
    role = CompanyRole(
        company_id=actor.company_id,
        name=data.name,
        description=data.description,
        permissions=normalize_permissions(data.permissions),
        created_by=actor.id,
    )
    db.add(role)
    db.flush()
    AuditService(db).log_user_action(actor, "create_company_role", "company_role", role.id, {"name": role.name})
    db.commit()
    db.refresh(role)
    return role


def update_role(db: Session, role_id: int, data: CompanyRoleUpdate, actor: User) -> CompanyRole:
    role = get_role(db, role_id, actor.company_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("name") and changes["name"] != role.name:
        _ensure_unique_name(db, role.company_id, changes["name"], exclude_id=role.id)
    if changes.get("permissions") is not None:
        # Partial flag maps merge over the stored ones
        merged = dict(role.permissions or {})
        merged.update(changes["permissions"])
        changes["permissions"] = normalize_permissions(merged)
    changes = apply_changes(role, changes)
    AuditService(db).log_user_action(actor, "update_company_role", "company_role", role.id, changes)
    db.commit()
    db.refresh(role)
    return role


def delete_role(db: Session, role_id: int, actor: User):
    role = get_role(db, role_id, actor.company_id)
    holders = db.query(User).filter(User.company_role_id == role.id).count()
    if holders:
        raise AppException(
            f"Role is assigned to {holders} user(s); reassign them first",
            error_code="ROLE_IN_USE",
            details={"users": holders},
        )
    AuditService(db).log_user_action(actor, "delete_company_role", "company_role", role.id, {"name": role.name})
    db.delete(role)
    db.commit()


def _company_user(db: Session, user_id: int, company_id: int) -> User:
    user = db.get(User, user_id)
    if user is None or user.company_id != company_id:
        raise NotFoundError("User")
    return user


def assign_role(db: Session, user_id: int, role_id: int, actor: User) -> User:
    role = get_role(db, role_id, actor.company_id)
    user = _company_user(db, user_id, actor.company_id)
    user.company_role_id = role.id
    AuditService(db).log_user_action(actor, "assign_company_role", "user", user.id, {"role_id": role.id, "role": role.name})
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.id} assigned role {role.id} in company {role.company_id}")
    return user


def unassign_role(db: Session, user_id: int, actor: User) -> User:
    user = _company_user(db, user_id, actor.company_id)
    previous = user.company_role_id
    user.company_role_id = None
    AuditService(db).log_user_action(actor, "unassign_company_role", "user", user.id, {"role_id": previous})
    db.commit()
    db.refresh(user)
    return user


def role_members(db: Session, role_id: int, company_id: int) -> List[User]:
    role = get_role(db, role_id, company_id)
    return db.query(User).filter(User.company_role_id == role.id).order_by(User.id).all()


def initialize_default_roles(db: Session, company_id: int, actor: Optional[User] = None) -> List[CompanyRole]:
    """Create any missing default roles for a company. Safe to call repeatedly.

    The caller commits.
    """
    existing = {
        name for (name,) in db.query(CompanyRole.name).filter(CompanyRole.company_id == company_id).all()
    }
    created = []
    for name, (description, permissions) in DEFAULT_ROLES.items():
        if name in existing:
            continue
        role = CompanyRole(
            company_id=company_id,
            name=name,
            description=description,
            permissions=dict(permissions),
            created_by=actor.id if actor else None,
        )
        db.add(role)
        created.append(role)
    if created:
        db.flush()
        logger.info(f"Seeded {len(created)} default role(s) for company {company_id}")
    return created


def effective_permissions(db: Session, user: User) -> Dict[str, bool]:
    if user.role in (UserRole.SUPER_ADMIN, UserRole.ADMIN):
        return _flags(*PERMISSION_FLAGS)
    if user.role != UserRole.STAFF:
        return _flags()
    if user.company_role_id is not None:
        role = db.get(CompanyRole, user.company_role_id)
        if role is not None and role.company_id == user.company_id:
            return normalize_permissions(role.permissions)
    staff_role = db.query(CompanyRole).filter(
        CompanyRole.company_id == user.company_id, CompanyRole.name == STAFF_ROLE_NAME
    ).first()
    if staff_role is not None:
        return normalize_permissions(staff_role.permissions)
    return dict(DEFAULT_ROLES[STAFF_ROLE_NAME][1])


def has_permission(db: Session, user: User, flag: str) -> bool:
    return effective_permissions(db, user).get(flag, False)
