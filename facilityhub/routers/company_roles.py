from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Dict, List
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_admin, require_staff
from facilityhub.schemas.company_role import (
    CompanyRoleCreate, CompanyRoleResponse, CompanyRoleUpdate, RoleAssignment, RoleMember
)
from facilityhub.services import company_role_service

router = APIRouter(prefix="/company-roles", tags=["company-roles"])


@router.get("", response_model=ApiResponse[List[CompanyRoleResponse]])
def list_roles(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    roles = company_role_service.list_roles(db, current_user.company_id)
    return ApiResponse.ok([CompanyRoleResponse.model_validate(r) for r in roles])


@router.get("/me/permissions", response_model=ApiResponse[Dict[str, bool]])
def my_permissions(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ApiResponse.ok(company_role_service.effective_permissions(db, current_user))


@router.post("/defaults", response_model=ApiResponse[List[CompanyRoleResponse]])
def initialize_defaults(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    created = company_role_service.initialize_default_roles(db, current_user.company_id, current_user)
    db.commit()
    roles = company_role_service.list_roles(db, current_user.company_id)
    return ApiResponse.ok(
        [CompanyRoleResponse.model_validate(r) for r in roles],
        message=f"{len(created)} default role(s) created",
    )


@router.post("", response_model=ApiResponse[CompanyRoleResponse], status_code=status.HTTP_201_CREATED)
def create_role(
    data: CompanyRoleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    role = company_role_service.create_role(db, data, current_user)
    return ApiResponse.ok(CompanyRoleResponse.model_validate(role), message="Role created")


@router.post("/assign", response_model=ApiResponse[RoleMember])
def assign_role(
    data: RoleAssignment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    user = company_role_service.assign_role(db, data.user_id, data.role_id, current_user)
    return ApiResponse.ok(RoleMember.model_validate(user), message="Role assigned")


@router.delete("/assign/{user_id}", response_model=ApiResponse[RoleMember])
def unassign_role(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    user = company_role_service.unassign_role(db, user_id, current_user)
    return ApiResponse.ok(RoleMember.model_validate(user), message="Role removed")


@router.get("/{role_id}", response_model=ApiResponse[CompanyRoleResponse])
def get_role(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    role = company_role_service.get_role(db, role_id, current_user.company_id)
    return ApiResponse.ok(CompanyRoleResponse.model_validate(role))


@router.get("/{role_id}/users", response_model=ApiResponse[List[RoleMember]])
def role_members(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    users = company_role_service.role_members(db, role_id, current_user.company_id)
    return ApiResponse.ok([RoleMember.model_validate(u) for u in users])


@router.put("/{role_id}", response_model=ApiResponse[CompanyRoleResponse])
def update_role(
    role_id: int,
    data: CompanyRoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    role = company_role_service.update_role(db, role_id, data, current_user)
    return ApiResponse.ok(CompanyRoleResponse.model_validate(role), message="Role updated")


@router.delete("/{role_id}", response_model=ApiResponse[None])
def delete_role(
    role_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    company_role_service.delete_role(db, role_id, current_user)
    return ApiResponse.ok(message="Role deleted")
