from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging
from facilityhub.core.exceptions import AccessDeniedError, ConflictError, NotFoundError
from facilityhub.core.pagination import PageParams, pagination_params, paginate
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.user import User, UserRole
from facilityhub.routers.auth_deps import require_staff, require_admin
from facilityhub.services import auth as auth_service
from facilityhub.services.audit import AuditService
from facilityhub.services import subscription_service
from facilityhub.schemas.auth import StaffCreate, UserResponse, UserStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=ApiResponse[List[UserResponse]])
def list_company_users(
    role: Optional[UserRole] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    query = db.query(User).filter(User.company_id == current_user.company_id)
    if role:
        query = query.filter(User.role == role)
    users, meta = paginate(query.order_by(User.id), params)
    return ApiResponse.ok([UserResponse.model_validate(u) for u in users], pagination=meta)


@router.post("", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_company_user(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    """Add a staff member or co-admin to the caller's company."""
    if data.role not in (UserRole.ADMIN, UserRole.STAFF):
        raise AccessDeniedError("Only admin or staff accounts can be created here")
    if db.query(User).filter(User.email == data.email).first():
        raise ConflictError("Email already registered")
    subscription_service.enforce_limit(db, current_user.company, "max_users")

    user = User(
        email=data.email,
        hashed_password=auth_service.get_password_hash(data.password),
        full_name=data.full_name,
        phone=data.phone,
        role=data.role,
        company_id=current_user.company_id,
        is_active=True,
    )
    db.add(user)
    db.flush()
    AuditService(db).log_user_action(current_user, "create_user", "user", user.id, {"email": user.email, "role": user.role.value})
    db.commit()
    db.refresh(user)
    return ApiResponse.ok(UserResponse.model_validate(user), message="User created")


@router.patch("/{user_id}/status", response_model=ApiResponse[UserResponse])
def set_user_status(
    user_id: int,
    data: UserStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    user = db.get(User, user_id)
    if user is None or user.company_id != current_user.company_id:
        raise NotFoundError("User")
    if user.id == current_user.id:
        raise AccessDeniedError("You cannot change your own status")
    user.is_active = data.is_active
    AuditService(db).log_user_action(current_user, "set_user_status", "user", user.id, {"is_active": data.is_active})
    db.commit()
    db.refresh(user)
    return ApiResponse.ok(UserResponse.model_validate(user), message="User status updated")
