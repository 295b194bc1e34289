"""
RBAC Dependencies.
Role checks and the company membership / active-company gates for FastAPI endpoints.
"""
import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import List, Callable, Optional
from facilityhub.database import get_db
from facilityhub.core.exceptions import AccessDeniedError, CompanyInactiveError, NotFoundError
from facilityhub.models.company import Company
from facilityhub.models.user import User, UserRole
from facilityhub.services import auth as auth_service
from facilityhub.services.company_role_service import has_permission
from facilityhub.schemas.auth import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def _credentials_error(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the current user from the JWT token.
    """
    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise _credentials_error("Could not validate credentials")

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise _credentials_error("TOKEN_EXPIRED")

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise _credentials_error("Invalid token type")

    token_data = TokenData(email=payload.get("sub"), role=payload.get("role"))
    user_id = payload.get("user_id")
    if user_id is None and token_data.email is None:
        logger.warning("Authentication failed: Missing subject (email) in token")
        raise _credentials_error("Missing subject in token")

    # user_id survives an email change; older tokens only carry the email
    if user_id is not None:
        user = db.get(User, user_id)
    else:
        user = db.query(User).filter(User.email == token_data.email).first()

    if user is None:
        logger.warning(f"Authentication failed: User {token_data.email} not found in database")
        raise _credentials_error("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: User {token_data.email} is inactive")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive"
        )
    return user


def get_optional_user(token: Optional[str] = Depends(optional_oauth2_scheme), db: Session = Depends(get_db)) -> Optional[User]:
    """Like get_current_user, but anonymous requests yield None."""
    if not token:
        return None
    return get_current_user(token, db)


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the user has one of the allowed roles.

    Usage:
        @router.get("/admin-only")
        def admin_endpoint(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            raise AccessDeniedError(
                f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
            )
        return current_user
    return role_checker


def require_company_member(current_user: User = Depends(get_current_user)) -> User:
    """
    Ensures the user belongs to a company.
    SUPER_ADMIN operates across companies without one.
    """
    if current_user.role == UserRole.SUPER_ADMIN:
        return current_user
    if current_user.company_id is None:
        raise AccessDeniedError("User does not belong to any company")
    return current_user


def require_active_company(
    current_user: User = Depends(require_company_member),
    db: Session = Depends(get_db),
) -> User:
    """
    Company-scoped write gate: the caller's company must exist and be active.
    """
    if current_user.role == UserRole.SUPER_ADMIN:
        return current_user
    company = db.get(Company, current_user.company_id)
    if company is None:
        raise NotFoundError("Company")
    if not company.is_active:
        logger.info(f"Blocked request from inactive company {company.id}")
        raise CompanyInactiveError()
    return current_user


def require_staff(active_company: bool = False) -> Callable:
    """Admin or staff of a company (optionally requiring the company to be active)."""
    gate = require_active_company if active_company else require_company_member

    def staff_checker(current_user: User = Depends(gate)):
        if current_user.role not in (UserRole.ADMIN, UserRole.STAFF):
            raise AccessDeniedError("Access denied. Required roles: ['admin', 'staff']")
        return current_user
    return staff_checker


def require_admin(active_company: bool = False) -> Callable:
    """Company admin only (optionally requiring the company to be active)."""
    gate = require_active_company if active_company else require_company_member

    def admin_checker(current_user: User = Depends(gate)):
        if current_user.role != UserRole.ADMIN:
            raise AccessDeniedError("Access denied. Required roles: ['admin']")
        return current_user
    return admin_checker


require_super_admin = require_role([UserRole.SUPER_ADMIN])


def get_current_company(
    current_user: User = Depends(require_company_member),
    db: Session = Depends(get_db),
) -> Company:
    if current_user.company_id is None:
        raise AccessDeniedError("User does not belong to any company")
    company = db.get(Company, current_user.company_id)
    if company is None:
        raise NotFoundError("Company")
    return company


def require_permission(flag: str, active_company: bool = False) -> Callable:
    """Company staff whose effective role grants `flag`. Admins hold every flag."""
    staff_gate = require_staff(active_company=active_company)

    def permission_checker(
        current_user: User = Depends(staff_gate),
        db: Session = Depends(get_db),
    ):
        if not has_permission(db, current_user, flag):
            raise AccessDeniedError(f"Access denied. Missing permission: {flag}")
        return current_user
    return permission_checker
