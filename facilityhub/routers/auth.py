from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from datetime import timedelta
import logging
from facilityhub.core.clock import utcnow
from facilityhub.core.config import settings
from facilityhub.core.exceptions import AuthenticationError, ConflictError
from facilityhub.core.limiter import limiter
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.user import User, UserRole, UserSession
from facilityhub.routers.auth_deps import get_current_user
from facilityhub.services import auth as auth_service
from facilityhub.services.audit import AuditService
from facilityhub.schemas.auth import (
    LoginRequest, Token, UserRegister, UserResponse, UserUpdate, PasswordChange, RefreshRequest
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def _issue_tokens(db: Session, user: User, request: Request) -> dict:
    access_token = auth_service.create_access_token(data=auth_service.build_token_claims(user))
    refresh_token = auth_service.create_refresh_token(data={"sub": user.email})

    session = UserSession(
        user_id=user.id,
        refresh_token=refresh_token,
        expires_at=utcnow() + timedelta(days=auth_service.REFRESH_TOKEN_EXPIRE_DAYS),
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    db.add(session)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role.value,
            "company_id": user.company_id,
        },
    }


@router.post("/register", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def register(data: UserRegister, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == data.email).first():
        raise ConflictError("Email already registered")

    user = User(
        email=data.email,
        hashed_password=auth_service.get_password_hash(data.password),
        full_name=data.full_name,
        phone=data.phone,
        role=UserRole.USER,
        is_active=True,
    )
    db.add(user)
    db.flush()
    AuditService.log(
        db,
        action="register",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": user.email},
    )
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return ApiResponse.ok(UserResponse.model_validate(user), message="Registration successful")


@router.post("/login", response_model=ApiResponse[Token])
@limiter.limit(settings.rate_limit_login)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == login_data.email).first()
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            user_role=None,
            details={"email": login_data.email, "reason": "invalid_credentials"}
        )
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    tokens = _issue_tokens(db, user, request)
    AuditService.log(
        db,
        action="login",
        entity_type="user",
        entity_id=user.id,
        user_id=user.id,
        user_role=user.role,
        details={"email": user.email},
        company_id=user.company_id
    )
    db.commit()
    return ApiResponse.ok(tokens, message="Login successful")


@router.post("/refresh", response_model=ApiResponse[Token])
def refresh_token(request: Request, body: RefreshRequest, db: Session = Depends(get_db)):
    payload = auth_service.decode_access_token(body.refresh_token)
    if payload is None or payload.get("type") != "refresh":
        raise AuthenticationError("Invalid refresh token")

    db_session = db.query(UserSession).filter(
        UserSession.refresh_token == body.refresh_token,
        UserSession.is_revoked == False,  # noqa: E712
        UserSession.expires_at > utcnow()
    ).first()
    if not db_session:
        raise AuthenticationError("Session expired or revoked")

    user = db_session.user
    if not user or not user.is_active:
        raise AuthenticationError("User inactive or not found")

    # Rotation: revoke old, issue new
    db_session.is_revoked = True
    tokens = _issue_tokens(db, user, request)
    db.commit()
    return ApiResponse.ok(tokens, message="Token refreshed")


@router.post("/logout", response_model=ApiResponse[None])
def logout(body: RefreshRequest, db: Session = Depends(get_db)):
    db_session = db.query(UserSession).filter(UserSession.refresh_token == body.refresh_token).first()
    if db_session:
        db_session.is_revoked = True
        db.commit()
    return ApiResponse.ok(message="Successfully logged out")


@router.get("/me", response_model=ApiResponse[UserResponse])
def get_me(current_user: User = Depends(get_current_user)):
    return ApiResponse.ok(UserResponse.model_validate(current_user))


@router.put("/me", response_model=ApiResponse[UserResponse])
def update_me(
    update_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update current user's profile information."""
    if update_data.email and update_data.email != current_user.email:
        existing_user = db.query(User).filter(User.email == update_data.email).first()
        if existing_user:
            raise ConflictError("Email already in use")
        current_user.email = update_data.email

    if update_data.full_name is not None:
        current_user.full_name = update_data.full_name
    if update_data.phone is not None:
        current_user.phone = update_data.phone

    AuditService.log(
        db,
        action="update_profile",
        entity_type="user",
        entity_id=current_user.id,
        user_id=current_user.id,
        user_role=current_user.role,
        details={"email": current_user.email},
        company_id=current_user.company_id,
    )
    db.commit()
    db.refresh(current_user)
    return ApiResponse.ok(UserResponse.model_validate(current_user), message="Profile updated")


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    data: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Securely update current user's password."""
    if not auth_service.verify_password(data.current_password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Incorrect current password")

    current_user.hashed_password = auth_service.get_password_hash(data.new_password)
    AuditService.log(
        db,
        action="change_password",
        entity_type="user",
        entity_id=current_user.id,
        user_id=current_user.id,
        user_role=current_user.role,
        details={"status": "success"},
        company_id=current_user.company_id,
    )
    db.commit()
    return ApiResponse.ok(message="Password updated successfully")
