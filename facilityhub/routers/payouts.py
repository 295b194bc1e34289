from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.exceptions import AccessDeniedError
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.company import Company
from facilityhub.models.payout import PayoutStatus
from facilityhub.models.user import User, UserRole
from facilityhub.routers.auth_deps import get_current_company, get_current_user, require_admin, require_super_admin
from facilityhub.schemas.payout import PayoutBalance, PayoutReject, PayoutRequest, PayoutResponse
from facilityhub.services import payout_service

router = APIRouter(prefix="/payouts", tags=["payouts"])


@router.get("/balance", response_model=ApiResponse[PayoutBalance])
def payout_balance(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    return ApiResponse.ok(payout_service.get_balance(db, company))


@router.post("", response_model=ApiResponse[PayoutResponse], status_code=status.HTTP_201_CREATED)
def request_payout(
    data: PayoutRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
    company: Company = Depends(get_current_company),
):
    payout = payout_service.request_payout(db, company, data, current_user)
    return ApiResponse.ok(PayoutResponse.model_validate(payout), message="Payout requested")


@router.get("", response_model=ApiResponse[List[PayoutResponse]])
def list_payouts(
    status: Optional[PayoutStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.role not in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        raise AccessDeniedError("Access denied. Required roles: ['admin', 'super_admin']")
    payouts, meta = payout_service.list_payouts(db, current_user, params, status)
    return ApiResponse.ok([PayoutResponse.model_validate(p) for p in payouts], pagination=meta)


@router.post("/{payout_id}/approve", response_model=ApiResponse[PayoutResponse])
def approve_payout(
    payout_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    payout = payout_service.approve_payout(db, payout_id, current_user)
    return ApiResponse.ok(PayoutResponse.model_validate(payout), message="Payout approved")


@router.post("/{payout_id}/reject", response_model=ApiResponse[PayoutResponse])
def reject_payout(
    payout_id: int,
    data: PayoutReject,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    payout = payout_service.reject_payout(db, payout_id, data.reason, current_user)
    return ApiResponse.ok(PayoutResponse.model_validate(payout), message="Payout rejected")


@router.post("/{payout_id}/process", response_model=ApiResponse[PayoutResponse])
def process_payout(
    payout_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    payout = payout_service.process_payout(db, payout_id, current_user)
    return ApiResponse.ok(PayoutResponse.model_validate(payout), message="Payout processing")
