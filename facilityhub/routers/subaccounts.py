from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Any, Optional
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.company import Company
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_company, get_current_user, require_admin
from facilityhub.schemas.subaccount import SubaccountCreate, SubaccountUpdate
from facilityhub.services import subaccount_service

router = APIRouter(prefix="/subaccounts", tags=["subaccounts"])


@router.get("/banks", response_model=ApiResponse[Any])
def list_banks(
    country: str = "ghana",
    currency: Optional[str] = None,
    type: Optional[str] = None,
    current_user: User = Depends(get_current_user),
):
    return ApiResponse.ok(subaccount_service.list_banks(country, currency, type))


@router.get("/resolve", response_model=ApiResponse[Any])
def resolve_account(
    account_number: str = Query(..., min_length=4),
    bank_code: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_user),
):
    return ApiResponse.ok(subaccount_service.resolve_account(account_number, bank_code))


@router.post("", response_model=ApiResponse[Any], status_code=status.HTTP_201_CREATED)
def create_subaccount(
    data: SubaccountCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    result = subaccount_service.create_subaccount(db, company, data, current_user)
    return ApiResponse.ok(result, message="Subaccount created")


@router.get("/me", response_model=ApiResponse[Any])
def get_my_subaccount(
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    return ApiResponse.ok(subaccount_service.get_subaccount(company))


@router.put("/me", response_model=ApiResponse[Any])
def update_my_subaccount(
    data: SubaccountUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    result = subaccount_service.update_subaccount(db, company, data, current_user)
    return ApiResponse.ok(result, message="Subaccount updated")
