from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.schemas import ApiResponse
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.database import get_db
from facilityhub.models.company import Company
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, get_current_company, require_admin, require_super_admin
from facilityhub.schemas.company import (
    CompanyCreate, CompanyUpdate, CompanyResponse, CompanyStatusUpdate, PayoutConfigUpdate
)
from facilityhub.services import company_service

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("", response_model=ApiResponse[CompanyResponse], status_code=status.HTTP_201_CREATED)
def create_company(
    data: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = company_service.create_company(db, current_user, data)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Company created")


@router.get("/me", response_model=ApiResponse[CompanyResponse])
def get_my_company(company: Company = Depends(get_current_company)):
    return ApiResponse.ok(CompanyResponse.model_validate(company))


@router.put("/me", response_model=ApiResponse[CompanyResponse])
def update_my_company(
    data: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    company = company_service.get_company(db, current_user.company_id)
    company = company_service.update_company(db, company, data, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Company updated")


@router.get("", response_model=ApiResponse[List[CompanyResponse]])
def list_companies(
    search: Optional[str] = None,
    is_active: Optional[bool] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    companies, meta = company_service.list_companies(db, params, search, is_active)
    return ApiResponse.ok([CompanyResponse.model_validate(c) for c in companies], pagination=meta)


@router.patch("/{company_id}/status", response_model=ApiResponse[CompanyResponse])
def set_company_status(
    company_id: int,
    data: CompanyStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    company = company_service.set_company_status(db, company_id, data.is_active, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Company status updated")


@router.put("/{company_id}/payout-config", response_model=ApiResponse[CompanyResponse])
def update_payout_config(
    company_id: int,
    data: PayoutConfigUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    company = company_service.update_payout_config(db, company_id, data.subaccount_code, data.fee_percent, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Payout configuration updated")
