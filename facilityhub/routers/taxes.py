from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.exceptions import AccessDeniedError
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.tax import TaxAppliesTo
from facilityhub.models.user import User, UserRole
from facilityhub.routers.auth_deps import get_current_user, require_active_company, require_admin, require_super_admin
from facilityhub.schemas.tax import TaxCalculation, TaxCalculationRequest, TaxCreate, TaxResponse, TaxUpdate
from facilityhub.services import tax_service

router = APIRouter(prefix="/taxes", tags=["taxes"])


def require_tax_manager(current_user: User = Depends(require_active_company)) -> User:
    """Company admins manage their own taxes; the super admin manages global ones."""
    if current_user.role not in (UserRole.ADMIN, UserRole.SUPER_ADMIN):
        raise AccessDeniedError("Access denied. Required roles: ['admin', 'super_admin']")
    return current_user


@router.post("/calculate", response_model=ApiResponse[TaxCalculation])
def calculate_taxes(
    data: TaxCalculationRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ApiResponse.ok(tax_service.calculate(db, data, current_user))


@router.get("/global", response_model=ApiResponse[List[TaxResponse]])
def list_global_taxes(
    active: Optional[bool] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    taxes, meta = tax_service.list_global_taxes(db, params, active)
    return ApiResponse.ok([TaxResponse.model_validate(t) for t in taxes], pagination=meta)


@router.post("/global", response_model=ApiResponse[TaxResponse], status_code=status.HTTP_201_CREATED)
def create_global_tax(
    data: TaxCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    tax = tax_service.create_tax(db, data, current_user, is_global=True)
    return ApiResponse.ok(TaxResponse.model_validate(tax), message="Global tax created")


@router.post("/defaults", response_model=ApiResponse[List[TaxResponse]])
def seed_default_taxes(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    taxes = tax_service.seed_default_taxes(db, current_user)
    return ApiResponse.ok([TaxResponse.model_validate(t) for t in taxes], message="Default taxes ensured")


@router.get("/combined", response_model=ApiResponse[List[TaxResponse]])
def list_combined_taxes(
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    taxes, meta = tax_service.list_combined_taxes(db, current_user.company_id, params)
    return ApiResponse.ok([TaxResponse.model_validate(t) for t in taxes], pagination=meta)


@router.get("", response_model=ApiResponse[List[TaxResponse]])
def list_company_taxes(
    active: Optional[bool] = None,
    type: Optional[str] = None,
    applies_to: Optional[TaxAppliesTo] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    taxes, meta = tax_service.list_company_taxes(db, current_user.company_id, params, active, type, applies_to)
    return ApiResponse.ok([TaxResponse.model_validate(t) for t in taxes], pagination=meta)


@router.post("", response_model=ApiResponse[TaxResponse], status_code=status.HTTP_201_CREATED)
def create_company_tax(
    data: TaxCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    tax = tax_service.create_tax(db, data, current_user)
    return ApiResponse.ok(TaxResponse.model_validate(tax), message="Tax created")


@router.get("/{tax_id}", response_model=ApiResponse[TaxResponse])
def get_tax(
    tax_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tax_manager),
):
    return ApiResponse.ok(TaxResponse.model_validate(tax_service.get_tax(db, tax_id, current_user)))


@router.put("/{tax_id}", response_model=ApiResponse[TaxResponse])
def update_tax(
    tax_id: int,
    data: TaxUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tax_manager),
):
    tax = tax_service.update_tax(db, tax_id, data, current_user)
    return ApiResponse.ok(TaxResponse.model_validate(tax), message="Tax updated")


@router.delete("/{tax_id}", response_model=ApiResponse[None])
def delete_tax(
    tax_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_tax_manager),
):
    tax_service.delete_tax(db, tax_id, current_user)
    return ApiResponse.ok(message="Tax deleted")
