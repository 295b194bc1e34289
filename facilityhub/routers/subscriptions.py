from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.company import Company
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_company, require_admin, require_super_admin
from facilityhub.schemas.company import CompanyResponse
from facilityhub.schemas.subscription import (
    ActivateRequest, Plan, PlanChangeRequest, SubscriptionStatusResponse, UsageResponse
)
from facilityhub.services import company_service, subscription_service

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.get("/plans", response_model=ApiResponse[List[Plan]])
def list_plans():
    return ApiResponse.ok(subscription_service.PLANS)


@router.get("/status", response_model=ApiResponse[SubscriptionStatusResponse])
def subscription_status(company: Company = Depends(get_current_company)):
    return ApiResponse.ok(subscription_service.get_status(company))


@router.get("/usage", response_model=ApiResponse[UsageResponse])
def subscription_usage(
    db: Session = Depends(get_db),
    company: Company = Depends(get_current_company),
):
    return ApiResponse.ok(subscription_service.usage(db, company))


@router.post("/trial", response_model=ApiResponse[CompanyResponse])
def start_trial(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    company = subscription_service.start_trial(db, company, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Free trial started")


@router.post("/activate", response_model=ApiResponse[CompanyResponse])
def activate_subscription(
    data: ActivateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    company = company_service.get_company(db, data.company_id)
    company = subscription_service.activate(db, company, data.plan_id, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Subscription activated")


@router.post("/renew", response_model=ApiResponse[CompanyResponse])
def renew_subscription(
    data: PlanChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    company = subscription_service.renew(db, company, data.plan_id, data.payment_reference, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Subscription renewed")


@router.post("/upgrade", response_model=ApiResponse[CompanyResponse])
def upgrade_subscription(
    data: PlanChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    company = subscription_service.upgrade(db, company, data.plan_id, data.payment_reference, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Subscription upgraded")


@router.post("/cancel", response_model=ApiResponse[CompanyResponse])
def cancel_subscription(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
    company: Company = Depends(get_current_company),
):
    company = subscription_service.cancel(db, company, current_user)
    return ApiResponse.ok(CompanyResponse.model_validate(company), message="Subscription cancelled")
