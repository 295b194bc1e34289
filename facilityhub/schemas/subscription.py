from pydantic import BaseModel, Field
from typing import Dict, Optional
from datetime import datetime


class PlanFeatures(BaseModel):
    max_facilities: int
    max_users: int
    max_inventory_items: int
    max_bookings: int
    support: str
    analytics: str
    api_access: bool
    custom_branding: bool
    white_label: bool
    dedicated_support: bool
    custom_integrations: bool
    sla_guarantee: bool
    training: bool


class PlanSummary(BaseModel):
    id: str
    label: str
    duration_days: int
    price: float
    description: str
    popular: bool
    is_trial: bool


class Plan(PlanSummary):
    features: PlanFeatures


class SubscriptionStatusResponse(BaseModel):
    has_subscription: bool
    is_active: bool
    plan: Optional[PlanSummary] = None
    features: Optional[PlanFeatures] = None
    expires_at: Optional[datetime] = None
    days_remaining: int
    can_start_trial: bool
    is_trial: bool
    status: Optional[str] = None


class ActivateRequest(BaseModel):
    company_id: int
    plan_id: str


class PlanChangeRequest(BaseModel):
    plan_id: str
    payment_reference: str = Field(min_length=1)


class UsageLine(BaseModel):
    used: int
    limit: int
    unlimited: bool


UsageResponse = Dict[str, UsageLine]
