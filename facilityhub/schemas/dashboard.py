from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional
from datetime import datetime
from facilityhub.schemas.booking import BookingStatistics
from facilityhub.schemas.rental import RentalStatistics


class RevenueTrend(BaseModel):
    current_month: float
    previous_month: float
    growth: float


class CompanySummary(BaseModel):
    facilities: int
    bookings: BookingStatistics
    rentals: RentalStatistics
    open_tickets: int
    available_balance: float
    revenue: RevenueTrend


class CompanyCounts(BaseModel):
    total: int
    active: int


class PlatformStats(BaseModel):
    companies: CompanyCounts
    users: int
    bookings: int
    transaction_volume: float
    platform_fee_revenue: float
    subscription_revenue: float
    companies_by_plan: Dict[str, int]


class AuditLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    user_id: Optional[int] = None
    user_role: Optional[str] = None
    company_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
