from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime
from facilityhub.core.clock import UTCDateTime
from facilityhub.models.booking import (
    BookingStatus, DiscountType, ItemCondition, PaymentMethod, PaymentStatus
)


class Discount(BaseModel):
    type: DiscountType
    value: float = Field(ge=0)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_percentage(self):
        if self.type == DiscountType.PERCENTAGE and self.value > 100:
            raise ValueError("percentage discount cannot exceed 100")
        return self


class BookingCreate(BaseModel):
    facility_id: int
    start_date: UTCDateTime
    end_date: UTCDateTime
    total_price: Optional[float] = Field(default=None, ge=0)
    discount: Optional[Discount] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class BookingUpdate(BaseModel):
    start_date: Optional[UTCDateTime] = None
    end_date: Optional[UTCDateTime] = None
    status: Optional[BookingStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    paid_amount: Optional[float] = Field(default=None, ge=0)
    total_price: Optional[float] = Field(default=None, ge=0)
    discount: Optional[Discount] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class BookingCancel(BaseModel):
    reason: Optional[str] = None
    refund_amount: Optional[float] = Field(default=None, ge=0)


class CheckIn(BaseModel):
    notes: Optional[str] = None


class CheckOut(BaseModel):
    condition: ItemCondition = ItemCondition.GOOD
    notes: Optional[str] = None
    damage_report: Optional[str] = None


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    facility_id: int
    company_id: int
    start_date: datetime
    end_date: datetime
    duration: Optional[str] = None
    total_price: float
    status: BookingStatus
    payment_status: PaymentStatus
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = None
    discount_reason: Optional[str] = None
    payment_reference: Optional[str] = None
    paid_amount: float
    payment_method: Optional[str] = None
    paid_at: Optional[datetime] = None
    check_in_time: Optional[datetime] = None
    check_in_notes: Optional[str] = None
    check_out_time: Optional[datetime] = None
    check_out_condition: Optional[str] = None
    check_out_notes: Optional[str] = None
    damage_report: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[int] = None
    cancelled_at: Optional[datetime] = None
    refund_amount: Optional[float] = None
    notes: Optional[str] = None
    is_deleted: bool
    created_at: Optional[datetime] = None


class StaffBookingResponse(BookingResponse):
    internal_notes: Optional[str] = None


class BookingStatistics(BaseModel):
    total: int
    confirmed: int
    pending: int
    cancelled: int
    completed: int
    revenue: float
    current_month_revenue: float
    previous_month_revenue: float
    revenue_growth: float
