from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime


class CompanyCreate(BaseModel):
    name: str = Field(min_length=2, max_length=120)
    location: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    currency: str = "GHS"


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=120)
    location: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    logo: Optional[str] = None
    currency: Optional[str] = None
    is_tax_inclusive: Optional[bool] = None
    is_tax_on_tax: Optional[bool] = None


class CompanyStatusUpdate(BaseModel):
    is_active: bool


class PayoutConfigUpdate(BaseModel):
    subaccount_code: Optional[str] = None
    fee_percent: float = Field(ge=0, le=100)


class CompanyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    location: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    logo: Optional[str] = None
    currency: str
    is_active: bool
    owner_id: Optional[int] = None
    is_tax_inclusive: bool
    is_tax_on_tax: bool
    fee_percent: float
    paystack_subaccount_code: Optional[str] = None
    plan: Optional[str] = None
    expires_at: Optional[datetime] = None
    subscription_status: Optional[str] = None
    is_trial: bool
    has_used_trial: bool
    created_at: Optional[datetime] = None
