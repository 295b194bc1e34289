from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime
from facilityhub.models.transaction import TransactionCategory, TransactionStatus, TransactionType
from facilityhub.schemas.booking import Discount


class PaymentInitialize(BaseModel):
    email: EmailStr
    amount: float = Field(gt=0)
    category: TransactionCategory
    booking_id: Optional[int] = None
    rental_id: Optional[int] = None
    facility_id: Optional[int] = None
    plan_id: Optional[str] = None
    currency: Optional[str] = None
    discount: Optional[Discount] = None


class PaymentInitResponse(BaseModel):
    authorization_url: str
    access_code: str
    reference: str
    amount: int  # minor units
    currency: str


class TransactionUpdate(BaseModel):
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    reconciled: Optional[bool] = None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    booking_id: Optional[int] = None
    rental_id: Optional[int] = None
    facility_id: Optional[int] = None
    type: TransactionType
    category: TransactionCategory
    amount: float
    currency: str
    method: Optional[str] = None
    status: TransactionStatus
    reference: Optional[str] = None
    authorization_url: Optional[str] = None
    plan_id: Optional[str] = None
    is_paystack: bool
    is_platform_revenue: bool
    platform_fee: float
    reconciled: bool
    reconciled_at: Optional[datetime] = None
    description: Optional[str] = None
    tags: List[str] = []
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []
