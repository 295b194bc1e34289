from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from facilityhub.models.payout import PayoutStatus


class PayoutRequest(BaseModel):
    amount: float = Field(gt=0)
    reason: Optional[str] = None


class PayoutReject(BaseModel):
    reason: str = Field(min_length=1)


class PayoutBalance(BaseModel):
    total_income: float
    platform_fee: float
    committed_payouts: float
    available: float
    currency: str


class PayoutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: Optional[int] = None
    amount: float
    currency: str
    reason: Optional[str] = None
    status: PayoutStatus
    recipient_code: Optional[str] = None
    transfer_code: Optional[str] = None
    transfer_reference: Optional[str] = None
    requested_by: Optional[int] = None
    processed_by: Optional[int] = None
    processed_at: Optional[datetime] = None
    failure_reason: Optional[str] = None
    is_platform: bool
    created_at: Optional[datetime] = None
