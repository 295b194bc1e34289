import math
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from facilityhub.core.clock import UTCDateTime, utcnow
from facilityhub.models.invoice import InvoiceStatus


class InvoiceItemIn(BaseModel):
    description: str = Field(min_length=1)
    quantity: float = Field(default=1, gt=0)
    unit_price: float = Field(ge=0)
    tax_rate: float = Field(default=0, ge=0, le=100)


class InvoiceItem(InvoiceItemIn):
    amount: float
    tax: float


class CustomerInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class InvoiceCreate(BaseModel):
    user_id: int
    items: List[InvoiceItemIn] = Field(min_length=1)
    booking_id: Optional[int] = None
    rental_id: Optional[int] = None
    facility_id: Optional[int] = None
    discount_amount: float = Field(default=0, ge=0)
    due_date: Optional[UTCDateTime] = None
    status: Literal["draft", "sent"] = "draft"
    customer_info: Optional[CustomerInfo] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class InvoiceFromSource(BaseModel):
    due_date: Optional[UTCDateTime] = None
    notes: Optional[str] = None
    terms: Optional[str] = None


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus
    payment_method: Optional[str] = None
    paid_date: Optional[UTCDateTime] = None


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    invoice_number: str
    company_id: int
    user_id: int
    transaction_id: Optional[int] = None
    booking_id: Optional[int] = None
    rental_id: Optional[int] = None
    facility_id: Optional[int] = None
    items: List[InvoiceItem]
    subtotal: float
    tax_amount: float
    discount_amount: float
    total_amount: float
    currency: str
    status: InvoiceStatus
    issue_date: datetime
    due_date: datetime
    paid_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    terms: Optional[str] = None
    customer_info: Optional[Dict[str, Any]] = None
    company_info: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def days_overdue(self) -> int:
        if self.status in (InvoiceStatus.PAID, InvoiceStatus.CANCELLED):
            return 0
        late = (utcnow() - self.due_date).total_seconds() / 86400
        return max(0, math.ceil(late))


class InvoiceStatistics(BaseModel):
    total_invoices: int
    paid_invoices: int
    overdue_invoices: int
    pending_invoices: int
    total_amount: float
    paid_amount: float
    overdue_amount: float
