from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import date, datetime
from facilityhub.models.tax import ScheduleScope, ScheduleType, TaxAppliesTo


class TaxCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    rate: float = Field(ge=0, le=100)
    type: str = Field(min_length=1)
    applies_to: TaxAppliesTo = TaxAppliesTo.BOTH
    active: bool = True
    is_default: bool = False


class TaxUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    rate: Optional[float] = Field(default=None, ge=0, le=100)
    type: Optional[str] = None
    applies_to: Optional[TaxAppliesTo] = None
    active: Optional[bool] = None
    is_default: Optional[bool] = None


class TaxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    rate: float
    type: str
    applies_to: TaxAppliesTo
    is_super_admin_tax: bool
    company_id: Optional[int] = None
    active: bool
    is_default: bool
    created_at: Optional[datetime] = None


class TaxCalculationRequest(BaseModel):
    subtotal: float
    applies_to: TaxAppliesTo = TaxAppliesTo.BOTH
    company_id: Optional[int] = None
    is_taxable: bool = True


class TaxBreakdownLine(BaseModel):
    tax_id: int
    name: str
    rate: float
    amount: float


class TaxCalculation(BaseModel):
    subtotal: float
    service_fee: float
    service_fee_rate: float
    tax: float
    total_tax_rate: float
    total: float
    breakdown: List[TaxBreakdownLine] = []


class TaxScheduleCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    components: List[str] = Field(min_length=4)
    type: ScheduleType = ScheduleType.PERCENTAGE
    value: float = Field(ge=0)
    start_date: date
    sunset_date: Optional[date] = None
    applies_to: ScheduleScope = ScheduleScope.ALL
    is_active: bool = True
    company_id: Optional[int] = None

    @model_validator(mode="after")
    def _check_dates(self):
        if self.sunset_date is not None and self.sunset_date <= self.start_date:
            raise ValueError("sunset_date must be after start_date")
        return self


class TaxScheduleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    components: Optional[List[str]] = Field(default=None, min_length=4)
    type: Optional[ScheduleType] = None
    value: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    sunset_date: Optional[date] = None
    applies_to: Optional[ScheduleScope] = None
    is_active: Optional[bool] = None


class TaxScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    components: List[str] = []
    type: ScheduleType
    value: float
    start_date: date
    sunset_date: Optional[date] = None
    applies_to: ScheduleScope
    is_active: bool
    company_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
