from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime
from facilityhub.core.clock import UTCDateTime
from facilityhub.models.booking import ItemCondition
from facilityhub.models.rental import RentalStatus


class RentalCreate(BaseModel):
    item_id: int
    user_id: Optional[int] = None  # staff may rent on behalf of a customer
    quantity: int = Field(default=1, ge=1)
    start_date: UTCDateTime
    end_date: UTCDateTime
    amount: float = Field(default=0, ge=0)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class RentalStatusUpdate(BaseModel):
    status: RentalStatus


class RentalReturn(BaseModel):
    return_date: Optional[UTCDateTime] = None
    condition: ItemCondition = ItemCondition.GOOD
    notes: Optional[str] = None
    late_fee: float = Field(default=0, ge=0)
    damage_fee: float = Field(default=0, ge=0)


class RentalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_id: int
    user_id: int
    company_id: int
    quantity: int
    start_date: datetime
    end_date: datetime
    amount: float
    transaction_id: Optional[int] = None
    notes: Optional[str] = None
    status: RentalStatus
    return_date: Optional[datetime] = None
    return_condition: Optional[str] = None
    return_notes: Optional[str] = None
    late_fee: float
    damage_fee: float
    created_at: Optional[datetime] = None


class RentalStatistics(BaseModel):
    total_rentals: int
    active_rentals: int
    overdue_rentals: int
    returned_rentals: int
    total_revenue: float
    pending_fees: float
