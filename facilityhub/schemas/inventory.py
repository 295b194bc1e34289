from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime
from facilityhub.models.inventory import ItemStatus
from facilityhub.schemas.facility import PricingEntry


class InventoryItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    quantity: int = Field(default=0, ge=0)
    status: ItemStatus = ItemStatus.IN_STOCK
    pricing: List[PricingEntry] = []
    images: List[str] = []
    associated_facility_id: Optional[int] = None
    is_taxable: bool = True


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    status: Optional[ItemStatus] = None
    pricing: Optional[List[PricingEntry]] = None
    images: Optional[List[str]] = None
    associated_facility_id: Optional[int] = None
    is_taxable: Optional[bool] = None


class QuantityAdjustment(BaseModel):
    change: int
    reason: str = Field(min_length=1)


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    description: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    quantity: int
    status: ItemStatus
    pricing: List[dict] = []
    images: List[str] = []
    associated_facility_id: Optional[int] = None
    is_taxable: bool
    history: List[dict] = []
    created_at: Optional[datetime] = None

    @field_validator("pricing", "images", "history", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []
