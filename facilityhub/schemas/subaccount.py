from pydantic import BaseModel, Field
from typing import Optional


class SubaccountCreate(BaseModel):
    business_name: str = Field(min_length=1)
    settlement_bank: str = Field(min_length=1)
    account_number: str = Field(min_length=4)
    percentage_charge: Optional[float] = Field(default=None, ge=0, le=100)


class SubaccountUpdate(BaseModel):
    business_name: Optional[str] = None
    settlement_bank: Optional[str] = None
    account_number: Optional[str] = Field(default=None, min_length=4)
    percentage_charge: Optional[float] = Field(default=None, ge=0, le=100)
    description: Optional[str] = None
    primary_contact_email: Optional[str] = None
    primary_contact_name: Optional[str] = None
    primary_contact_phone: Optional[str] = None
