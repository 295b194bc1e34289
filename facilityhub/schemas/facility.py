from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Annotated, List, Optional
from datetime import datetime
import enum
import re
from facilityhub.core.clock import UTCDateTime
from facilityhub.models.facility import PricingUnit

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Weekday(str, enum.Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is not None and not _TIME_RE.match(value):
        raise ValueError("time must be HH:MM")
    return value


HHMM = Annotated[str, AfterValidator(_check_time)]


class PricingEntry(BaseModel):
    unit: PricingUnit
    amount: float = Field(ge=0)
    is_default: bool = False


class AvailabilitySlot(BaseModel):
    day: Weekday
    start_time: HHMM
    end_time: HHMM
    is_available: bool = True


class BlockedDate(BaseModel):
    start_date: UTCDateTime
    end_date: UTCDateTime
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class Location(BaseModel):
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class FacilityBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    terms: Optional[str] = None
    images: List[str] = []
    amenities: List[str] = []
    location: Optional[Location] = None
    capacity_maximum: Optional[int] = Field(default=None, ge=1)
    capacity_recommended: Optional[int] = Field(default=None, ge=1)
    opening_time: Optional[HHMM] = None
    closing_time: Optional[HHMM] = None
    availability: List[AvailabilitySlot] = []
    pricing: List[PricingEntry] = []
    is_active: bool = True

    @model_validator(mode="after")
    def _check_capacity_and_pricing(self):
        if (
            self.capacity_maximum is not None
            and self.capacity_recommended is not None
            and self.capacity_recommended > self.capacity_maximum
        ):
            raise ValueError("recommended capacity cannot exceed maximum capacity")
        if sum(1 for p in self.pricing if p.is_default) > 1:
            raise ValueError("only one pricing entry can be the default")
        return self


class FacilityCreate(FacilityBase):
    pass


class FacilityUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    terms: Optional[str] = None
    images: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    location: Optional[Location] = None
    capacity_maximum: Optional[int] = Field(default=None, ge=1)
    capacity_recommended: Optional[int] = Field(default=None, ge=1)
    opening_time: Optional[HHMM] = None
    closing_time: Optional[HHMM] = None
    availability: Optional[List[AvailabilitySlot]] = None
    pricing: Optional[List[PricingEntry]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="after")
    def _check_pricing(self):
        if self.pricing is not None and sum(1 for p in self.pricing if p.is_default) > 1:
            raise ValueError("only one pricing entry can be the default")
        return self


class FacilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    name: str
    description: Optional[str] = None
    terms: Optional[str] = None
    images: List[str] = []
    amenities: List[str] = []
    location: Optional[dict] = None
    capacity_maximum: Optional[int] = None
    capacity_recommended: Optional[int] = None
    opening_time: Optional[str] = None
    closing_time: Optional[str] = None
    availability: List[dict] = []
    blocked_dates: List[dict] = []
    pricing: List[dict] = []
    rating_average: float
    rating_count: int
    is_active: bool
    is_deleted: bool
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    @field_validator("images", "amenities", "availability", "blocked_dates", "pricing", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


class AvailabilityResponse(BaseModel):
    facility_id: int
    start: datetime
    end: datetime
    available: bool
    reason: Optional[str] = None


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    facility_id: int
    user_id: int
    rating: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
