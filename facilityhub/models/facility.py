from sqlalchemy import Column, Integer, String, Text, Float, Boolean, JSON, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class PricingUnit(str, enum.Enum):
    HOUR = "hour"
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


# Length of one pricing unit in hours
PRICING_UNIT_HOURS = {
    PricingUnit.HOUR: 1,
    PricingUnit.DAY: 24,
    PricingUnit.WEEK: 24 * 7,
    PricingUnit.MONTH: 24 * 30,
}


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)
    images = Column(JSON, default=list)
    amenities = Column(JSON, default=list)
    location = Column(JSON, nullable=True)  # {address, latitude, longitude}

    capacity_maximum = Column(Integer, nullable=True)
    capacity_recommended = Column(Integer, nullable=True)
    opening_time = Column(String(5), nullable=True)  # "HH:MM"
    closing_time = Column(String(5), nullable=True)

    availability = Column(JSON, default=list)  # [{day, start_time, end_time, is_available}]
    blocked_dates = Column(JSON, default=list)  # [{start_date, end_date, reason}]
    pricing = Column(JSON, default=list)  # [{unit, amount, is_default}]

    rating_average = Column(Float, default=0.0, nullable=False)
    rating_count = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    company = relationship("Company")
    reviews = relationship("FacilityReview", back_populates="facility", cascade="all, delete-orphan")

    @property
    def default_pricing(self):
        entries = self.pricing or []
        for entry in entries:
            if entry.get("is_default"):
                return entry
        return entries[0] if entries else None


class FacilityReview(Base):
    __tablename__ = "facility_reviews"
    __table_args__ = (UniqueConstraint("facility_id", "user_id", name="uq_review_facility_user"),)

    id = Column(Integer, primary_key=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    facility = relationship("Facility", back_populates="reviews")
