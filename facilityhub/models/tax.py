from sqlalchemy import Column, Integer, String, Text, Float, Boolean, Date, JSON, DateTime, ForeignKey
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class TaxAppliesTo(str, enum.Enum):
    FACILITY = "facility"
    INVENTORY_ITEM = "inventory_item"
    BOTH = "both"


class ScheduleScope(str, enum.Enum):
    ALL = "all"
    FACILITIES = "facilities"
    INVENTORY = "inventory"
    SUBSCRIPTIONS = "subscriptions"


class ScheduleType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Tax(Base):
    """A levy charged on facility bookings and/or inventory rentals.

    Global (super admin) taxes have no company and apply to every tenant.
    """
    __tablename__ = "taxes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    rate = Column(Float, nullable=False)
    type = Column(String, nullable=False)
    applies_to = Column(String, default=TaxAppliesTo.BOTH.value, nullable=False)
    is_super_admin_tax = Column(Boolean, default=False, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())


class TaxSchedule(Base):
    __tablename__ = "tax_schedules"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    components = Column(JSON, default=list)  # levy names, e.g. ["VAT", "NHIL", ...]
    type = Column(String, default=ScheduleType.PERCENTAGE.value, nullable=False)
    value = Column(Float, default=0.0, nullable=False)
    start_date = Column(Date, nullable=False)
    sunset_date = Column(Date, nullable=True)
    applies_to = Column(String, default=ScheduleScope.ALL.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
