from sqlalchemy import Column, Integer, String, Text, Float, Boolean, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionCategory(str, enum.Enum):
    FACILITY = "facility"
    BOOKING = "booking"
    INVENTORY_ITEM = "inventory_item"
    RENTAL_FEES = "rental_fees"
    SUBSCRIPTION = "subscription"
    COMPANY = "company"
    OTHER = "other"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    ABANDONED = "abandoned"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True)
    rental_id = Column(Integer, ForeignKey("rentals.id"), nullable=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True)

    type = Column(String, default=TransactionType.INCOME.value, nullable=False)
    category = Column(String, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(8), default="GHS", nullable=False)
    method = Column(String, nullable=True)
    status = Column(String, default=TransactionStatus.PENDING.value, nullable=False, index=True)

    reference = Column(String, unique=True, index=True, nullable=True)
    access_code = Column(String, nullable=True)
    authorization_url = Column(String, nullable=True)
    gateway_response = Column(JSON, nullable=True)
    plan_id = Column(String, nullable=True)
    taxes = Column(JSON, nullable=True)  # calculator breakdown at time of charge

    is_paystack = Column(Boolean, default=False, nullable=False)
    is_platform_revenue = Column(Boolean, default=False, nullable=False)
    platform_fee = Column(Float, default=0.0, nullable=False)

    reconciled = Column(Boolean, default=False, nullable=False)
    reconciled_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, default=list)
    paid_at = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    booking = relationship("Booking")
