from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    PARTIAL_REFUND = "partial_refund"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    MOBILE_MONEY = "mobile_money"
    BANK = "bank"
    CARD = "card"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class ItemCondition(str, enum.Enum):
    GOOD = "good"
    FAIR = "fair"
    DAMAGED = "damaged"


# Bookings in these states hold the facility
BLOCKING_STATUSES = (BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_facility_window", "facility_id", "start_date", "end_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    duration = Column(String, nullable=True)
    total_price = Column(Float, default=0.0, nullable=False)

    status = Column(String, default=BookingStatus.PENDING.value, nullable=False, index=True)
    payment_status = Column(String, default=PaymentStatus.PENDING.value, nullable=False)

    # Discount
    discount_type = Column(String, nullable=True)
    discount_value = Column(Float, nullable=True)
    discount_reason = Column(String, nullable=True)
    discount_applied_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    # Payment details
    payment_reference = Column(String, nullable=True, index=True)
    paid_amount = Column(Float, default=0.0, nullable=False)
    payment_method = Column(String, nullable=True)
    paid_at = Column(DateTime, nullable=True)

    # Check-in / check-out
    check_in_time = Column(DateTime, nullable=True)
    check_in_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    check_in_notes = Column(Text, nullable=True)
    check_out_time = Column(DateTime, nullable=True)
    check_out_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    check_out_condition = Column(String, nullable=True)
    check_out_notes = Column(Text, nullable=True)
    damage_report = Column(Text, nullable=True)

    # Cancellation
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    refund_amount = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
    facility = relationship("Facility")
