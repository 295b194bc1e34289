from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class PayoutStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REJECTED = "rejected"


# Payouts in these states are deducted from the available balance
COMMITTED_PAYOUT_STATUSES = (
    PayoutStatus.APPROVED.value,
    PayoutStatus.PROCESSING.value,
    PayoutStatus.PAID.value,
)


class Payout(Base):
    __tablename__ = "payouts"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=True, index=True)
    amount = Column(Float, nullable=False)
    currency = Column(String(8), default="GHS", nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(String, default=PayoutStatus.PENDING.value, nullable=False, index=True)

    recipient_code = Column(String, nullable=True)
    transfer_code = Column(String, nullable=True, index=True)
    transfer_reference = Column(String, nullable=True, unique=True)

    requested_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime, nullable=True)
    failure_reason = Column(Text, nullable=True)
    is_platform = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    company = relationship("Company")
