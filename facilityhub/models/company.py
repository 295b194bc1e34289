from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Company(Base):
    """A tenant. Every facility, booking, rental and document belongs to one."""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    location = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    logo = Column(String, nullable=True)
    currency = Column(String(8), default="GHS", nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_company_owner_id"), nullable=True)

    # Tax behaviour
    is_tax_inclusive = Column(Boolean, default=False, nullable=False)
    is_tax_on_tax = Column(Boolean, default=False, nullable=False)

    # Payment gateway settlement
    fee_percent = Column(Float, default=5.0, nullable=False)
    paystack_subaccount_code = Column(String, nullable=True, index=True)
    paystack_recipient_code = Column(String, nullable=True)
    settlement_bank_code = Column(String, nullable=True)
    settlement_account_name = Column(String, nullable=True)
    settlement_account_number = Column(String, nullable=True)  # Fernet-encrypted

    # Subscription
    plan = Column(String, nullable=True)
    expires_at = Column(DateTime, nullable=True)
    license_key = Column(String, nullable=True)
    payment_reference = Column(String, nullable=True)
    activated_at = Column(DateTime, nullable=True)
    subscription_status = Column(String, nullable=True)
    has_used_trial = Column(Boolean, default=False, nullable=False)
    is_trial = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    owner = relationship("User", foreign_keys=[owner_id])
    users = relationship("User", foreign_keys="User.company_id", back_populates="company")
