from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class RentalStatus(str, enum.Enum):
    ACTIVE = "active"
    RETURNED = "returned"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Rental(Base):
    __tablename__ = "rentals"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    quantity = Column(Integer, default=1, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    amount = Column(Float, default=0.0, nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id", use_alter=True, name="fk_rental_transaction_id"), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String, default=RentalStatus.ACTIVE.value, nullable=False, index=True)

    # Return
    return_date = Column(DateTime, nullable=True)
    return_condition = Column(String, nullable=True)
    return_notes = Column(Text, nullable=True)
    late_fee = Column(Float, default=0.0, nullable=False)
    damage_fee = Column(Float, default=0.0, nullable=False)

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    item = relationship("InventoryItem")
    user = relationship("User", foreign_keys=[user_id])
