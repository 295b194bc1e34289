from sqlalchemy import Column, Integer, String, Text, Boolean, JSON, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class ItemStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    RENTED = "rented"
    UNAVAILABLE = "unavailable"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True)
    sku = Column(String, nullable=True)
    category = Column(String, nullable=True)
    quantity = Column(Integer, default=0, nullable=False)
    status = Column(String, default=ItemStatus.IN_STOCK.value, nullable=False)
    pricing = Column(JSON, default=list)  # [{unit, amount, is_default}]
    images = Column(JSON, default=list)
    associated_facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True)
    is_taxable = Column(Boolean, default=True, nullable=False)
    history = Column(JSON, default=list)  # append-only [{date, change, reason}]
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    associated_facility = relationship("Facility")
