from sqlalchemy import Column, Integer, String, Text, Float, Boolean, JSON, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.sql import func
import enum
from facilityhub.database import Base


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("company_id", "invoice_number", name="uq_invoices_company_number"),
        Index("ix_invoices_company_status", "company_id", "status"),
        Index("ix_invoices_user_status", "user_id", "status"),
        Index("ix_invoices_due_status", "due_date", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String, nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    rental_id = Column(Integer, ForeignKey("rentals.id"), nullable=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True)

    # [{description, quantity, unit_price, amount, tax_rate, tax}]
    items = Column(JSON, default=list, nullable=False)
    subtotal = Column(Float, default=0.0, nullable=False)
    tax_amount = Column(Float, default=0.0, nullable=False)
    discount_amount = Column(Float, default=0.0, nullable=False)
    total_amount = Column(Float, default=0.0, nullable=False)
    currency = Column(String(8), default="GHS", nullable=False)

    status = Column(String, default=InvoiceStatus.DRAFT.value, nullable=False)
    issue_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    paid_date = Column(DateTime, nullable=True)
    payment_method = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    terms = Column(Text, nullable=True)

    # Snapshots taken at issue time
    customer_info = Column(JSON, nullable=True)
    company_info = Column(JSON, nullable=True)

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
