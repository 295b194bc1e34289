from sqlalchemy import Column, Integer, String, JSON, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from facilityhub.database import Base


# Flags a company role can grant; anything absent from a role's map is denied
PERMISSION_FLAGS = (
    "view_invoices",
    "access_financials",
    "view_bookings",
    "view_inventory",
    "create_records",
    "edit_records",
    "manage_users",
    "manage_facilities",
    "manage_inventory",
    "manage_transactions",
    "manage_emails",
    "manage_settings",
)


class CompanyRole(Base):
    """A named permission set defined by a company for its staff."""
    __tablename__ = "company_roles"
    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_company_roles_company_name"),
    )

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    permissions = Column(JSON, default=dict, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_company_role_created_by"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())
