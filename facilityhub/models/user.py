"""
User Model with company-scoped RBAC.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from facilityhub.database import Base


class UserRole(str, enum.Enum):
    """
    User roles with hierarchical permissions.

    - SUPER_ADMIN: Platform-wide access (all companies, global taxes, payouts)
    - ADMIN: Full access within their company
    - STAFF: Day-to-day operations within their company
    - USER: Customer self-service (own bookings, rentals, tickets)
    """
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    STAFF = "staff"
    USER = "user"


STAFF_ROLES = (UserRole.ADMIN, UserRole.STAFF)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)

    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    # Tenant context (null for customers and super admins)
    company_id = Column(Integer, ForeignKey("companies.id", use_alter=True, name="fk_user_company_id"), nullable=True, index=True)
    company_role_id = Column(Integer, ForeignKey("company_roles.id", use_alter=True, name="fk_user_company_role_id"), nullable=True, index=True)

    company = relationship("Company", foreign_keys=[company_id], back_populates="users")
    company_role = relationship("CompanyRole", foreign_keys=[company_role_id])
    sessions = relationship("UserSession", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    refresh_token = Column(String, unique=True, index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    is_revoked = Column(Boolean, default=False, nullable=False)

    # Session metadata
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)

    user = relationship("User", back_populates="sessions")
