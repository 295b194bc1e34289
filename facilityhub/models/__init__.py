# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, company, facility, booking, inventory, rental,
    tax, transaction, payout, ticket, document, company_role, invoice,
    notification, audit_log,
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .company import Company
from .facility import Facility
from .booking import Booking
from .notification import Notification

__all__ = [
    "User",
    "UserRole",
    "Company",
    "Facility",
    "Booking",
    "Notification",
]
