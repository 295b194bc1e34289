from fastapi import APIRouter
from facilityhub.routers import (
    auth, users, companies, facilities, bookings, inventory, rentals,
    taxes, tax_schedules, payments, transactions, subaccounts, payouts,
    subscriptions, support, documents, notifications, admin, super_admin,
    company_roles, invoices,
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(company_roles.router, tags=["Company Roles"])
api_router.include_router(companies.router, tags=["Companies"])
api_router.include_router(facilities.router, tags=["Facilities"])
api_router.include_router(bookings.router, tags=["Bookings"])
api_router.include_router(inventory.router, tags=["Inventory"])
api_router.include_router(rentals.router, tags=["Rentals"])
api_router.include_router(taxes.router, tags=["Taxes"])
api_router.include_router(tax_schedules.router, tags=["Tax Schedules"])
api_router.include_router(payments.router, tags=["Payments"])
api_router.include_router(transactions.router, tags=["Transactions"])
api_router.include_router(invoices.router, tags=["Invoices"])
api_router.include_router(subaccounts.router, tags=["Subaccounts"])
api_router.include_router(payouts.router, tags=["Payouts"])
api_router.include_router(subscriptions.router, tags=["Subscriptions"])
api_router.include_router(support.router, tags=["Support"])
api_router.include_router(documents.router, tags=["Documents"])
api_router.include_router(notifications.router, tags=["Notifications"])
api_router.include_router(admin.router, tags=["Administration"])
api_router.include_router(super_admin.router, tags=["Platform"])
