"""
Aggregated figures for the company admin dashboard and the platform owner.
"""
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from facilityhub.core.clock import month_bounds, utcnow
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.audit_log import AuditLog
from facilityhub.models.booking import Booking
from facilityhub.models.company import Company
from facilityhub.models.facility import Facility
from facilityhub.models.ticket import SupportTicket, TicketStatus
from facilityhub.models.transaction import Transaction, TransactionStatus, TransactionType
from facilityhub.models.user import User
from facilityhub.services.booking_service import booking_statistics, growth_percentage
from facilityhub.services.payout_service import get_balance
from facilityhub.services.rental_service import rental_statistics


def _income_between(db: Session, company_id: int, start, end) -> float:
    total = db.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(
        Transaction.company_id == company_id,
        Transaction.type == TransactionType.INCOME.value,
        Transaction.status == TransactionStatus.COMPLETED.value,
        Transaction.is_deleted == False,  # noqa: E712
        Transaction.paid_at >= start,
        Transaction.paid_at < end,
    ).scalar()
    return round(float(total or 0), 2)


def company_summary(db: Session, company: Company) -> dict:
    now = utcnow()
    current = _income_between(db, company.id, *month_bounds(now))
    previous = _income_between(db, company.id, *month_bounds(now, months_back=1))

    facilities = db.query(Facility).filter(
        Facility.company_id == company.id, Facility.is_deleted == False  # noqa: E712
    ).count()
    open_tickets = db.query(SupportTicket).filter(
        SupportTicket.company_id == company.id,
        SupportTicket.is_deleted == False,  # noqa: E712
        SupportTicket.status.in_((TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value)),
    ).count()

    return {
        "facilities": facilities,
        "bookings": booking_statistics(db, company.id),
        "rentals": rental_statistics(db, company.id),
        "open_tickets": open_tickets,
        "available_balance": get_balance(db, company)["available"],
        "revenue": {
            "current_month": current,
            "previous_month": previous,
            "growth": growth_percentage(current, previous),
        },
    }


def platform_stats(db: Session) -> dict:
    completed = db.query(Transaction).filter(
        Transaction.status == TransactionStatus.COMPLETED.value,
        Transaction.is_deleted == False,  # noqa: E712
    )
    volume = completed.with_entities(func.coalesce(func.sum(Transaction.amount), 0.0)).scalar()
    fee_revenue = completed.with_entities(func.coalesce(func.sum(Transaction.platform_fee), 0.0)).scalar()
    subscription_revenue = completed.filter(Transaction.is_platform_revenue == True).with_entities(  # noqa: E712
        func.coalesce(func.sum(Transaction.amount), 0.0)
    ).scalar()
    plans = dict(
        db.query(Company.plan, func.count(Company.id)).filter(Company.plan.isnot(None)).group_by(Company.plan).all()
    )

    return {
        "companies": {
            "total": db.query(Company).count(),
            "active": db.query(Company).filter(Company.is_active == True).count(),  # noqa: E712
        },
        "users": db.query(User).count(),
        "bookings": db.query(Booking).filter(Booking.is_deleted == False).count(),  # noqa: E712
        "transaction_volume": round(float(volume or 0), 2),
        "platform_fee_revenue": round(float(fee_revenue or 0), 2),
        "subscription_revenue": round(float(subscription_revenue or 0), 2),
        "companies_by_plan": plans,
    }


def list_audit_logs(
    db: Session,
    company_id: Optional[int],
    params: PageParams,
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
):
    query = db.query(AuditLog)
    if company_id is not None:
        query = query.filter(AuditLog.company_id == company_id)
    if action:
        query = query.filter(AuditLog.action == action)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    return paginate(query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()), params)
