"""
Invoices for bookings, rentals and ad-hoc charges.

Numbers run INV-YYYY-MM-NNNN per company, restarting each month. Line
amounts and totals are always computed here; clients only send quantities,
unit prices and tax rates. Open invoices past their due date read as
overdue, and an overdue invoice whose due date moves forward reads as sent.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AccessDeniedError, AppException, ConflictError, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.booking import Booking, PaymentStatus
from facilityhub.models.company import Company
from facilityhub.models.facility import Facility
from facilityhub.models.inventory import InventoryItem
from facilityhub.models.invoice import Invoice, InvoiceStatus
from facilityhub.models.rental import Rental
from facilityhub.models.transaction import Transaction, TransactionStatus
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.invoice import InvoiceCreate, InvoiceFromSource, InvoiceItemIn, InvoiceStatusUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.company_role_service import has_permission
from facilityhub.services.notification import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30
CLOSED_STATUSES = (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value)


def next_invoice_number(db: Session, company_id: int, issued_at: datetime) -> str:
    prefix = f"INV-{issued_at.year}-{issued_at.month:02d}-"
    last = db.query(Invoice.invoice_number).filter(
        Invoice.company_id == company_id, Invoice.invoice_number.like(f"{prefix}%")
    ).order_by(Invoice.id.desc()).first()
    sequence = int(last[0].rsplit("-", 1)[1]) + 1 if last else 1
    return f"{prefix}{sequence:04d}"


def price_items(items: List[InvoiceItemIn]) -> Tuple[List[dict], float, float]:
    """Return (lines, subtotal, tax) with each line's amount and tax filled in."""
    lines = []
    for item in items:
        amount = round(item.quantity * item.unit_price, 2)
        tax = round(amount * item.tax_rate / 100, 2)
        lines.append({
            "description": item.description,
            "quantity": item.quantity,
            "unit_price": item.unit_price,
            "tax_rate": item.tax_rate,
            "amount": amount,
            "tax": tax,
        })
    subtotal = round(sum(line["amount"] for line in lines), 2)
    tax_amount = round(sum(line["tax"] for line in lines), 2)
    return lines, subtotal, tax_amount


def _customer_snapshot(user: User) -> dict:
    return {"name": user.full_name, "email": user.email, "phone": user.phone, "address": None}


def _company_snapshot(company: Company) -> dict:
    return {
        "name": company.name,
        "address": company.location,
        "phone": company.contact_phone,
        "email": company.contact_email,
        "logo": company.logo,
    }


def _refresh_overdue(db: Session, query):
    """Move open invoices in `query` between sent and overdue by due date."""
    now = utcnow()
    newly_overdue = query.filter(
        Invoice.status.in_((InvoiceStatus.DRAFT.value, InvoiceStatus.SENT.value)), Invoice.due_date < now
    ).all()
    for invoice in newly_overdue:
        invoice.status = InvoiceStatus.OVERDUE.value
        NotificationService.notify_user(
            db, invoice.user_id, "Invoice overdue",
            f"Invoice {invoice.invoice_number} was due on {invoice.due_date:%Y-%m-%d}.",
            type="warning",
        )
    reopened = query.filter(Invoice.status == InvoiceStatus.OVERDUE.value, Invoice.due_date >= now).all()
    for invoice in reopened:
        invoice.status = InvoiceStatus.SENT.value
    if newly_overdue or reopened:
        logger.info(f"Invoice sweep: {len(newly_overdue)} overdue, {len(reopened)} back to sent")
        db.commit()


def _issue(
    db: Session,
    actor: User,
    company: Company,
    customer: User,
    items: List[InvoiceItemIn],
    data: InvoiceFromSource,
    status: str,
    discount_amount: float = 0.0,
    customer_info: Optional[dict] = None,
    **links,
) -> Invoice:
    now = utcnow()
    due_date = data.due_date or now + timedelta(days=DEFAULT_DUE_DAYS)
    if due_date < now.replace(hour=0, minute=0, second=0, microsecond=0):
        raise AppException("Due date cannot be before the issue date", error_code="INVALID_DUE_DATE")

    lines, subtotal, tax_amount = price_items(items)
    invoice = Invoice(
        invoice_number=next_invoice_number(db, company.id, now),
        company_id=company.id,
        user_id=customer.id,
        items=lines,
        subtotal=subtotal,
        tax_amount=tax_amount,
        discount_amount=discount_amount,
        total_amount=max(0.0, round(subtotal + tax_amount - discount_amount, 2)),
        currency=company.currency,
        status=status,
        issue_date=now,
        due_date=due_date,
        notes=data.notes,
        terms=data.terms,
        customer_info=customer_info or _customer_snapshot(customer),
        company_info=_company_snapshot(company),
        created_by=actor.id,
        **links,
    )
    db.add(invoice)
    db.flush()
    if status != InvoiceStatus.DRAFT.value:
        NotificationService.notify_user(
            db, customer.id, "New invoice",
            f"Invoice {invoice.invoice_number} for {invoice.currency} {invoice.total_amount:.2f} from {company.name}.",
            link=f"/invoices/{invoice.id}",
        )
    AuditService(db).log_user_action(
        actor, "create_invoice", "invoice", invoice.id,
        {"invoice_number": invoice.invoice_number, "total": invoice.total_amount, **links},
    )
    db.commit()
    db.refresh(invoice)
    logger.info(f"Invoice {invoice.invoice_number} issued by company {company.id}")
    return invoice


def _company_record(db: Session, model, record_id: Optional[int], company_id: int, label: str):
    if record_id is None:
        return None
    record = db.get(model, record_id)
    if record is None or record.company_id != company_id or getattr(record, "is_deleted", False):
        raise NotFoundError(label)
    return record


def _ensure_not_invoiced(db: Session, column: str, value: int):
    exists = db.query(Invoice).filter(
        getattr(Invoice, column) == value,
        Invoice.is_deleted == False,  # noqa: E712
        Invoice.status != InvoiceStatus.CANCELLED.value,
    ).first()
    if exists:
        raise ConflictError(
            f"An invoice already exists for this record: {exists.invoice_number}",
            details={"invoice_id": exists.id},
        )


def create_invoice(db: Session, data: InvoiceCreate, actor: User) -> Invoice:
    company = db.get(Company, actor.company_id)
    customer = db.get(User, data.user_id)
    if customer is None:
        raise NotFoundError("User")
    _company_record(db, Facility, data.facility_id, company.id, "Facility")
    _company_record(db, Booking, data.booking_id, company.id, "Booking")
    _company_record(db, Rental, data.rental_id, company.id, "Rental")

    customer_info = data.customer_info.model_dump() if data.customer_info else None
    return _issue(
        db, actor, company, customer, data.items,
        InvoiceFromSource(due_date=data.due_date, notes=data.notes, terms=data.terms),
        status=data.status,
        discount_amount=data.discount_amount,
        customer_info=customer_info,
        booking_id=data.booking_id,
        rental_id=data.rental_id,
        facility_id=data.facility_id,
    )


def _mark_paid_fields(invoice: Invoice, paid_at: Optional[datetime], method: Optional[str]):
    invoice.status = InvoiceStatus.PAID.value
    invoice.paid_date = paid_at or utcnow()
    invoice.payment_method = method


def create_from_booking(db: Session, booking_id: int, data: InvoiceFromSource, actor: User) -> Invoice:
    """One line for the booking. Settled bookings produce a paid invoice."""
    company = db.get(Company, actor.company_id)
    booking = _company_record(db, Booking, booking_id, company.id, "Booking")
    _ensure_not_invoiced(db, "booking_id", booking.id)

    facility = db.get(Facility, booking.facility_id)
    description = f"Booking: {facility.name if facility else 'Facility'}"
    if booking.duration:
        description += f" ({booking.duration})"
    transaction = db.query(Transaction).filter(
        Transaction.booking_id == booking.id, Transaction.status == TransactionStatus.COMPLETED.value
    ).order_by(Transaction.id.desc()).first()
    settled = booking.payment_status == PaymentStatus.COMPLETED.value

    invoice = _issue(
        db, actor, company, db.get(User, booking.user_id),
        [InvoiceItemIn(description=description, quantity=1, unit_price=booking.total_price)],
        data,
        status=InvoiceStatus.SENT.value,
        booking_id=booking.id,
        facility_id=booking.facility_id,
        transaction_id=transaction.id if transaction else None,
    )
    if settled:
        _mark_paid_fields(invoice, booking.paid_at, booking.payment_method)
        db.commit()
        db.refresh(invoice)
    return invoice


def create_from_rental(db: Session, rental_id: int, data: InvoiceFromSource, actor: User) -> Invoice:
    """The rental charge plus any late and damage fees."""
    company = db.get(Company, actor.company_id)
    rental = _company_record(db, Rental, rental_id, company.id, "Rental")
    _ensure_not_invoiced(db, "rental_id", rental.id)

    item = db.get(InventoryItem, rental.item_id)
    items = [InvoiceItemIn(
        description=f"Rental: {item.name if item else 'Item'} x{rental.quantity}",
        quantity=1,
        unit_price=rental.amount,
    )]
    if rental.late_fee:
        items.append(InvoiceItemIn(description="Late return fee", unit_price=rental.late_fee))
    if rental.damage_fee:
        items.append(InvoiceItemIn(description="Damage fee", unit_price=rental.damage_fee))

    transaction = db.get(Transaction, rental.transaction_id) if rental.transaction_id else None
    invoice = _issue(
        db, actor, company, db.get(User, rental.user_id), items, data,
        status=InvoiceStatus.SENT.value,
        rental_id=rental.id,
        transaction_id=rental.transaction_id,
    )
    # Fees assessed after the original charge leave the invoice open
    if transaction is not None and transaction.status == TransactionStatus.COMPLETED.value \
            and transaction.amount >= invoice.total_amount:
        _mark_paid_fields(invoice, transaction.updated_at or utcnow(), transaction.method)
        db.commit()
        db.refresh(invoice)
    return invoice


def get_invoice(db: Session, invoice_id: int, user: User) -> Invoice:
    invoice = db.get(Invoice, invoice_id)
    if invoice is None or invoice.is_deleted:
        raise NotFoundError("Invoice")
    if user.role in (UserRole.ADMIN, UserRole.STAFF):
        if invoice.company_id != user.company_id:
            raise NotFoundError("Invoice")
        if not has_permission(db, user, "view_invoices"):
            raise AccessDeniedError("Access denied. Missing permission: view_invoices")
    elif user.role != UserRole.SUPER_ADMIN:
        if invoice.user_id != user.id or invoice.status == InvoiceStatus.DRAFT.value:
            raise NotFoundError("Invoice")
    _refresh_overdue(db, db.query(Invoice).filter(Invoice.id == invoice.id))
    return invoice


def list_invoices(
    db: Session,
    user: User,
    params: PageParams,
    status: Optional[InvoiceStatus] = None,
    user_id: Optional[int] = None,
    facility_id: Optional[int] = None,
    search: Optional[str] = None,
    issued_from: Optional[datetime] = None,
    issued_to: Optional[datetime] = None,
    mine: bool = False,
):
    query = db.query(Invoice).filter(Invoice.is_deleted == False)  # noqa: E712
    if mine:
        query = query.filter(Invoice.user_id == user.id, Invoice.status != InvoiceStatus.DRAFT.value)
    elif user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Invoice.company_id == user.company_id)
    _refresh_overdue(db, query)

    if status:
        query = query.filter(Invoice.status == status.value)
    if user_id:
        query = query.filter(Invoice.user_id == user_id)
    if facility_id:
        query = query.filter(Invoice.facility_id == facility_id)
    if search:
        query = query.filter(Invoice.invoice_number.ilike(f"%{search}%"))
    if issued_from:
        query = query.filter(Invoice.issue_date >= issued_from)
    if issued_to:
        query = query.filter(Invoice.issue_date <= issued_to)
    return paginate(query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()), params)


def update_status(db: Session, invoice_id: int, data: InvoiceStatusUpdate, actor: User) -> Invoice:
    invoice = get_invoice(db, invoice_id, actor)
    if invoice.status in CLOSED_STATUSES and data.status.value != invoice.status:
        raise AppException(
            f"A {invoice.status} invoice cannot change status", error_code="INVALID_STATE"
        )
    previous = invoice.status
    if data.status == InvoiceStatus.PAID:
        _mark_paid_fields(invoice, data.paid_date, data.payment_method or invoice.payment_method)
    else:
        invoice.status = data.status.value

    if data.status in (InvoiceStatus.SENT, InvoiceStatus.PAID, InvoiceStatus.OVERDUE) and previous != invoice.status:
        NotificationService.notify_user(
            db, invoice.user_id, f"Invoice {invoice.status}",
            f"Invoice {invoice.invoice_number} is now {invoice.status}.",
            type="warning" if data.status == InvoiceStatus.OVERDUE else "info",
            link=f"/invoices/{invoice.id}",
        )
    AuditService(db).log_user_action(
        actor, "update_invoice_status", "invoice", invoice.id, {"from": previous, "to": invoice.status}
    )
    db.commit()
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice_id: int, actor: User):
    invoice = get_invoice(db, invoice_id, actor)
    if invoice.status == InvoiceStatus.PAID.value:
        raise AppException("Paid invoices cannot be deleted", error_code="INVALID_STATE")
    invoice.is_deleted = True
    AuditService(db).log_user_action(actor, "delete_invoice", "invoice", invoice.id, {"invoice_number": invoice.invoice_number})
    db.commit()


def invoice_statistics(db: Session, company_id: Optional[int]) -> dict:
    base = db.query(Invoice).filter(Invoice.is_deleted == False)  # noqa: E712
    if company_id is not None:
        base = base.filter(Invoice.company_id == company_id)
    _refresh_overdue(db, base)

    counts = dict(base.with_entities(Invoice.status, func.count(Invoice.id)).group_by(Invoice.status).all())
    amounts = dict(
        base.with_entities(Invoice.status, func.coalesce(func.sum(Invoice.total_amount), 0.0))
        .group_by(Invoice.status).all()
    )
    return {
        "total_invoices": sum(counts.values()),
        "paid_invoices": counts.get(InvoiceStatus.PAID.value, 0),
        "overdue_invoices": counts.get(InvoiceStatus.OVERDUE.value, 0),
        "pending_invoices": counts.get(InvoiceStatus.DRAFT.value, 0) + counts.get(InvoiceStatus.SENT.value, 0),
        "total_amount": round(float(sum(amounts.values())), 2),
        "paid_amount": round(float(amounts.get(InvoiceStatus.PAID.value, 0) or 0), 2),
        "overdue_amount": round(float(amounts.get(InvoiceStatus.OVERDUE.value, 0) or 0), 2),
    }
