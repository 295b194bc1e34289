"""
Company payouts: balance, requests, super admin review and gateway transfers.

Available balance = completed company income, less the platform fee at the
company's fee percent, less payouts already approved, processing or paid.
Approval and processing check the amount against the balance again.
"""
import logging
import uuid
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AppException, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.company import Company
from facilityhub.models.payout import COMMITTED_PAYOUT_STATUSES, Payout, PayoutStatus
from facilityhub.models.transaction import Transaction, TransactionStatus, TransactionType
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.payout import PayoutRequest
from facilityhub.services import paystack
from facilityhub.services.audit import AuditService
from facilityhub.services.notification import NotificationService
from facilityhub.services.subaccount_service import settlement_account_number
from facilityhub.services.tax_calculator import round_half_up

logger = logging.getLogger(__name__)


def get_balance(db: Session, company: Company, exclude_payout_id: Optional[int] = None) -> dict:
    total_income = db.query(func.coalesce(func.sum(Transaction.amount), 0.0)).filter(
        Transaction.company_id == company.id,
        Transaction.type == TransactionType.INCOME.value,
        Transaction.status == TransactionStatus.COMPLETED.value,
        Transaction.is_platform_revenue == False,  # noqa: E712
        Transaction.is_deleted == False,  # noqa: E712
    ).scalar() or 0.0
    committed_query = db.query(func.coalesce(func.sum(Payout.amount), 0.0)).filter(
        Payout.company_id == company.id,
        Payout.status.in_(COMMITTED_PAYOUT_STATUSES),
    )
    if exclude_payout_id is not None:
        committed_query = committed_query.filter(Payout.id != exclude_payout_id)
    committed = committed_query.scalar() or 0.0

    platform_fee = round(total_income * (company.fee_percent or 0) / 100, 2)
    available = max(0.0, round(total_income - platform_fee - committed, 2))
    return {
        "total_income": round(float(total_income), 2),
        "platform_fee": platform_fee,
        "committed_payouts": round(float(committed), 2),
        "available": available,
        "currency": company.currency,
    }


def _ensure_recipient(db: Session, company: Company) -> str:
    if company.paystack_recipient_code:
        return company.paystack_recipient_code
    account_number = settlement_account_number(company)
    if not company.settlement_bank_code or not account_number:
        raise AppException("Set up a subaccount with settlement bank details first", error_code="NO_SETTLEMENT_ACCOUNT")

    recipient = paystack.get_client().create_transfer_recipient({
        "type": "ghipss" if company.currency == "GHS" else "nuban",
        "name": company.settlement_account_name or company.name,
        "account_number": account_number,
        "bank_code": company.settlement_bank_code,
        "currency": company.currency,
    })
    company.paystack_recipient_code = recipient.get("recipient_code")
    return company.paystack_recipient_code


def _super_admin_ids(db: Session):
    return [uid for (uid,) in db.query(User.id).filter(User.role == UserRole.SUPER_ADMIN).all()]


def _ensure_covered(db: Session, company: Company, amount: float, payout_id: Optional[int] = None):
    """Raise unless `amount` fits in the balance left by every other committed payout."""
    balance = get_balance(db, company, exclude_payout_id=payout_id)
    if amount > balance["available"]:
        raise AppException(
            f"Payout amount exceeds available balance of {balance['available']:.2f}",
            error_code="INSUFFICIENT_BALANCE",
            details=balance,
        )


def request_payout(db: Session, company: Company, data: PayoutRequest, actor: User) -> Payout:
    _ensure_covered(db, company, data.amount)

    recipient_code = _ensure_recipient(db, company)
    payout = Payout(
        company_id=company.id,
        amount=round(data.amount, 2),
        currency=company.currency,
        reason=data.reason,
        status=PayoutStatus.PENDING.value,
        recipient_code=recipient_code,
        requested_by=actor.id,
    )
    db.add(payout)
    db.flush()
    NotificationService.notify_users(
        db, _super_admin_ids(db), "Payout requested",
        f"{company.name} requested a payout of {payout.amount:.2f} {payout.currency}.",
        link=f"/super-admin/payouts/{payout.id}",
    )
    AuditService(db).log_user_action(actor, "request_payout", "payout", payout.id, {"amount": payout.amount})
    db.commit()
    db.refresh(payout)
    logger.info(f"Payout {payout.id} requested by company {company.id}")
    return payout


def get_payout(db: Session, payout_id: int, user: User) -> Payout:
    payout = db.get(Payout, payout_id)
    if payout is None:
        raise NotFoundError("Payout")
    if user.role != UserRole.SUPER_ADMIN and payout.company_id != user.company_id:
        raise NotFoundError("Payout")
    return payout


def list_payouts(db: Session, user: User, params: PageParams, status: Optional[PayoutStatus] = None):
    query = db.query(Payout)
    if user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Payout.company_id == user.company_id)
    if status:
        query = query.filter(Payout.status == status.value)
    return paginate(query.order_by(Payout.created_at.desc(), Payout.id.desc()), params)


def _require_status(payout: Payout, expected: PayoutStatus, action: str):
    if payout.status != expected.value:
        raise AppException(
            f"Only {expected.value} payouts can be {action} (current status: {payout.status})",
            error_code="INVALID_STATE",
        )


def _notify_requester(db: Session, payout: Payout, title: str, message: str, type: str = "info"):
    NotificationService.notify_user(db, payout.requested_by, title, message, type=type, link=f"/admin/payouts/{payout.id}")


def approve_payout(db: Session, payout_id: int, actor: User) -> Payout:
    payout = get_payout(db, payout_id, actor)
    _require_status(payout, PayoutStatus.PENDING, "approved")
    _ensure_covered(db, db.get(Company, payout.company_id), payout.amount, payout.id)
    payout.status = PayoutStatus.APPROVED.value
    payout.processed_by = actor.id
    payout.processed_at = utcnow()
    _notify_requester(db, payout, "Payout approved", f"Your payout of {payout.amount:.2f} {payout.currency} was approved.", "success")
    AuditService(db).log_user_action(actor, "approve_payout", "payout", payout.id, {"amount": payout.amount})
    db.commit()
    db.refresh(payout)
    return payout


def reject_payout(db: Session, payout_id: int, reason: str, actor: User) -> Payout:
    payout = get_payout(db, payout_id, actor)
    _require_status(payout, PayoutStatus.PENDING, "rejected")
    payout.status = PayoutStatus.REJECTED.value
    payout.failure_reason = reason
    payout.processed_by = actor.id
    payout.processed_at = utcnow()
    _notify_requester(db, payout, "Payout rejected", f"Your payout request was rejected: {reason}", "error")
    AuditService(db).log_user_action(actor, "reject_payout", "payout", payout.id, {"reason": reason})
    db.commit()
    db.refresh(payout)
    return payout


def process_payout(db: Session, payout_id: int, actor: User) -> Payout:
    payout = get_payout(db, payout_id, actor)
    _require_status(payout, PayoutStatus.APPROVED, "processed")
    company = db.get(Company, payout.company_id)
    _ensure_covered(db, company, payout.amount, payout.id)
    if not payout.recipient_code:
        payout.recipient_code = _ensure_recipient(db, company)

    reference = payout.transfer_reference or f"PO-{payout.id}-{uuid.uuid4().hex[:12]}"
    transfer = paystack.get_client().initiate_transfer({
        "source": "balance",
        "amount": round_half_up(payout.amount * 100),
        "recipient": payout.recipient_code,
        "reason": payout.reason or f"Payout #{payout.id}",
        "reference": reference,
        "currency": payout.currency,
    })
    payout.status = PayoutStatus.PROCESSING.value
    payout.transfer_code = transfer.get("transfer_code")
    payout.transfer_reference = reference
    payout.processed_by = actor.id
    payout.processed_at = utcnow()
    AuditService(db).log_user_action(actor, "process_payout", "payout", payout.id, {"transfer_code": payout.transfer_code})
    db.commit()
    db.refresh(payout)
    logger.info(f"Payout {payout.id} transfer {payout.transfer_code} initiated")
    return payout


def apply_transfer_event(db: Session, event: str, data: dict) -> Optional[Payout]:
    """Settle a payout from a transfer.success / transfer.failed / transfer.reversed webhook."""
    query = db.query(Payout)
    payout = None
    if data.get("transfer_code"):
        payout = query.filter(Payout.transfer_code == data["transfer_code"]).first()
    if payout is None and data.get("reference"):
        payout = query.filter(Payout.transfer_reference == data["reference"]).first()
    if payout is None:
        logger.warning(f"{event} for unknown transfer {data.get('transfer_code') or data.get('reference')}")
        return None

    if event == "transfer.success":
        payout.status = PayoutStatus.PAID.value
        _notify_requester(db, payout, "Payout paid", f"Your payout of {payout.amount:.2f} {payout.currency} has been paid.", "success")
    else:
        payout.status = PayoutStatus.FAILED.value
        payout.failure_reason = data.get("reason") or event
        _notify_requester(db, payout, "Payout failed", f"Your payout of {payout.amount:.2f} {payout.currency} failed.", "error")
    payout.processed_at = utcnow()
    AuditService.log(
        db, action=event.replace(".", "_"), entity_type="payout", entity_id=payout.id,
        user_id=None, user_role=None, details={"transfer_code": payout.transfer_code}, company_id=payout.company_id,
    )
    db.commit()
    return payout
