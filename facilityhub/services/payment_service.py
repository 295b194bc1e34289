"""
Payment collection through Paystack and the transaction ledger.

Gateway amounts are integers in minor units (pesewas/kobo); ledger amounts
are stored in major units.
"""
import json
import logging
import secrets
import time
from typing import Optional
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.config import settings
from facilityhub.core.exceptions import AppException, AuthenticationError, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.core.security import compute_hmac_sha512, constant_time_compare
from facilityhub.models.booking import Booking, BookingStatus, PaymentStatus
from facilityhub.models.company import Company
from facilityhub.models.facility import Facility
from facilityhub.models.rental import Rental
from facilityhub.models.transaction import Transaction, TransactionCategory, TransactionStatus, TransactionType
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.booking import Discount
from facilityhub.schemas.transaction import PaymentInitialize, TransactionUpdate
from facilityhub.services import paystack, payout_service, subscription_service
from facilityhub.services.audit import AuditService
from facilityhub.services.booking_service import apply_discount
from facilityhub.services.notification import NotificationService
from facilityhub.services.tax_calculator import round_half_up

logger = logging.getLogger(__name__)

PENDING_GATEWAY_STATES = ("pending", "ongoing", "processing", "queued")


def generate_reference() -> str:
    return f"FH-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def to_minor_units(amount: float, discount: Optional[Discount] = None) -> int:
    return round_half_up(apply_discount(amount, discount) * 100)


def _resolve_company(db: Session, data: PaymentInitialize, user: User) -> Optional[Company]:
    if data.booking_id is not None:
        booking = db.get(Booking, data.booking_id)
        if booking is None or booking.is_deleted:
            raise NotFoundError("Booking")
        return db.get(Company, booking.company_id)
    if data.rental_id is not None:
        rental = db.get(Rental, data.rental_id)
        if rental is None or rental.is_deleted:
            raise NotFoundError("Rental")
        return db.get(Company, rental.company_id)
    if data.facility_id is not None:
        facility = db.get(Facility, data.facility_id)
        if facility is None or facility.is_deleted:
            raise NotFoundError("Facility")
        return db.get(Company, facility.company_id)
    if user.company_id is not None:
        return db.get(Company, user.company_id)
    return None


def initialize_payment(db: Session, data: PaymentInitialize, user: User) -> dict:
    is_subscription = data.category == TransactionCategory.SUBSCRIPTION
    if is_subscription:
        if not data.plan_id:
            raise AppException("plan_id is required for subscription payments", error_code="VALIDATION_ERROR")
        subscription_service.get_plan(data.plan_id)

    company = _resolve_company(db, data, user)
    if is_subscription and company is None:
        raise AppException("A company is required for subscription payments", error_code="NO_COMPANY")

    amount_minor = to_minor_units(data.amount, data.discount)
    if amount_minor <= 0:
        raise AppException("Amount after discount must be greater than zero", error_code="INVALID_AMOUNT")

    currency = data.currency or (company.currency if company else settings.default_currency)
    reference = generate_reference()
    payload = {
        "email": data.email,
        "amount": amount_minor,
        "currency": currency,
        "reference": reference,
        "metadata": {
            "category": data.category.value,
            "user_id": user.id,
            "company_id": company.id if company else None,
            "booking_id": data.booking_id,
            "rental_id": data.rental_id,
            "facility_id": data.facility_id,
            "plan_id": data.plan_id,
        },
    }
    if settings.payments.callback_url:
        payload["callback_url"] = settings.payments.callback_url

    platform_fee = 0.0
    if company is not None and company.paystack_subaccount_code and not is_subscription:
        charge = round_half_up(amount_minor * (company.fee_percent or 0) / 100)
        payload["subaccount"] = company.paystack_subaccount_code
        payload["transaction_charge"] = charge
        platform_fee = charge / 100

    gateway = paystack.get_client().initialize_transaction(payload)

    transaction = Transaction(
        user_id=user.id,
        company_id=company.id if company else None,
        booking_id=data.booking_id,
        rental_id=data.rental_id,
        facility_id=data.facility_id,
        type=TransactionType.INCOME.value,
        category=data.category.value,
        amount=amount_minor / 100,
        currency=currency,
        method="paystack",
        status=TransactionStatus.PENDING.value,
        reference=reference,
        access_code=gateway.get("access_code"),
        authorization_url=gateway.get("authorization_url"),
        plan_id=data.plan_id,
        is_paystack=True,
        is_platform_revenue=is_subscription,
        platform_fee=platform_fee,
        description=f"{data.category.value} payment",
        tags=[data.category.value],
    )
    db.add(transaction)
    if data.booking_id is not None:
        booking = db.get(Booking, data.booking_id)
        booking.payment_reference = reference
    db.commit()
    logger.info(f"Payment {reference} initialized for {amount_minor} {currency} minor units")
    return {
        "authorization_url": transaction.authorization_url,
        "access_code": transaction.access_code,
        "reference": reference,
        "amount": amount_minor,
        "currency": currency,
    }


def _mark_paid(db: Session, transaction: Transaction, gateway: dict):
    now = utcnow()
    transaction.status = TransactionStatus.COMPLETED.value
    transaction.paid_at = now
    transaction.gateway_response = gateway
    transaction.method = gateway.get("channel") or transaction.method

    if transaction.booking_id is not None:
        booking = db.get(Booking, transaction.booking_id)
        if booking is not None:
            booking.payment_status = PaymentStatus.COMPLETED.value
            booking.paid_amount = transaction.amount
            booking.paid_at = now
            booking.payment_reference = transaction.reference
            booking.payment_method = "card" if gateway.get("channel") == "card" else "mobile_money"
            if booking.status == BookingStatus.PENDING.value:
                booking.status = BookingStatus.CONFIRMED.value
            NotificationService.notify_user(
                db, booking.user_id, "Payment received",
                f"Your payment for booking #{booking.id} was successful.", type="success",
            )

    if transaction.rental_id is not None:
        rental = db.get(Rental, transaction.rental_id)
        if rental is not None:
            rental.transaction_id = transaction.id

    if transaction.category == TransactionCategory.SUBSCRIPTION.value and transaction.plan_id and transaction.company_id:
        company = db.get(Company, transaction.company_id)
        if company is not None:
            subscription_service.apply_plan(company, transaction.plan_id, transaction.reference)


def _can_see_transaction(user: User, transaction: Transaction) -> bool:
    if user.role == UserRole.SUPER_ADMIN or transaction.user_id == user.id:
        return True
    return (
        user.role in (UserRole.ADMIN, UserRole.STAFF)
        and transaction.company_id is not None
        and transaction.company_id == user.company_id
    )


def verify_payment(db: Session, reference: str, user: Optional[User] = None) -> Transaction:
    """
    Confirm a payment with the gateway and settle what it pays for.

    `user` is the caller on the HTTP path; references they neither paid nor
    manage are reported as not found. The webhook passes no user.
    """
    transaction = db.query(Transaction).filter(Transaction.reference == reference).first()
    if transaction is None or (user is not None and not _can_see_transaction(user, transaction)):
        raise NotFoundError("Transaction")
    if transaction.status == TransactionStatus.COMPLETED.value:
        return transaction

    gateway = paystack.get_client().verify_transaction(reference)
    gateway_status = (gateway or {}).get("status")
    if gateway_status == "success":
        _mark_paid(db, transaction, gateway)
        logger.info(f"Payment {reference} verified")
    elif gateway_status in PENDING_GATEWAY_STATES:
        logger.info(f"Payment {reference} still {gateway_status}")
    else:
        transaction.status = (
            TransactionStatus.ABANDONED if gateway_status == "abandoned" else TransactionStatus.FAILED
        ).value
        transaction.gateway_response = gateway
        if transaction.booking_id is not None:
            booking = db.get(Booking, transaction.booking_id)
            if booking is not None and booking.payment_status == PaymentStatus.PENDING.value:
                booking.payment_status = PaymentStatus.FAILED.value
        logger.warning(f"Payment {reference} {transaction.status}: {gateway_status}")

    AuditService.log(
        db, action="verify_payment", entity_type="transaction", entity_id=transaction.id,
        user_id=transaction.user_id, user_role=None,
        details={"reference": reference, "status": transaction.status}, company_id=transaction.company_id,
    )
    db.commit()
    db.refresh(transaction)
    return transaction


def verify_signature(raw_body: bytes, signature: Optional[str]) -> bool:
    secret = settings.payments.paystack_secret_key
    if not secret or not signature:
        return False
    return constant_time_compare(compute_hmac_sha512(secret, raw_body), signature)


def handle_webhook(db: Session, raw_body: bytes, signature: Optional[str]) -> str:
    """Returns the event name that was processed or ignored."""
    if not verify_signature(raw_body, signature):
        logger.warning("Rejected webhook with invalid signature")
        raise AuthenticationError("Invalid webhook signature")
    try:
        payload = json.loads(raw_body)
    except ValueError as e:
        raise AppException("Malformed webhook payload", error_code="INVALID_PAYLOAD") from e

    event = payload.get("event", "")
    data = payload.get("data") or {}
    logger.info(f"Webhook received: {event}")

    if event == "charge.success":
        reference = data.get("reference")
        exists = db.query(Transaction.id).filter(Transaction.reference == reference).first()
        if exists is None:
            logger.warning(f"charge.success for unknown reference {reference}")
        else:
            verify_payment(db, reference)
    elif event in ("transfer.success", "transfer.failed", "transfer.reversed"):
        payout_service.apply_transfer_event(db, event, data)
    return event


def list_transactions(
    db: Session,
    user: User,
    params: PageParams,
    type: Optional[TransactionType] = None,
    category: Optional[TransactionCategory] = None,
    status: Optional[TransactionStatus] = None,
    reconciled: Optional[bool] = None,
    mine: bool = False,
):
    query = db.query(Transaction).filter(Transaction.is_deleted == False)  # noqa: E712
    if mine:
        query = query.filter(Transaction.user_id == user.id)
    elif user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Transaction.company_id == user.company_id)
    if type:
        query = query.filter(Transaction.type == type.value)
    if category:
        query = query.filter(Transaction.category == category.value)
    if status:
        query = query.filter(Transaction.status == status.value)
    if reconciled is not None:
        query = query.filter(Transaction.reconciled == reconciled)
    return paginate(query.order_by(Transaction.created_at.desc(), Transaction.id.desc()), params)


def update_transaction(db: Session, transaction_id: int, data: TransactionUpdate, actor: User) -> Transaction:
    transaction = db.get(Transaction, transaction_id)
    if transaction is None or transaction.is_deleted:
        raise NotFoundError("Transaction")
    if actor.role != UserRole.SUPER_ADMIN and transaction.company_id != actor.company_id:
        raise NotFoundError("Transaction")

    changes = data.model_dump(exclude_unset=True)
    if "description" in changes:
        transaction.description = data.description
    if "tags" in changes:
        transaction.tags = list(data.tags or [])
    if "reconciled" in changes and data.reconciled is not None:
        transaction.reconciled = data.reconciled
        transaction.reconciled_at = utcnow() if data.reconciled else None
        transaction.approved_by = actor.id if data.reconciled else None
    AuditService(db).log_user_action(actor, "update_transaction", "transaction", transaction.id, changes)
    db.commit()
    db.refresh(transaction)
    return transaction
