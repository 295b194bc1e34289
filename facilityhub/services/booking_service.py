"""
Booking lifecycle: create with conflict checks, staff updates, cancellation,
check-in/out, soft delete and statistics.
"""
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import case, func
from sqlalchemy.orm import Session
from facilityhub.core.clock import month_bounds, utcnow
from facilityhub.core.exceptions import AccessDeniedError, AppException, ConflictError, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.booking import Booking, BookingStatus, DiscountType, PaymentStatus
from facilityhub.models.facility import Facility
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.booking import BookingCancel, BookingCreate, BookingUpdate, CheckIn, CheckOut, Discount
from facilityhub.services import facility_service
from facilityhub.services.audit import AuditService
from facilityhub.services.notification import NotificationService

logger = logging.getLogger(__name__)


def growth_percentage(current: float, previous: float) -> float:
    """Month-over-month change in percent; 100 when growing from zero, 0 when both are zero."""
    if previous:
        return round((current - previous) / previous * 100, 2)
    return 100.0 if current else 0.0


def apply_discount(price: float, discount: Optional[Discount]) -> float:
    if discount is None:
        return round(price, 2)
    if discount.type == DiscountType.PERCENTAGE:
        price = price * (1 - discount.value / 100)
    else:
        price = price - discount.value
    return round(max(0.0, price), 2)


def get_booking(db: Session, booking_id: int, user: User, show_deleted: bool = False) -> Booking:
    """
    Customers may only see their own bookings (403 otherwise); staff only
    their company's (404 otherwise). Deleted bookings are visible to staff
    only when `show_deleted` is set.
    """
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking")
    if booking.is_deleted and not (show_deleted and user.role != UserRole.USER):
        raise NotFoundError("Booking")

    if user.role == UserRole.SUPER_ADMIN:
        return booking
    if user.role in (UserRole.ADMIN, UserRole.STAFF):
        if booking.company_id != user.company_id:
            raise NotFoundError("Booking")
        return booking
    if booking.user_id != user.id:
        raise AccessDeniedError("You can only access your own bookings")
    return booking


def create_booking(db: Session, data: BookingCreate, user: User) -> Booking:
    facility = facility_service.get_facility(db, data.facility_id)

    conflict = facility_service.find_window_conflict(db, facility, data.start_date, data.end_date)
    if conflict:
        raise ConflictError(conflict)

    if data.total_price is not None:
        base_price = data.total_price
    else:
        base_price = facility_service.price_for_window(facility.default_pricing, data.start_date, data.end_date)

    booking = Booking(
        user_id=user.id,
        facility_id=facility.id,
        company_id=facility.company_id,
        start_date=data.start_date,
        end_date=data.end_date,
        duration=facility_service.describe_duration(data.start_date, data.end_date),
        total_price=apply_discount(base_price, data.discount),
        status=BookingStatus.PENDING.value,
        payment_status=PaymentStatus.PENDING.value,
        notes=data.notes,
    )
    if data.discount:
        booking.discount_type = data.discount.type.value
        booking.discount_value = data.discount.value
        booking.discount_reason = data.discount.reason
        booking.discount_applied_by = user.id
    db.add(booking)
    db.flush()

    AuditService(db).log_action(
        action="create_booking",
        entity_type="booking",
        entity_id=booking.id,
        user_id=user.id,
        user_role=user.role,
        details={"facility_id": facility.id, "start": data.start_date, "end": data.end_date},
        company_id=facility.company_id,
    )
    if facility.company and facility.company.owner_id:
        NotificationService.notify_user(
            db,
            facility.company.owner_id,
            "New booking",
            f"{facility.name} was booked from {data.start_date:%Y-%m-%d %H:%M} to {data.end_date:%Y-%m-%d %H:%M}.",
            type="info",
            link=f"/bookings/{booking.id}",
        )
    db.commit()
    db.refresh(booking)
    logger.info(f"Booking {booking.id} created for facility {facility.id} by user {user.id}")
    return booking


def list_user_bookings(db: Session, user: User, params: PageParams, status: Optional[BookingStatus] = None):
    query = db.query(Booking).filter(Booking.user_id == user.id, Booking.is_deleted == False)  # noqa: E712
    if status:
        query = query.filter(Booking.status == status.value)
    return paginate(query.order_by(Booking.start_date.desc(), Booking.id.desc()), params)


def list_company_bookings(
    db: Session,
    user: User,
    params: PageParams,
    status: Optional[BookingStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    facility_id: Optional[int] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    search: Optional[str] = None,
    show_deleted: bool = False,
):
    query = db.query(Booking)
    if user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Booking.company_id == user.company_id)
    if not show_deleted:
        query = query.filter(Booking.is_deleted == False)  # noqa: E712
    if status:
        query = query.filter(Booking.status == status.value)
    if payment_status:
        query = query.filter(Booking.payment_status == payment_status.value)
    if facility_id:
        query = query.filter(Booking.facility_id == facility_id)
    if start_from:
        query = query.filter(Booking.start_date >= start_from)
    if start_to:
        query = query.filter(Booking.start_date <= start_to)
    if search:
        query = query.join(Facility, Facility.id == Booking.facility_id).filter(Facility.name.ilike(f"%{search}%"))
    return paginate(query.order_by(Booking.start_date.desc(), Booking.id.desc()), params)


def update_booking(db: Session, booking_id: int, data: BookingUpdate, actor: User) -> Booking:
    booking = get_booking(db, booking_id, actor)
    changes = data.model_dump(mode="json", exclude_unset=True)

    new_start = data.start_date or booking.start_date
    new_end = data.end_date or booking.end_date
    if data.start_date is not None or data.end_date is not None:
        if new_end <= new_start:
            raise AppException("end_date must be after start_date", error_code="VALIDATION_ERROR")
        conflict = facility_service.find_window_conflict(
            db, booking.facility, new_start, new_end, exclude_booking_id=booking.id
        )
        if conflict:
            raise ConflictError(conflict)
        booking.start_date = new_start
        booking.end_date = new_end
        booking.duration = facility_service.describe_duration(new_start, new_end)

    if data.status is not None:
        booking.status = data.status.value
    if data.payment_status is not None:
        booking.payment_status = data.payment_status.value
        if data.payment_status == PaymentStatus.COMPLETED and booking.paid_at is None:
            booking.paid_at = utcnow()
    if data.payment_method is not None:
        booking.payment_method = data.payment_method.value
    if data.paid_amount is not None:
        booking.paid_amount = data.paid_amount
    if data.total_price is not None:
        booking.total_price = data.total_price
    if data.discount is not None:
        booking.total_price = apply_discount(booking.total_price, data.discount)
        booking.discount_type = data.discount.type.value
        booking.discount_value = data.discount.value
        booking.discount_reason = data.discount.reason
        booking.discount_applied_by = actor.id
    if data.notes is not None:
        booking.notes = data.notes
    if data.internal_notes is not None:
        booking.internal_notes = data.internal_notes

    AuditService(db).log_user_action(actor, "update_booking", "booking", booking.id, changes)
    if data.status == BookingStatus.CONFIRMED:
        NotificationService.notify_user(
            db, booking.user_id, "Booking confirmed",
            f"Your booking #{booking.id} has been confirmed.", type="success", link=f"/bookings/{booking.id}",
        )
    db.commit()
    db.refresh(booking)
    return booking


def cancel_booking(db: Session, booking_id: int, data: BookingCancel, actor: User) -> Booking:
    booking = get_booking(db, booking_id, actor)
    if booking.status in (BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value):
        raise AppException(f"Booking is already {booking.status}", error_code="INVALID_STATE")

    booking.status = BookingStatus.CANCELLED.value
    booking.cancellation_reason = data.reason
    booking.cancelled_by = actor.id
    booking.cancelled_at = utcnow()
    if data.refund_amount is not None:
        if actor.role == UserRole.USER:
            raise AccessDeniedError("Only staff can set a refund amount")
        if data.refund_amount > (booking.paid_amount or 0):
            raise AppException("Refund cannot exceed the amount paid", error_code="VALIDATION_ERROR")
        booking.refund_amount = data.refund_amount
        if data.refund_amount > 0:
            full = data.refund_amount >= (booking.paid_amount or 0)
            booking.payment_status = (PaymentStatus.REFUNDED if full else PaymentStatus.PARTIAL_REFUND).value

    AuditService(db).log_user_action(actor, "cancel_booking", "booking", booking.id, {"reason": data.reason})
    if actor.id != booking.user_id:
        NotificationService.notify_user(
            db, booking.user_id, "Booking cancelled",
            f"Your booking #{booking.id} was cancelled.", type="warning", link=f"/bookings/{booking.id}",
        )
    db.commit()
    db.refresh(booking)
    return booking


def check_in(db: Session, booking_id: int, data: CheckIn, actor: User) -> Booking:
    booking = get_booking(db, booking_id, actor)
    if booking.status != BookingStatus.CONFIRMED.value:
        raise AppException("Only confirmed bookings can be checked in", error_code="INVALID_STATE")
    if booking.check_in_time is not None:
        raise AppException("Booking is already checked in", error_code="INVALID_STATE")
    booking.check_in_time = utcnow()
    booking.check_in_by = actor.id
    booking.check_in_notes = data.notes
    AuditService(db).log_user_action(actor, "check_in", "booking", booking.id, {"notes": data.notes})
    db.commit()
    db.refresh(booking)
    return booking


def check_out(db: Session, booking_id: int, data: CheckOut, actor: User) -> Booking:
    booking = get_booking(db, booking_id, actor)
    if booking.check_in_time is None:
        raise AppException("Booking has not been checked in", error_code="INVALID_STATE")
    if booking.check_out_time is not None:
        raise AppException("Booking is already checked out", error_code="INVALID_STATE")
    booking.check_out_time = utcnow()
    booking.check_out_by = actor.id
    booking.check_out_condition = data.condition.value
    booking.check_out_notes = data.notes
    booking.damage_report = data.damage_report
    booking.status = BookingStatus.COMPLETED.value
    AuditService(db).log_user_action(
        actor, "check_out", "booking", booking.id, {"condition": data.condition.value}
    )
    db.commit()
    db.refresh(booking)
    return booking


def delete_booking(db: Session, booking_id: int, actor: User) -> Booking:
    booking = get_booking(db, booking_id, actor)
    booking.is_deleted = True
    AuditService(db).log_user_action(actor, "delete_booking", "booking", booking.id, {})
    db.commit()
    return booking


def _revenue_expr():
    # paid_amount when recorded, otherwise the booked price
    return func.coalesce(
        func.sum(case((Booking.paid_amount > 0, Booking.paid_amount), else_=Booking.total_price)),
        0.0,
    )


def booking_statistics(db: Session, company_id: Optional[int]) -> dict:
    base = db.query(Booking).filter(Booking.is_deleted == False)  # noqa: E712
    if company_id is not None:
        base = base.filter(Booking.company_id == company_id)

    counts = dict(
        base.with_entities(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
    )
    paid = base.filter(Booking.payment_status == PaymentStatus.COMPLETED.value)
    revenue = paid.with_entities(_revenue_expr()).scalar() or 0.0

    now = utcnow()
    current_start, current_end = month_bounds(now)
    previous_start, previous_end = month_bounds(now, months_back=1)
    current = paid.filter(Booking.paid_at >= current_start, Booking.paid_at < current_end).with_entities(_revenue_expr()).scalar() or 0.0
    previous = paid.filter(Booking.paid_at >= previous_start, Booking.paid_at < previous_end).with_entities(_revenue_expr()).scalar() or 0.0

    return {
        "total": sum(counts.values()),
        "confirmed": counts.get(BookingStatus.CONFIRMED.value, 0),
        "pending": counts.get(BookingStatus.PENDING.value, 0),
        "cancelled": counts.get(BookingStatus.CANCELLED.value, 0),
        "completed": counts.get(BookingStatus.COMPLETED.value, 0),
        "revenue": round(float(revenue), 2),
        "current_month_revenue": round(float(current), 2),
        "previous_month_revenue": round(float(previous), 2),
        "revenue_growth": growth_percentage(float(current), float(previous)),
    }
