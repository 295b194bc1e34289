"""
Facility listings: CRUD, blocked date ranges, availability windows, pricing and reviews.
"""
import logging
import math
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from facilityhub.core.clock import as_naive_utc
from facilityhub.core.exceptions import AppException, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.booking import Booking, BookingStatus, BLOCKING_STATUSES
from facilityhub.models.facility import Facility, FacilityReview, PRICING_UNIT_HOURS, PricingUnit
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.facility import BlockedDate, FacilityCreate, FacilityUpdate, PricingEntry, ReviewCreate
from facilityhub.services.audit import AuditService
from facilityhub.services.base import apply_changes
from facilityhub.services import subscription_service

logger = logging.getLogger(__name__)


def normalize_pricing(entries: List[PricingEntry]) -> List[dict]:
    """Serialise pricing so that exactly one entry (the first, if unmarked) is the default."""
    data = [entry.model_dump(mode="json") for entry in entries]
    if data and not any(p["is_default"] for p in data):
        data[0]["is_default"] = True
    return data


def price_for_window(pricing_entry: Optional[dict], start: datetime, end: datetime) -> float:
    """ceil(duration / unit length) * unit amount."""
    if not pricing_entry:
        return 0.0
    hours = (end - start).total_seconds() / 3600
    unit_hours = PRICING_UNIT_HOURS[PricingUnit(pricing_entry["unit"])]
    units = max(1, math.ceil(hours / unit_hours))
    return round(units * float(pricing_entry["amount"]), 2)


def describe_duration(start: datetime, end: datetime) -> str:
    total_minutes = int((end - start).total_seconds() // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    parts = []
    if days:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")
    return " ".join(parts) or "0 minutes"


def get_facility(db: Session, facility_id: int, user: Optional[User] = None, include_inactive: bool = False) -> Facility:
    """
    Public callers only see active facilities; company staff see their own
    company's facilities whatever their state (but never deleted ones).
    """
    facility = db.query(Facility).filter(Facility.id == facility_id, Facility.is_deleted == False).first()  # noqa: E712
    if facility is None:
        raise NotFoundError("Facility")
    if user is not None and user.role in (UserRole.ADMIN, UserRole.STAFF):
        if facility.company_id != user.company_id:
            raise NotFoundError("Facility")
        return facility
    if not facility.is_active and not include_inactive:
        raise NotFoundError("Facility")
    return facility


def list_facilities(
    db: Session,
    params: PageParams,
    search: Optional[str] = None,
    company_id: Optional[int] = None,
    user: Optional[User] = None,
):
    query = db.query(Facility).filter(Facility.is_deleted == False)  # noqa: E712
    if user is not None and user.role in (UserRole.ADMIN, UserRole.STAFF):
        query = query.filter(Facility.company_id == user.company_id)
    else:
        query = query.filter(Facility.is_active == True)  # noqa: E712
        if company_id is not None:
            query = query.filter(Facility.company_id == company_id)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(Facility.name.ilike(term), Facility.description.ilike(term)))
    return paginate(query.order_by(Facility.created_at.desc(), Facility.id.desc()), params)


def create_facility(db: Session, data: FacilityCreate, actor: User) -> Facility:
    subscription_service.enforce_limit(db, actor.company, "max_facilities")
    payload = data.model_dump(mode="json", exclude={"pricing"})
    facility = Facility(
        **payload,
        pricing=normalize_pricing(data.pricing),
        blocked_dates=[],
        company_id=actor.company_id,
        created_by=actor.id,
    )
    db.add(facility)
    db.flush()
    AuditService(db).log_user_action(actor, "create_facility", "facility", facility.id, {"name": facility.name})
    db.commit()
    db.refresh(facility)
    logger.info(f"Facility {facility.id} created for company {facility.company_id}")
    return facility


def update_facility(db: Session, facility_id: int, data: FacilityUpdate, actor: User) -> Facility:
    facility = get_facility(db, facility_id, actor)
    changes = apply_changes(facility, data.model_dump(mode="json", exclude_unset=True, exclude={"pricing"}))
    if data.pricing is not None:
        facility.pricing = normalize_pricing(data.pricing)
        changes["pricing"] = facility.pricing

    maximum = facility.capacity_maximum
    recommended = facility.capacity_recommended
    if maximum is not None and recommended is not None and recommended > maximum:
        raise AppException("recommended capacity cannot exceed maximum capacity", error_code="VALIDATION_ERROR")

    AuditService(db).log_user_action(actor, "update_facility", "facility", facility.id, changes)
    db.commit()
    db.refresh(facility)
    return facility


def delete_facility(db: Session, facility_id: int, actor: User) -> Facility:
    facility = get_facility(db, facility_id, actor)
    facility.is_deleted = True
    facility.is_active = False
    AuditService(db).log_user_action(actor, "delete_facility", "facility", facility.id, {"name": facility.name})
    db.commit()
    return facility


def add_blocked_date(db: Session, facility_id: int, block: BlockedDate, actor: User) -> Facility:
    facility = get_facility(db, facility_id, actor)
    # JSON columns track reassignment, not in-place mutation
    facility.blocked_dates = list(facility.blocked_dates or []) + [block.model_dump(mode="json")]
    AuditService(db).log_user_action(actor, "block_facility_dates", "facility", facility.id, block.model_dump(mode="json"))
    db.commit()
    db.refresh(facility)
    return facility


def _parse_blocked(entry: dict) -> Tuple[datetime, datetime]:
    start = as_naive_utc(datetime.fromisoformat(entry["start_date"]))
    end = as_naive_utc(datetime.fromisoformat(entry["end_date"]))
    return start, end


def find_window_conflict(
    db: Session,
    facility: Facility,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[int] = None,
) -> Optional[str]:
    """
    Return why [start, end) cannot be booked, or None if it is free.
    Intervals touching at an endpoint do not overlap.
    """
    for entry in facility.blocked_dates or []:
        blocked_start, blocked_end = _parse_blocked(entry)
        if start < blocked_end and end > blocked_start:
            reason = entry.get("reason") or "maintenance"
            return f"Facility is unavailable for the selected dates ({reason})"

    query = db.query(Booking).filter(
        Booking.facility_id == facility.id,
        Booking.is_deleted == False,  # noqa: E712
        Booking.status.in_(BLOCKING_STATUSES),
        Booking.start_date < end,
        Booking.end_date > start,
    )
    if exclude_booking_id is not None:
        query = query.filter(Booking.id != exclude_booking_id)
    if query.first() is not None:
        return "Facility is already booked for the selected dates"
    return None


def check_availability(db: Session, facility_id: int, start: datetime, end: datetime) -> dict:
    facility = get_facility(db, facility_id)
    if end <= start:
        raise AppException("end must be after start", error_code="VALIDATION_ERROR")
    reason = find_window_conflict(db, facility, start, end)
    return {
        "facility_id": facility.id,
        "start": start,
        "end": end,
        "available": reason is None,
        "reason": reason,
    }


def add_review(db: Session, facility_id: int, data: ReviewCreate, user: User) -> FacilityReview:
    facility = get_facility(db, facility_id, include_inactive=True)
    completed = db.query(Booking).filter(
        Booking.facility_id == facility.id,
        Booking.user_id == user.id,
        Booking.status == BookingStatus.COMPLETED.value,
        Booking.is_deleted == False,  # noqa: E712
    ).first()
    if completed is None:
        raise AppException("You can only review facilities you have used", status_code=403, error_code="PERMISSION_DENIED")
    if db.query(FacilityReview).filter_by(facility_id=facility.id, user_id=user.id).first():
        raise AppException("You have already reviewed this facility", status_code=409, error_code="CONFLICT")

    review = FacilityReview(facility_id=facility.id, user_id=user.id, rating=data.rating, comment=data.comment)
    db.add(review)
    db.flush()

    count, average = db.query(func.count(FacilityReview.id), func.avg(FacilityReview.rating)).filter(
        FacilityReview.facility_id == facility.id
    ).one()
    facility.rating_count = count
    facility.rating_average = round(float(average or 0), 2)
    db.commit()
    db.refresh(review)
    return review
