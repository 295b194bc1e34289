from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, List, Optional
from facilityhub.core.clock import UTCDateTime
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.booking import BookingStatus, PaymentStatus
from facilityhub.models.user import User, UserRole
from facilityhub.routers.auth_deps import get_current_user, require_staff
from facilityhub.schemas.booking import (
    BookingCancel, BookingCreate, BookingResponse, BookingStatistics, BookingUpdate,
    CheckIn, CheckOut, StaffBookingResponse,
)
from facilityhub.services import booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _serialize(booking, user: User):
    if user.role == UserRole.USER:
        return BookingResponse.model_validate(booking)
    return StaffBookingResponse.model_validate(booking)


@router.post("", response_model=ApiResponse[BookingResponse], status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.create_booking(db, data, current_user)
    return ApiResponse.ok(BookingResponse.model_validate(booking), message="Booking created")


@router.get("/me", response_model=ApiResponse[List[BookingResponse]])
def my_bookings(
    status: Optional[BookingStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    bookings, meta = booking_service.list_user_bookings(db, current_user, params, status)
    return ApiResponse.ok([BookingResponse.model_validate(b) for b in bookings], pagination=meta)


@router.get("/statistics", response_model=ApiResponse[BookingStatistics])
def booking_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    return ApiResponse.ok(booking_service.booking_statistics(db, current_user.company_id))


@router.get("", response_model=ApiResponse[List[StaffBookingResponse]])
def list_bookings(
    status: Optional[BookingStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    facility_id: Optional[int] = None,
    start_from: Optional[UTCDateTime] = None,
    start_to: Optional[UTCDateTime] = None,
    search: Optional[str] = None,
    show_deleted: bool = False,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    bookings, meta = booking_service.list_company_bookings(
        db, current_user, params,
        status=status,
        payment_status=payment_status,
        facility_id=facility_id,
        start_from=start_from,
        start_to=start_to,
        search=search,
        show_deleted=show_deleted,
    )
    return ApiResponse.ok([StaffBookingResponse.model_validate(b) for b in bookings], pagination=meta)


@router.get("/{booking_id}", response_model=ApiResponse[Any])
def get_booking(
    booking_id: int,
    show_deleted: bool = False,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.get_booking(db, booking_id, current_user, show_deleted=show_deleted)
    return ApiResponse.ok(_serialize(booking, current_user))


@router.put("/{booking_id}", response_model=ApiResponse[StaffBookingResponse])
def update_booking(
    booking_id: int,
    data: BookingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    booking = booking_service.update_booking(db, booking_id, data, current_user)
    return ApiResponse.ok(StaffBookingResponse.model_validate(booking), message="Booking updated")


@router.post("/{booking_id}/cancel", response_model=ApiResponse[Any])
def cancel_booking(
    booking_id: int,
    data: BookingCancel,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking = booking_service.cancel_booking(db, booking_id, data, current_user)
    return ApiResponse.ok(_serialize(booking, current_user), message="Booking cancelled")


@router.post("/{booking_id}/check-in", response_model=ApiResponse[StaffBookingResponse])
def check_in(
    booking_id: int,
    data: CheckIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    booking = booking_service.check_in(db, booking_id, data, current_user)
    return ApiResponse.ok(StaffBookingResponse.model_validate(booking), message="Checked in")


@router.post("/{booking_id}/check-out", response_model=ApiResponse[StaffBookingResponse])
def check_out(
    booking_id: int,
    data: CheckOut,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    booking = booking_service.check_out(db, booking_id, data, current_user)
    return ApiResponse.ok(StaffBookingResponse.model_validate(booking), message="Checked out")


@router.delete("/{booking_id}", response_model=ApiResponse[None])
def delete_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    booking_service.delete_booking(db, booking_id, current_user)
    return ApiResponse.ok(message="Booking deleted")
