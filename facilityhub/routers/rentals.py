from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.clock import UTCDateTime
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.rental import RentalStatus
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_staff
from facilityhub.schemas.rental import (
    RentalCreate, RentalResponse, RentalReturn, RentalStatistics, RentalStatusUpdate
)
from facilityhub.services import rental_service

router = APIRouter(prefix="/rentals", tags=["rentals"])


@router.post("", response_model=ApiResponse[RentalResponse], status_code=status.HTTP_201_CREATED)
def create_rental(
    data: RentalCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rental = rental_service.create_rental(db, data, current_user)
    return ApiResponse.ok(RentalResponse.model_validate(rental), message="Rental created")


@router.get("/me", response_model=ApiResponse[List[RentalResponse]])
def my_rentals(
    status: Optional[RentalStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rentals, meta = rental_service.list_rentals(db, current_user, params, status=status, mine=True)
    return ApiResponse.ok([RentalResponse.model_validate(r) for r in rentals], pagination=meta)


@router.get("/overdue", response_model=ApiResponse[List[RentalResponse]])
def overdue_rentals(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    rentals = rental_service.mark_overdue(db, current_user)
    return ApiResponse.ok([RentalResponse.model_validate(r) for r in rentals])


@router.get("/statistics", response_model=ApiResponse[RentalStatistics])
def rental_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    return ApiResponse.ok(rental_service.rental_statistics(db, current_user.company_id))


@router.get("", response_model=ApiResponse[List[RentalResponse]])
def list_rentals(
    status: Optional[RentalStatus] = None,
    user_id: Optional[int] = None,
    item_id: Optional[int] = None,
    start_from: Optional[UTCDateTime] = None,
    start_to: Optional[UTCDateTime] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    rentals, meta = rental_service.list_rentals(
        db, current_user, params,
        status=status, user_id=user_id, item_id=item_id, start_from=start_from, start_to=start_to,
    )
    return ApiResponse.ok([RentalResponse.model_validate(r) for r in rentals], pagination=meta)


@router.get("/{rental_id}", response_model=ApiResponse[RentalResponse])
def get_rental(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rental = rental_service.get_rental(db, rental_id, current_user)
    return ApiResponse.ok(RentalResponse.model_validate(rental))


@router.patch("/{rental_id}/status", response_model=ApiResponse[RentalResponse])
def update_rental_status(
    rental_id: int,
    data: RentalStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    rental = rental_service.update_status(db, rental_id, data.status, current_user)
    return ApiResponse.ok(RentalResponse.model_validate(rental), message="Rental status updated")


@router.post("/{rental_id}/return", response_model=ApiResponse[RentalResponse])
def return_rental(
    rental_id: int,
    data: RentalReturn,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    rental = rental_service.return_rental(db, rental_id, data, current_user)
    return ApiResponse.ok(RentalResponse.model_validate(rental), message="Rental returned")


@router.delete("/{rental_id}", response_model=ApiResponse[None])
def delete_rental(
    rental_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    rental_service.delete_rental(db, rental_id, current_user)
    return ApiResponse.ok(message="Rental deleted")
