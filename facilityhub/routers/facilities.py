from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.clock import as_naive_utc
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, get_optional_user, require_staff
from facilityhub.schemas.facility import (
    AvailabilityResponse, BlockedDate, FacilityCreate, FacilityResponse, FacilityUpdate,
    ReviewCreate, ReviewResponse,
)
from facilityhub.services import facility_service
from datetime import datetime

router = APIRouter(prefix="/facilities", tags=["facilities"])


@router.get("", response_model=ApiResponse[List[FacilityResponse]])
def list_facilities(
    search: Optional[str] = None,
    company_id: Optional[int] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    facilities, meta = facility_service.list_facilities(db, params, search, company_id, current_user)
    return ApiResponse.ok([FacilityResponse.model_validate(f) for f in facilities], pagination=meta)


@router.post("", response_model=ApiResponse[FacilityResponse], status_code=status.HTTP_201_CREATED)
def create_facility(
    data: FacilityCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    facility = facility_service.create_facility(db, data, current_user)
    return ApiResponse.ok(FacilityResponse.model_validate(facility), message="Facility created")


@router.get("/{facility_id}", response_model=ApiResponse[FacilityResponse])
def get_facility(
    facility_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    facility = facility_service.get_facility(db, facility_id, current_user)
    return ApiResponse.ok(FacilityResponse.model_validate(facility))


@router.get("/{facility_id}/availability", response_model=ApiResponse[AvailabilityResponse])
def check_availability(
    facility_id: int,
    start: datetime = Query(...),
    end: datetime = Query(...),
    db: Session = Depends(get_db),
):
    result = facility_service.check_availability(db, facility_id, as_naive_utc(start), as_naive_utc(end))
    return ApiResponse.ok(result)


@router.put("/{facility_id}", response_model=ApiResponse[FacilityResponse])
def update_facility(
    facility_id: int,
    data: FacilityUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    facility = facility_service.update_facility(db, facility_id, data, current_user)
    return ApiResponse.ok(FacilityResponse.model_validate(facility), message="Facility updated")


@router.delete("/{facility_id}", response_model=ApiResponse[None])
def delete_facility(
    facility_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    facility_service.delete_facility(db, facility_id, current_user)
    return ApiResponse.ok(message="Facility deleted")


@router.post("/{facility_id}/block", response_model=ApiResponse[FacilityResponse])
def block_dates(
    facility_id: int,
    block: BlockedDate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    facility = facility_service.add_blocked_date(db, facility_id, block, current_user)
    return ApiResponse.ok(FacilityResponse.model_validate(facility), message="Dates blocked")


@router.post("/{facility_id}/reviews", response_model=ApiResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
def add_review(
    facility_id: int,
    data: ReviewCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    review = facility_service.add_review(db, facility_id, data, current_user)
    return ApiResponse.ok(ReviewResponse.model_validate(review), message="Review added")
