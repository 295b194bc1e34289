from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.tax import ScheduleScope
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_super_admin
from facilityhub.schemas.tax import TaxScheduleCreate, TaxScheduleResponse, TaxScheduleUpdate
from facilityhub.services import tax_schedule_service

router = APIRouter(prefix="/tax-schedules", tags=["tax-schedules"])


@router.get("/current", response_model=ApiResponse[List[TaxScheduleResponse]])
def current_schedules(
    applies_to: Optional[ScheduleScope] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    schedules = tax_schedule_service.current_schedules(db, applies_to)
    return ApiResponse.ok([TaxScheduleResponse.model_validate(s) for s in schedules])


@router.get("", response_model=ApiResponse[List[TaxScheduleResponse]])
def list_schedules(
    applies_to: Optional[ScheduleScope] = None,
    is_active: Optional[bool] = None,
    active_on: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    schedules = tax_schedule_service.list_schedules(db, applies_to, is_active, active_on)
    return ApiResponse.ok([TaxScheduleResponse.model_validate(s) for s in schedules])


@router.post("", response_model=ApiResponse[TaxScheduleResponse], status_code=status.HTTP_201_CREATED)
def create_schedule(
    data: TaxScheduleCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    schedule = tax_schedule_service.create_schedule(db, data, current_user)
    return ApiResponse.ok(TaxScheduleResponse.model_validate(schedule), message="Tax schedule created")


@router.put("/{schedule_id}", response_model=ApiResponse[TaxScheduleResponse])
def update_schedule(
    schedule_id: int,
    data: TaxScheduleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    schedule = tax_schedule_service.update_schedule(db, schedule_id, data, current_user)
    return ApiResponse.ok(TaxScheduleResponse.model_validate(schedule), message="Tax schedule updated")


@router.delete("/{schedule_id}", response_model=ApiResponse[None])
def delete_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    tax_schedule_service.delete_schedule(db, schedule_id, current_user)
    return ApiResponse.ok(message="Tax schedule deleted")
