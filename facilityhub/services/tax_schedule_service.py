"""Time-bounded levy schedules managed by the platform owner."""
from datetime import date
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AppException, NotFoundError
from facilityhub.models.tax import ScheduleScope, TaxSchedule
from facilityhub.models.user import User
from facilityhub.schemas.tax import TaxScheduleCreate, TaxScheduleUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.base import apply_changes


def in_effect_on(query, day: date):
    """is_active, started on or before `day`, and not yet past its sunset."""
    return query.filter(
        TaxSchedule.is_active == True,  # noqa: E712
        TaxSchedule.start_date <= day,
        or_(TaxSchedule.sunset_date.is_(None), TaxSchedule.sunset_date >= day),
    )


def get_schedule(db: Session, schedule_id: int) -> TaxSchedule:
    schedule = db.get(TaxSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Tax schedule")
    return schedule


def list_schedules(
    db: Session,
    applies_to: Optional[ScheduleScope] = None,
    is_active: Optional[bool] = None,
    active_on: Optional[date] = None,
) -> List[TaxSchedule]:
    query = db.query(TaxSchedule)
    if applies_to:
        query = query.filter(TaxSchedule.applies_to == applies_to.value)
    if is_active is not None:
        query = query.filter(TaxSchedule.is_active == is_active)
    if active_on:
        query = in_effect_on(query, active_on)
    return query.order_by(TaxSchedule.start_date.desc(), TaxSchedule.id.desc()).all()


def current_schedules(db: Session, applies_to: Optional[ScheduleScope] = None) -> List[TaxSchedule]:
    query = in_effect_on(db.query(TaxSchedule), utcnow().date())
    if applies_to and applies_to != ScheduleScope.ALL:
        query = query.filter(TaxSchedule.applies_to.in_((applies_to.value, ScheduleScope.ALL.value)))
    return query.order_by(TaxSchedule.start_date.desc(), TaxSchedule.id.desc()).all()


def create_schedule(db: Session, data: TaxScheduleCreate, actor: User) -> TaxSchedule:
    schedule = TaxSchedule(**data.model_dump(mode="python"), created_by=actor.id)
    schedule.type = data.type.value
    schedule.applies_to = data.applies_to.value
    db.add(schedule)
    db.flush()
    AuditService(db).log_user_action(actor, "create_tax_schedule", "tax_schedule", schedule.id, {"name": schedule.name})
    db.commit()
    db.refresh(schedule)
    return schedule


def update_schedule(db: Session, schedule_id: int, data: TaxScheduleUpdate, actor: User) -> TaxSchedule:
    schedule = get_schedule(db, schedule_id)
    changes = {
        field: value.value if hasattr(value, "value") else value
        for field, value in data.model_dump(mode="python", exclude_unset=True).items()
    }
    changes = apply_changes(schedule, changes)

    if schedule.sunset_date is not None and schedule.sunset_date <= schedule.start_date:
        raise AppException("sunset_date must be after start_date", error_code="VALIDATION_ERROR")

    AuditService(db).log_user_action(actor, "update_tax_schedule", "tax_schedule", schedule.id, changes)
    db.commit()
    db.refresh(schedule)
    return schedule


def delete_schedule(db: Session, schedule_id: int, actor: User):
    schedule = get_schedule(db, schedule_id)
    AuditService(db).log_user_action(actor, "delete_tax_schedule", "tax_schedule", schedule.id, {"name": schedule.name})
    db.delete(schedule)
    db.commit()
