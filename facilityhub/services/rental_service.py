"""
Inventory rentals.

Stock invariant: an item's quantity equals its stock minus the quantity held
by rentals that are still out (active or overdue).
"""
import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AccessDeniedError, AppException, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.inventory import InventoryItem
from facilityhub.models.rental import Rental, RentalStatus
from facilityhub.models.transaction import Transaction, TransactionCategory, TransactionStatus, TransactionType
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.rental import RentalCreate, RentalReturn
from facilityhub.services.audit import AuditService
from facilityhub.services.inventory_service import record_quantity_change
from facilityhub.services.notification import NotificationService

logger = logging.getLogger(__name__)

OUTSTANDING_STATUSES = (RentalStatus.ACTIVE.value, RentalStatus.OVERDUE.value)


def get_rental(db: Session, rental_id: int, user: User) -> Rental:
    rental = db.get(Rental, rental_id)
    if rental is None or rental.is_deleted:
        raise NotFoundError("Rental")
    if user.role == UserRole.SUPER_ADMIN:
        return rental
    if user.role in (UserRole.ADMIN, UserRole.STAFF):
        if rental.company_id != user.company_id:
            raise NotFoundError("Rental")
        return rental
    if rental.user_id != user.id:
        raise AccessDeniedError("You can only access your own rentals")
    return rental


def _restore_stock(db: Session, rental: Rental, reason: str):
    item = db.get(InventoryItem, rental.item_id)
    if item is not None:
        record_quantity_change(item, rental.quantity, reason)


def create_rental(db: Session, data: RentalCreate, actor: User) -> Rental:
    item = db.query(InventoryItem).filter(
        InventoryItem.id == data.item_id, InventoryItem.is_deleted == False  # noqa: E712
    ).first()
    if item is None or item.company_id is None:
        raise NotFoundError("Inventory item")

    if actor.role in (UserRole.ADMIN, UserRole.STAFF):
        if item.company_id != actor.company_id:
            raise NotFoundError("Inventory item")
        renter_id = data.user_id or actor.id
        if data.user_id is not None and db.get(User, data.user_id) is None:
            raise NotFoundError("User")
    else:
        renter_id = actor.id

    if data.quantity > (item.quantity or 0):
        raise AppException("Insufficient inventory quantity", error_code="INSUFFICIENT_STOCK")

    rental = Rental(
        item_id=item.id,
        user_id=renter_id,
        company_id=item.company_id,
        quantity=data.quantity,
        start_date=data.start_date,
        end_date=data.end_date,
        amount=data.amount,
        notes=data.notes,
        status=RentalStatus.ACTIVE.value,
        created_by=actor.id,
    )
    db.add(rental)
    db.flush()
    record_quantity_change(item, -data.quantity, f"rental #{rental.id}")

    AuditService(db).log_action(
        action="create_rental",
        entity_type="rental",
        entity_id=rental.id,
        user_id=actor.id,
        user_role=actor.role,
        details={"item_id": item.id, "quantity": data.quantity},
        company_id=item.company_id,
    )
    db.commit()
    db.refresh(rental)
    logger.info(f"Rental {rental.id} created: {data.quantity} x item {item.id}")
    return rental


def list_rentals(
    db: Session,
    user: User,
    params: PageParams,
    status: Optional[RentalStatus] = None,
    user_id: Optional[int] = None,
    item_id: Optional[int] = None,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    mine: bool = False,
):
    query = db.query(Rental).filter(Rental.is_deleted == False)  # noqa: E712
    if mine or user.role == UserRole.USER:
        query = query.filter(Rental.user_id == user.id)
    elif user.role != UserRole.SUPER_ADMIN:
        query = query.filter(Rental.company_id == user.company_id)
    if status:
        query = query.filter(Rental.status == status.value)
    if user_id:
        query = query.filter(Rental.user_id == user_id)
    if item_id:
        query = query.filter(Rental.item_id == item_id)
    if start_from:
        query = query.filter(Rental.start_date >= start_from)
    if start_to:
        query = query.filter(Rental.start_date <= start_to)
    return paginate(query.order_by(Rental.created_at.desc(), Rental.id.desc()), params)


def update_status(db: Session, rental_id: int, new_status: RentalStatus, actor: User) -> Rental:
    rental = get_rental(db, rental_id, actor)
    if rental.status not in OUTSTANDING_STATUSES:
        raise AppException(f"Rental is already {rental.status}", error_code="INVALID_STATE")

    if new_status in (RentalStatus.RETURNED, RentalStatus.CANCELLED):
        _restore_stock(db, rental, f"rental #{rental.id} {new_status.value}")
        if new_status == RentalStatus.RETURNED and rental.return_date is None:
            rental.return_date = utcnow()
    previous = rental.status
    rental.status = new_status.value
    AuditService(db).log_user_action(
        actor, "update_rental_status", "rental", rental.id, {"from": previous, "to": new_status.value}
    )
    db.commit()
    db.refresh(rental)
    return rental


def return_rental(db: Session, rental_id: int, data: RentalReturn, actor: User) -> Rental:
    rental = get_rental(db, rental_id, actor)
    if rental.status not in OUTSTANDING_STATUSES:
        raise AppException("Only active or overdue rentals can be returned", error_code="INVALID_STATE")

    return_date = data.return_date or utcnow()
    late_fee = data.late_fee if return_date > rental.end_date else 0.0
    fees = round(late_fee + data.damage_fee, 2)

    rental.status = RentalStatus.RETURNED.value
    rental.return_date = return_date
    rental.return_condition = data.condition.value
    rental.return_notes = data.notes
    rental.late_fee = late_fee
    rental.damage_fee = data.damage_fee
    _restore_stock(db, rental, f"rental #{rental.id} returned")

    if fees > 0:
        fee_transaction = Transaction(
            user_id=rental.user_id,
            company_id=rental.company_id,
            rental_id=rental.id,
            type=TransactionType.INCOME.value,
            category=TransactionCategory.RENTAL_FEES.value,
            amount=fees,
            method="cash",
            status=TransactionStatus.COMPLETED.value,
            description=f"Late/damage fees for rental #{rental.id}",
            tags=["rental", "fees"],
            paid_at=utcnow(),
        )
        db.add(fee_transaction)
        NotificationService.notify_user(
            db, rental.user_id, "Rental fees charged",
            f"Fees of {fees:.2f} were charged on rental #{rental.id}.", type="warning",
        )

    AuditService(db).log_user_action(
        actor, "return_rental", "rental", rental.id,
        {"late_fee": late_fee, "damage_fee": data.damage_fee, "condition": data.condition.value},
    )
    db.commit()
    db.refresh(rental)
    return rental


def mark_overdue(db: Session, user: User):
    """Flip active rentals past their end date to overdue; return every overdue rental in scope."""
    now = utcnow()
    scope = db.query(Rental).filter(Rental.is_deleted == False)  # noqa: E712
    if user.role != UserRole.SUPER_ADMIN:
        scope = scope.filter(Rental.company_id == user.company_id)

    newly_overdue = scope.filter(Rental.status == RentalStatus.ACTIVE.value, Rental.end_date < now).all()
    for rental in newly_overdue:
        rental.status = RentalStatus.OVERDUE.value
        NotificationService.notify_user(
            db, rental.user_id, "Rental overdue",
            f"Rental #{rental.id} was due on {rental.end_date:%Y-%m-%d}. Please return the item.",
            type="warning",
        )
    if newly_overdue:
        logger.info(f"Marked {len(newly_overdue)} rental(s) overdue")
    db.commit()
    return scope.filter(Rental.status == RentalStatus.OVERDUE.value).order_by(Rental.end_date).all()


def rental_statistics(db: Session, company_id: Optional[int]) -> dict:
    base = db.query(Rental).filter(Rental.is_deleted == False)  # noqa: E712
    if company_id is not None:
        base = base.filter(Rental.company_id == company_id)

    counts = dict(base.with_entities(Rental.status, func.count(Rental.id)).group_by(Rental.status).all())
    total_revenue = base.with_entities(func.coalesce(func.sum(Rental.amount), 0.0)).scalar()
    pending_fees = base.filter(
        Rental.status.in_((RentalStatus.OVERDUE.value, RentalStatus.RETURNED.value))
    ).with_entities(func.coalesce(func.sum(Rental.late_fee + Rental.damage_fee), 0.0)).scalar()

    return {
        "total_rentals": sum(counts.values()),
        "active_rentals": counts.get(RentalStatus.ACTIVE.value, 0),
        "overdue_rentals": counts.get(RentalStatus.OVERDUE.value, 0),
        "returned_rentals": counts.get(RentalStatus.RETURNED.value, 0),
        "total_revenue": round(float(total_revenue or 0), 2),
        "pending_fees": round(float(pending_fees or 0), 2),
    }


def delete_rental(db: Session, rental_id: int, actor: User) -> Rental:
    rental = get_rental(db, rental_id, actor)
    if rental.status in OUTSTANDING_STATUSES:
        _restore_stock(db, rental, f"rental #{rental.id} deleted")
    rental.is_deleted = True
    AuditService(db).log_user_action(actor, "delete_rental", "rental", rental.id, {})
    db.commit()
    return rental
