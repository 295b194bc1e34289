import logging
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AppException, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.models.facility import Facility
from facilityhub.models.inventory import InventoryItem, ItemStatus
from facilityhub.models.user import User, UserRole
from facilityhub.schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.base import apply_changes
from facilityhub.services import subscription_service
from facilityhub.services.facility_service import normalize_pricing

logger = logging.getLogger(__name__)


def get_item(db: Session, item_id: int, user: Optional[User] = None) -> InventoryItem:
    item = db.query(InventoryItem).filter(
        InventoryItem.id == item_id, InventoryItem.is_deleted == False  # noqa: E712
    ).first()
    if item is None:
        raise NotFoundError("Inventory item")
    if user is not None and user.role in (UserRole.ADMIN, UserRole.STAFF) and item.company_id != user.company_id:
        raise NotFoundError("Inventory item")
    return item


def record_quantity_change(item: InventoryItem, change: int, reason: str):
    """Apply a stock change and append it to the item's history."""
    new_quantity = (item.quantity or 0) + change
    if new_quantity < 0:
        raise AppException("Insufficient inventory quantity", error_code="INSUFFICIENT_STOCK")
    item.quantity = new_quantity
    # JSON columns track reassignment, not in-place mutation
    item.history = list(item.history or []) + [
        {"date": utcnow().isoformat(), "change": change, "reason": reason}
    ]
    if item.status in (ItemStatus.IN_STOCK.value, ItemStatus.RENTED.value):
        item.status = (ItemStatus.IN_STOCK if new_quantity > 0 else ItemStatus.RENTED).value


def _check_facility(db: Session, facility_id: Optional[int], company_id: int):
    if facility_id is None:
        return
    facility = db.get(Facility, facility_id)
    if facility is None or facility.is_deleted or facility.company_id != company_id:
        raise NotFoundError("Facility")


def list_items(
    db: Session,
    params: PageParams,
    user: User,
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[ItemStatus] = None,
    company_id: Optional[int] = None,
):
    query = db.query(InventoryItem).filter(InventoryItem.is_deleted == False)  # noqa: E712
    if user.role in (UserRole.ADMIN, UserRole.STAFF):
        query = query.filter(InventoryItem.company_id == user.company_id)
    elif company_id is not None:
        query = query.filter(InventoryItem.company_id == company_id)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(InventoryItem.name.ilike(term), InventoryItem.description.ilike(term)))
    if category:
        query = query.filter(InventoryItem.category == category)
    if status:
        query = query.filter(InventoryItem.status == status.value)
    return paginate(query.order_by(InventoryItem.name, InventoryItem.id), params)


def create_item(db: Session, data: InventoryItemCreate, actor: User) -> InventoryItem:
    subscription_service.enforce_limit(db, actor.company, "max_inventory_items")
    _check_facility(db, data.associated_facility_id, actor.company_id)
    item = InventoryItem(
        **data.model_dump(mode="json", exclude={"pricing", "quantity"}),
        pricing=normalize_pricing(data.pricing),
        quantity=0,
        history=[],
        company_id=actor.company_id,
        created_by=actor.id,
    )
    if data.quantity:
        record_quantity_change(item, data.quantity, "initial stock")
    db.add(item)
    db.flush()
    AuditService(db).log_user_action(actor, "create_inventory_item", "inventory_item", item.id, {"name": item.name, "quantity": item.quantity})
    db.commit()
    db.refresh(item)
    return item


def update_item(db: Session, item_id: int, data: InventoryItemUpdate, actor: User) -> InventoryItem:
    item = get_item(db, item_id, actor)
    changes = data.model_dump(mode="json", exclude_unset=True, exclude={"pricing"})
    if changes.get("associated_facility_id") is not None:
        _check_facility(db, changes["associated_facility_id"], item.company_id)
    changes = apply_changes(item, changes)
    if data.pricing is not None:
        item.pricing = normalize_pricing(data.pricing)
        changes["pricing"] = item.pricing
    AuditService(db).log_user_action(actor, "update_inventory_item", "inventory_item", item.id, changes)
    db.commit()
    db.refresh(item)
    return item


def adjust_quantity(db: Session, item_id: int, change: int, reason: str, actor: User) -> InventoryItem:
    item = get_item(db, item_id, actor)
    record_quantity_change(item, change, reason)
    AuditService(db).log_user_action(actor, "adjust_inventory", "inventory_item", item.id, {"change": change, "reason": reason})
    db.commit()
    db.refresh(item)
    return item


def delete_item(db: Session, item_id: int, actor: User) -> InventoryItem:
    item = get_item(db, item_id, actor)
    item.is_deleted = True
    AuditService(db).log_user_action(actor, "delete_inventory_item", "inventory_item", item.id, {"name": item.name})
    db.commit()
    return item
