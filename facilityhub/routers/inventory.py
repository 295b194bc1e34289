from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.inventory import ItemStatus
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_staff
from facilityhub.schemas.inventory import (
    InventoryItemCreate, InventoryItemResponse, InventoryItemUpdate, QuantityAdjustment
)
from facilityhub.services import inventory_service

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("", response_model=ApiResponse[List[InventoryItemResponse]])
def list_items(
    search: Optional[str] = None,
    category: Optional[str] = None,
    status: Optional[ItemStatus] = None,
    company_id: Optional[int] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items, meta = inventory_service.list_items(db, params, current_user, search, category, status, company_id)
    return ApiResponse.ok([InventoryItemResponse.model_validate(i) for i in items], pagination=meta)


@router.post("", response_model=ApiResponse[InventoryItemResponse], status_code=status.HTTP_201_CREATED)
def create_item(
    data: InventoryItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    item = inventory_service.create_item(db, data, current_user)
    return ApiResponse.ok(InventoryItemResponse.model_validate(item), message="Inventory item created")


@router.get("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = inventory_service.get_item(db, item_id, current_user)
    return ApiResponse.ok(InventoryItemResponse.model_validate(item))


@router.put("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
def update_item(
    item_id: int,
    data: InventoryItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    item = inventory_service.update_item(db, item_id, data, current_user)
    return ApiResponse.ok(InventoryItemResponse.model_validate(item), message="Inventory item updated")


@router.post("/{item_id}/adjust", response_model=ApiResponse[InventoryItemResponse])
def adjust_quantity(
    item_id: int,
    data: QuantityAdjustment,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    item = inventory_service.adjust_quantity(db, item_id, data.change, data.reason, current_user)
    return ApiResponse.ok(InventoryItemResponse.model_validate(item), message="Quantity adjusted")


@router.delete("/{item_id}", response_model=ApiResponse[None])
def delete_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff(active_company=True)),
):
    inventory_service.delete_item(db, item_id, current_user)
    return ApiResponse.ok(message="Inventory item deleted")
