from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.transaction import TransactionCategory, TransactionStatus, TransactionType
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_admin, require_staff
from facilityhub.schemas.transaction import TransactionResponse, TransactionUpdate
from facilityhub.services import payment_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("/me", response_model=ApiResponse[List[TransactionResponse]])
def my_transactions(
    status: Optional[TransactionStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    transactions, meta = payment_service.list_transactions(db, current_user, params, status=status, mine=True)
    return ApiResponse.ok([TransactionResponse.model_validate(t) for t in transactions], pagination=meta)


@router.get("", response_model=ApiResponse[List[TransactionResponse]])
def list_transactions(
    type: Optional[TransactionType] = None,
    category: Optional[TransactionCategory] = None,
    status: Optional[TransactionStatus] = None,
    reconciled: Optional[bool] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    transactions, meta = payment_service.list_transactions(
        db, current_user, params, type=type, category=category, status=status, reconciled=reconciled
    )
    return ApiResponse.ok([TransactionResponse.model_validate(t) for t in transactions], pagination=meta)


@router.patch("/{transaction_id}", response_model=ApiResponse[TransactionResponse])
def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin(active_company=True)),
):
    transaction = payment_service.update_transaction(db, transaction_id, data, current_user)
    return ApiResponse.ok(TransactionResponse.model_validate(transaction), message="Transaction updated")
