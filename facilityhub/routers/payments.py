from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from typing import Optional
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user
from facilityhub.schemas.transaction import PaymentInitialize, PaymentInitResponse, TransactionResponse
from facilityhub.services import payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


async def raw_body(request: Request) -> bytes:
    return await request.body()


@router.post("/initialize", response_model=ApiResponse[PaymentInitResponse])
def initialize_payment(
    data: PaymentInitialize,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = payment_service.initialize_payment(db, data, current_user)
    return ApiResponse.ok(result, message="Payment initialized")


@router.get("/verify/{reference}", response_model=ApiResponse[TransactionResponse])
def verify_payment(
    reference: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    transaction = payment_service.verify_payment(db, reference, current_user)
    return ApiResponse.ok(TransactionResponse.model_validate(transaction), message=f"Payment {transaction.status}")


@router.post("/webhook", response_model=ApiResponse[None])
def paystack_webhook(
    body: bytes = Depends(raw_body),
    x_paystack_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    event = payment_service.handle_webhook(db, body, x_paystack_signature)
    return ApiResponse.ok(message=f"Event {event} received")
