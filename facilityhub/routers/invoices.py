from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.clock import UTCDateTime
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.invoice import InvoiceStatus
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_permission
from facilityhub.schemas.invoice import (
    InvoiceCreate, InvoiceFromSource, InvoiceResponse, InvoiceStatistics, InvoiceStatusUpdate
)
from facilityhub.services import invoice_service

router = APIRouter(prefix="/invoices", tags=["invoices"])

can_view = require_permission("view_invoices")
can_manage = require_permission("manage_transactions", active_company=True)


@router.post("", response_model=ApiResponse[InvoiceResponse], status_code=status.HTTP_201_CREATED)
def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    invoice = invoice_service.create_invoice(db, data, current_user)
    return ApiResponse.ok(InvoiceResponse.model_validate(invoice), message="Invoice created")


@router.post(
    "/from-booking/{booking_id}",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
def invoice_booking(
    booking_id: int,
    data: Optional[InvoiceFromSource] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    invoice = invoice_service.create_from_booking(db, booking_id, data or InvoiceFromSource(), current_user)
    return ApiResponse.ok(InvoiceResponse.model_validate(invoice), message="Invoice created")


@router.post(
    "/from-rental/{rental_id}",
    response_model=ApiResponse[InvoiceResponse],
    status_code=status.HTTP_201_CREATED,
)
def invoice_rental(
    rental_id: int,
    data: Optional[InvoiceFromSource] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    invoice = invoice_service.create_from_rental(db, rental_id, data or InvoiceFromSource(), current_user)
    return ApiResponse.ok(InvoiceResponse.model_validate(invoice), message="Invoice created")


@router.get("/me", response_model=ApiResponse[List[InvoiceResponse]])
def my_invoices(
    status: Optional[InvoiceStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoices, meta = invoice_service.list_invoices(db, current_user, params, status=status, mine=True)
    return ApiResponse.ok([InvoiceResponse.model_validate(i) for i in invoices], pagination=meta)


@router.get("/statistics", response_model=ApiResponse[InvoiceStatistics])
def invoice_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    return ApiResponse.ok(invoice_service.invoice_statistics(db, current_user.company_id))


@router.get("", response_model=ApiResponse[List[InvoiceResponse]])
def list_invoices(
    status: Optional[InvoiceStatus] = None,
    user_id: Optional[int] = None,
    facility_id: Optional[int] = None,
    search: Optional[str] = None,
    issued_from: Optional[UTCDateTime] = None,
    issued_to: Optional[UTCDateTime] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(can_view),
):
    invoices, meta = invoice_service.list_invoices(
        db, current_user, params,
        status=status, user_id=user_id, facility_id=facility_id, search=search,
        issued_from=issued_from, issued_to=issued_to,
    )
    return ApiResponse.ok([InvoiceResponse.model_validate(i) for i in invoices], pagination=meta)


@router.get("/{invoice_id}", response_model=ApiResponse[InvoiceResponse])
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = invoice_service.get_invoice(db, invoice_id, current_user)
    return ApiResponse.ok(InvoiceResponse.model_validate(invoice))


@router.patch("/{invoice_id}/status", response_model=ApiResponse[InvoiceResponse])
def update_invoice_status(
    invoice_id: int,
    data: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    invoice = invoice_service.update_status(db, invoice_id, data, current_user)
    return ApiResponse.ok(InvoiceResponse.model_validate(invoice), message="Invoice status updated")


@router.delete("/{invoice_id}", response_model=ApiResponse[None])
def delete_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(can_manage),
):
    invoice_service.delete_invoice(db, invoice_id, current_user)
    return ApiResponse.ok(message="Invoice deleted")
