from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional
from facilityhub.core.pagination import PageParams, pagination_params
from facilityhub.core.schemas import ApiResponse
from facilityhub.database import get_db
from facilityhub.models.ticket import TicketCategory, TicketPriority, TicketStatus
from facilityhub.models.user import User
from facilityhub.routers.auth_deps import get_current_user, require_staff, require_super_admin
from facilityhub.schemas.support import TicketDetailResponse, TicketMessageResponse, TicketResponse, TicketUpdate
from facilityhub.services import support_service

router = APIRouter(prefix="/support/tickets", tags=["support"])


async def _read_files(files: Optional[List[UploadFile]]) -> List[support_service.Attachment]:
    return [(f.filename, f.content_type, await f.read()) for f in (files or []) if f.filename]


@router.post("", response_model=ApiResponse[TicketDetailResponse], status_code=status.HTTP_201_CREATED)
async def create_ticket(
    title: str = Form(..., min_length=1, max_length=200),
    description: str = Form(..., min_length=1),
    priority: TicketPriority = Form(TicketPriority.MEDIUM),
    category: TicketCategory = Form(TicketCategory.GENERAL),
    company_id: Optional[int] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attachments = await _read_files(files)
    ticket = support_service.create_ticket(
        db, current_user, title, description, priority, category, company_id, attachments
    )
    return ApiResponse.ok(TicketDetailResponse.model_validate(ticket), message="Support ticket created")


@router.get("/mine", response_model=ApiResponse[List[TicketResponse]])
def my_tickets(
    status: Optional[TicketStatus] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tickets, meta = support_service.list_my_tickets(db, current_user, params, status)
    return ApiResponse.ok([TicketResponse.model_validate(t) for t in tickets], pagination=meta)


@router.get("/staff", response_model=ApiResponse[List[TicketResponse]])
def company_tickets(
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_staff()),
):
    tickets, meta = support_service.list_company_tickets(db, current_user, params, status, priority)
    return ApiResponse.ok([TicketResponse.model_validate(t) for t in tickets], pagination=meta)


@router.get("/all", response_model=ApiResponse[List[TicketResponse]])
def all_tickets(
    status: Optional[TicketStatus] = None,
    priority: Optional[TicketPriority] = None,
    company_id: Optional[int] = None,
    params: PageParams = Depends(pagination_params),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_super_admin),
):
    tickets, meta = support_service.list_all_tickets(db, params, status, priority, company_id)
    return ApiResponse.ok([TicketResponse.model_validate(t) for t in tickets], pagination=meta)


@router.get("/{ticket_id}", response_model=ApiResponse[TicketDetailResponse])
def get_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = support_service.open_ticket(db, ticket_id, current_user)
    return ApiResponse.ok(TicketDetailResponse.model_validate(ticket))


@router.post("/{ticket_id}/messages", response_model=ApiResponse[TicketMessageResponse], status_code=status.HTTP_201_CREATED)
async def add_message(
    ticket_id: int,
    message: str = Form(..., min_length=1),
    files: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attachments = await _read_files(files)
    reply = support_service.add_message(db, ticket_id, current_user, message, attachments)
    return ApiResponse.ok(TicketMessageResponse.model_validate(reply), message="Message sent")


@router.patch("/{ticket_id}", response_model=ApiResponse[TicketResponse])
def update_ticket(
    ticket_id: int,
    data: TicketUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ticket = support_service.update_ticket(db, ticket_id, data, current_user)
    return ApiResponse.ok(TicketResponse.model_validate(ticket), message="Ticket updated")


@router.delete("/{ticket_id}", response_model=ApiResponse[None])
def delete_ticket(
    ticket_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    support_service.delete_ticket(db, ticket_id, current_user)
    return ApiResponse.ok(message="Ticket deleted")
