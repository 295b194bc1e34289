"""
Support tickets between customers, company staff and the platform team.
"""
import logging
import os
from typing import List, Optional, Sequence, Tuple
from sqlalchemy.orm import Session
from facilityhub.core.clock import utcnow
from facilityhub.core.exceptions import AccessDeniedError, NotFoundError
from facilityhub.core.pagination import PageParams, paginate
from facilityhub.core.uploads import remove_file, store_file, validate_upload
from facilityhub.models.company import Company
from facilityhub.models.ticket import (
    MessageType, SenderType, SupportTicket, TicketCategory, TicketMessage, TicketPriority, TicketStatus
)
from facilityhub.models.user import User, UserRole, STAFF_ROLES
from facilityhub.schemas.support import TicketUpdate
from facilityhub.services.audit import AuditService
from facilityhub.services.notification import NotificationService

logger = logging.getLogger(__name__)

# (filename, content_type, content)
Attachment = Tuple[str, Optional[str], bytes]


def ticket_number_for(ticket_id: int) -> str:
    return f"TICKET-{ticket_id:06d}"


def _save_attachments(ticket_id: int, files: Sequence[Attachment]) -> List[str]:
    for name, content_type, content in files:
        validate_upload(name, content_type, len(content))
    paths = []
    try:
        for name, _, content in files:
            _, path = store_file(os.path.join("support", str(ticket_id)), name, content)
            paths.append(path)
    except OSError:
        for path in paths:
            remove_file(path)
        raise
    return paths


def _is_staff_side(user: User, ticket: SupportTicket) -> bool:
    if user.role == UserRole.SUPER_ADMIN:
        return True
    return user.role in STAFF_ROLES and ticket.company_id is not None and user.company_id == ticket.company_id


def _can_view(user: User, ticket: SupportTicket) -> bool:
    return (
        user.role == UserRole.SUPER_ADMIN
        or (ticket.company_id is not None and user.company_id == ticket.company_id)
        or ticket.user_id == user.id
        or ticket.assigned_to_id == user.id
    )


def get_ticket(db: Session, ticket_id: int, user: User) -> SupportTicket:
    ticket = db.get(SupportTicket, ticket_id)
    if ticket is None or ticket.is_deleted:
        raise NotFoundError("Ticket")
    if not _can_view(user, ticket):
        raise AccessDeniedError("You do not have access to this ticket")
    return ticket


def create_ticket(
    db: Session,
    actor: User,
    title: str,
    description: str,
    priority: TicketPriority = TicketPriority.MEDIUM,
    category: TicketCategory = TicketCategory.GENERAL,
    company_id: Optional[int] = None,
    files: Sequence[Attachment] = (),
) -> SupportTicket:
    if actor.role in STAFF_ROLES:
        company_id = actor.company_id
    elif company_id is not None and db.get(Company, company_id) is None:
        raise NotFoundError("Company")

    ticket = SupportTicket(
        title=title,
        description=description,
        priority=priority.value,
        category=category.value,
        status=TicketStatus.OPEN.value,
        company_id=company_id,
        user_id=actor.id,
    )
    db.add(ticket)
    db.flush()
    ticket.ticket_number = ticket_number_for(ticket.id)

    db.add(TicketMessage(
        ticket_id=ticket.id,
        sender_type=SenderType.SYSTEM.value,
        message=f"Support ticket {ticket.ticket_number} has been created. A staff member will respond shortly.",
        message_type=MessageType.SYSTEM.value,
        attachments=[],
        read_by=[],
    ))

    stored: List[str] = []
    if files:
        stored = _save_attachments(ticket.id, files)
        db.add(TicketMessage(
            ticket_id=ticket.id,
            sender_id=actor.id,
            sender_type=SenderType.USER.value if actor.role == UserRole.USER else SenderType.STAFF.value,
            message=f"{len(stored)} attachment(s) uploaded",
            message_type=MessageType.FILE.value,
            attachments=stored,
            read_by=[actor.id],
        ))

    try:
        AuditService(db).log_user_action(actor, "create_ticket", "support_ticket", ticket.id, {"title": title})
        db.commit()
    except Exception:
        for path in stored:
            remove_file(path)
        raise
    db.refresh(ticket)
    logger.info(f"Ticket {ticket.ticket_number} opened by user {actor.id}")
    return ticket


def _ordered(query):
    return query.order_by(SupportTicket.updated_at.desc(), SupportTicket.id.desc())


def _filtered(query, status: Optional[TicketStatus], priority: Optional[TicketPriority]):
    query = query.filter(SupportTicket.is_deleted == False)  # noqa: E712
    if status:
        query = query.filter(SupportTicket.status == status.value)
    if priority:
        query = query.filter(SupportTicket.priority == priority.value)
    return query


def list_my_tickets(db: Session, user: User, params: PageParams, status: Optional[TicketStatus] = None):
    query = _filtered(db.query(SupportTicket).filter(SupportTicket.user_id == user.id), status, None)
    return paginate(_ordered(query), params)


def list_company_tickets(
    db: Session, user: User, params: PageParams,
    status: Optional[TicketStatus] = None, priority: Optional[TicketPriority] = None,
):
    query = _filtered(db.query(SupportTicket).filter(SupportTicket.company_id == user.company_id), status, priority)
    return paginate(_ordered(query), params)


def list_all_tickets(
    db: Session, params: PageParams,
    status: Optional[TicketStatus] = None, priority: Optional[TicketPriority] = None,
    company_id: Optional[int] = None,
):
    query = _filtered(db.query(SupportTicket), status, priority)
    if company_id is not None:
        query = query.filter(SupportTicket.company_id == company_id)
    return paginate(_ordered(query), params)


def open_ticket(db: Session, ticket_id: int, user: User) -> SupportTicket:
    """Fetch a ticket with its thread and mark every message read by `user`."""
    ticket = get_ticket(db, ticket_id, user)
    for message in ticket.messages:
        readers = list(message.read_by or [])
        if user.id not in readers:
            message.read_by = readers + [user.id]
    db.commit()
    db.refresh(ticket)
    return ticket


def add_message(db: Session, ticket_id: int, actor: User, text: str, files: Sequence[Attachment] = ()) -> TicketMessage:
    ticket = get_ticket(db, ticket_id, actor)
    is_staff = actor.role in (UserRole.SUPER_ADMIN, UserRole.ADMIN, UserRole.STAFF)

    stored = _save_attachments(ticket.id, files) if files else []
    message = TicketMessage(
        ticket_id=ticket.id,
        sender_id=actor.id,
        sender_type=(SenderType.STAFF if is_staff else SenderType.USER).value,
        message=text,
        message_type=(MessageType.FILE if stored else MessageType.TEXT).value,
        attachments=stored,
        read_by=[actor.id],
    )
    db.add(message)

    if ticket.status == TicketStatus.CLOSED.value:
        ticket.status = TicketStatus.OPEN.value
        ticket.closed_at = None
    ticket.updated_at = utcnow()

    if is_staff and actor.id != ticket.user_id:
        NotificationService.notify_user(
            db, ticket.user_id, f"New reply on {ticket.ticket_number}", text[:200],
            link=f"/support/tickets/{ticket.id}",
        )
    elif ticket.assigned_to_id:
        NotificationService.notify_user(
            db, ticket.assigned_to_id, f"Customer replied on {ticket.ticket_number}", text[:200],
            link=f"/support/tickets/{ticket.id}",
        )

    try:
        db.commit()
    except Exception:
        for path in stored:
            remove_file(path)
        raise
    db.refresh(message)
    return message


def update_ticket(db: Session, ticket_id: int, data: TicketUpdate, actor: User) -> SupportTicket:
    ticket = get_ticket(db, ticket_id, actor)
    if not _is_staff_side(actor, ticket):
        raise AccessDeniedError("Only support staff can update tickets")

    changes = data.model_dump(mode="json", exclude_unset=True)
    if "assigned_to_id" in changes and data.assigned_to_id is not None:
        assignee = db.get(User, data.assigned_to_id)
        if assignee is None:
            raise NotFoundError("Assignee")
        if assignee.role != UserRole.SUPER_ADMIN and (
            assignee.role not in STAFF_ROLES or assignee.company_id != ticket.company_id
        ):
            raise AccessDeniedError("Tickets can only be assigned to support staff")
        ticket.assigned_to_id = assignee.id
        NotificationService.notify_user(
            db, assignee.id, f"Ticket {ticket.ticket_number} assigned to you", ticket.title,
            link=f"/support/tickets/{ticket.id}",
        )
    elif "assigned_to_id" in changes:
        ticket.assigned_to_id = None

    if data.priority is not None:
        ticket.priority = data.priority.value
    if data.status is not None and data.status.value != ticket.status:
        ticket.status = data.status.value
        if data.status == TicketStatus.RESOLVED:
            ticket.resolved_at = utcnow()
        elif data.status == TicketStatus.CLOSED:
            ticket.closed_at = utcnow()
        db.add(TicketMessage(
            ticket_id=ticket.id,
            sender_type=SenderType.SYSTEM.value,
            message=f"Ticket status changed to {data.status.value}.",
            message_type=MessageType.SYSTEM.value,
            attachments=[],
            read_by=[],
        ))

    ticket.updated_at = utcnow()
    NotificationService.notify_user(
        db, ticket.user_id, f"Ticket {ticket.ticket_number} updated",
        f"Status: {ticket.status}, priority: {ticket.priority}",
        link=f"/support/tickets/{ticket.id}",
    )
    AuditService(db).log_user_action(actor, "update_ticket", "support_ticket", ticket.id, changes)
    db.commit()
    db.refresh(ticket)
    return ticket


def delete_ticket(db: Session, ticket_id: int, actor: User):
    ticket = get_ticket(db, ticket_id, actor)
    if actor.role != UserRole.SUPER_ADMIN and not (
        actor.role == UserRole.ADMIN and ticket.company_id == actor.company_id
    ):
        raise AccessDeniedError("Only admins can delete tickets")
    ticket.is_deleted = True
    AuditService(db).log_user_action(actor, "delete_ticket", "support_ticket", ticket.id, {"ticket_number": ticket.ticket_number})
    db.commit()
