from pydantic import BaseModel, ConfigDict, field_validator
from typing import List, Optional
from datetime import datetime
from facilityhub.models.ticket import MessageType, SenderType, TicketCategory, TicketPriority, TicketStatus


class TicketUpdate(BaseModel):
    status: Optional[TicketStatus] = None
    priority: Optional[TicketPriority] = None
    assigned_to_id: Optional[int] = None


class TicketMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_id: int
    sender_id: Optional[int] = None
    sender_type: SenderType
    message: str
    message_type: MessageType
    attachments: List[str] = []
    read_by: List[int] = []
    created_at: Optional[datetime] = None

    @field_validator("attachments", "read_by", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        return value or []


class TicketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    ticket_number: Optional[str] = None
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    category: TicketCategory
    company_id: Optional[int] = None
    user_id: int
    assigned_to_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TicketDetailResponse(TicketResponse):
    messages: List[TicketMessageResponse] = []
