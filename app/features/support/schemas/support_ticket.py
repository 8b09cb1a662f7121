from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from app.features.support.models.support_ticket import TicketCategory, TicketPriority, TicketStatus
from app.platform.pagination import Pagination


class CreateSupportTicket(BaseModel):
    """Schema for a new support ticket"""

    category: TicketCategory
    subject: str = Field(..., min_length=5, max_length=200)
    description: str = Field(..., min_length=10, max_length=2000)
    priority: TicketPriority = TicketPriority.MEDIUM
    attachment_url: Optional[HttpUrl] = None

    @field_validator("subject", "description", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "category": "application_help",
                "subject": "Cannot upload registration certificate",
                "description": "The upload button keeps spinning on the business information step.",
                "priority": "medium",
            }
        }
    )


class AddSupportResponse(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)
    attachment_url: Optional[HttpUrl] = None
    is_internal: bool = False


class UpdateTicketStatus(BaseModel):
    """Schema for updating ticket status"""

    status: TicketStatus
    resolution_notes: Optional[str] = Field(None, max_length=5000)
    assigned_to: Optional[str] = None


class SupportTicketFilters(BaseModel):
    status: Optional[TicketStatus] = None
    category: Optional[TicketCategory] = None
    priority: Optional[TicketPriority] = None
    assigned_to: Optional[str] = None  # "unassigned" selects tickets without an assignee
    user_id: Optional[str] = None
    search: Optional[str] = Field(None, max_length=200)
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class SupportResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    responder_id: Optional[str] = None
    responder_name: str
    responder_role: str
    message: str
    attachment_url: Optional[str] = None
    is_internal: bool
    created_at: datetime


class TicketResponse(BaseModel):
    """Schema for ticket response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    ticket_number: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    subject: str
    description: str
    user_email: str
    user_name: str
    attachment_url: Optional[str] = None
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TicketDetail(TicketResponse):
    responses: list[SupportResponseOut] = []


class TicketPage(BaseModel):
    tickets: list[TicketResponse]
    pagination: Pagination


class SupportStats(BaseModel):
    total_tickets: int
    open_tickets: int
    in_progress_tickets: int
    resolved_tickets: int
    unassigned_tickets: int
