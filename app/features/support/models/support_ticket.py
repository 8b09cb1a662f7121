from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from app.platform.db.base import BaseModel


class TicketStatus(str, Enum):
    """Ticket status enumeration"""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_FOR_USER = "waiting_for_user"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    """Ticket priority levels"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketCategory(str, Enum):
    TECHNICAL_ISSUE = "technical_issue"
    APPLICATION_HELP = "application_help"
    ACCOUNT_PROBLEM = "account_problem"
    PAYMENT_ISSUE = "payment_issue"
    FEATURE_REQUEST = "feature_request"
    BUG_REPORT = "bug_report"
    GENERAL_INQUIRY = "general_inquiry"
    OTHER = "other"


class SupportTicket(BaseModel):
    __tablename__ = "support_tickets"
    ticket_number = Column(String(50), unique=True, nullable=False, index=True)

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    user_name = Column(String(255), nullable=False)

    category = Column(SQLEnum(TicketCategory), nullable=False, default=TicketCategory.GENERAL_INQUIRY)
    priority = Column(SQLEnum(TicketPriority), nullable=False, default=TicketPriority.MEDIUM)
    status = Column(SQLEnum(TicketStatus), nullable=False, default=TicketStatus.OPEN, index=True)
    subject = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    attachment_url = Column(String(500), nullable=True)

    # Assignment and resolution
    assigned_to = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    responses = relationship(
        "SupportResponse",
        back_populates="ticket",
        cascade="all, delete-orphan",
        order_by="SupportResponse.created_at.desc()",
    )

    def __repr__(self):
        return f"<SupportTicket(ticket_number='{self.ticket_number}', status='{self.status}')>"

    @classmethod
    def generate_ticket_number(cls, existing_count: int, now: datetime | None = None) -> str:
        year = (now or datetime.utcnow()).year
        return f"TKT-{year}-{existing_count + 1:04d}"


class SupportResponse(BaseModel):
    __tablename__ = "support_responses"
    ticket_id = Column(
        String(36), ForeignKey("support_tickets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    responder_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    responder_name = Column(String(255), nullable=False)
    responder_role = Column(String(32), nullable=False)
    message = Column(Text, nullable=False)
    attachment_url = Column(String(500), nullable=True)
    is_internal = Column(Boolean, nullable=False, default=False)

    ticket = relationship("SupportTicket", back_populates="responses")
