from app.features.support.models.support_ticket import (
    SupportResponse,
    SupportTicket,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)

__all__ = ["SupportResponse", "SupportTicket", "TicketCategory", "TicketPriority", "TicketStatus"]
