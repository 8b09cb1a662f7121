"""
Admin support routes: ticket queue, status changes and stats.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import require_admin
from app.features.auth.models.user import User
from app.features.support.models.support_ticket import TicketCategory, TicketPriority, TicketStatus
from app.features.support.schemas.support_ticket import (
    SupportTicketFilters,
    TicketResponse,
    UpdateTicketStatus,
)
from app.features.support.services.ticket_service import TicketService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/admin/support", tags=["Admin Support"])


@router.get("/tickets", response_model=dict)
async def list_support_tickets(
    status: Optional[TicketStatus] = None,
    category: Optional[TicketCategory] = None,
    priority: Optional[TicketPriority] = None,
    assigned_to: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    filters = SupportTicketFilters(
        status=status,
        category=category,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
        page=page,
        limit=limit,
    )
    result = await TicketService(db).list_tickets(filters)
    return api_response(data=result, message="Support tickets retrieved successfully")


@router.patch("/tickets/{ticket_id}/status", response_model=dict)
async def update_ticket_status(
    ticket_id: str,
    payload: UpdateTicketStatus,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    ticket = await TicketService(db).update_status(admin, ticket_id, payload)
    return api_response(
        data=TicketResponse.model_validate(ticket),
        message="Ticket status updated successfully!",
    )


@router.get("/stats", response_model=dict)
async def get_support_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await TicketService(db).get_stats()
    return api_response(data=stats, message="Support statistics retrieved successfully")
