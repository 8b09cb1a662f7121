"""
Support ticket routes for signed-in users.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import get_current_user
from app.features.auth.models.user import User
from app.features.support.schemas.support_ticket import (
    AddSupportResponse,
    CreateSupportTicket,
    SupportResponseOut,
    SupportTicketFilters,
    TicketResponse,
)
from app.features.support.services.ticket_service import TicketService
from app.platform.db.session import get_db
from app.platform.response import api_response
from app.platform.services.email import send_support_response_email

router = APIRouter(prefix="/support/tickets", tags=["Support Tickets"])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_support_ticket(
    payload: CreateSupportTicket,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ticket = await TicketService(db).create_ticket(current_user, payload)
    return api_response(
        data=TicketResponse.model_validate(ticket),
        message=f"Support ticket {ticket.ticket_number} created successfully!",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/mine", response_model=dict)
async def list_my_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    filters = SupportTicketFilters(user_id=current_user.id, page=page, limit=limit)
    result = await TicketService(db).list_tickets(filters)
    return api_response(data=result, message="Support tickets retrieved successfully")


@router.get("/{ticket_id}", response_model=dict)
async def get_support_ticket(
    ticket_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    ticket = await TicketService(db).get_ticket(current_user, ticket_id)
    return api_response(data=ticket, message="Support ticket retrieved successfully")


@router.post("/{ticket_id}/responses", response_model=dict, status_code=status.HTTP_201_CREATED)
async def add_ticket_response(
    ticket_id: str,
    payload: AddSupportResponse,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = TicketService(db)
    ticket, response = await service.add_response(current_user, ticket_id, payload)

    if service.should_notify_owner(current_user, ticket, response):
        background_tasks.add_task(
            send_support_response_email,
            to_email=ticket.user_email,
            user_name=ticket.user_name,
            ticket_number=ticket.ticket_number,
            subject=ticket.subject,
            response_message=response.message,
            responder_name=response.responder_name,
        )

    return api_response(
        data=SupportResponseOut.model_validate(response),
        message="Response added successfully",
        status_code=status.HTTP_201_CREATED,
    )
