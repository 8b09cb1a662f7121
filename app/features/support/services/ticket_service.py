from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.features.auth.models.user import User, UserRole
from app.features.support.models.support_ticket import (
    SupportResponse,
    SupportTicket,
    TicketStatus,
)
from app.features.support.schemas.support_ticket import (
    AddSupportResponse,
    CreateSupportTicket,
    SupportResponseOut,
    SupportStats,
    SupportTicketFilters,
    TicketDetail,
    TicketPage,
    TicketResponse,
    UpdateTicketStatus,
)
from app.platform.logger import get_logger
from app.platform.pagination import Pagination

logger = get_logger(__name__)

TICKET_NOT_FOUND_MESSAGE = "Support ticket not found"
TICKET_ACCESS_DENIED_MESSAGE = "You do not have access to this ticket"
CLOSING_STATUSES = (TicketStatus.RESOLVED, TicketStatus.CLOSED)


class TicketService:
    """Service for managing support tickets"""

    MAX_NUMBER_RETRIES = 3

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, *conditions) -> int:
        query = select(func.count(SupportTicket.id))
        if conditions:
            query = query.where(*conditions)
        result = await self.db.execute(query)
        return result.scalar_one()

    async def create_ticket(self, user: User, payload: CreateSupportTicket) -> SupportTicket:
        user_id, user_email, user_name = user.id, user.email, user.name
        existing_count = await self._count()

        for attempt in range(self.MAX_NUMBER_RETRIES):
            ticket = SupportTicket(
                ticket_number=SupportTicket.generate_ticket_number(existing_count + attempt),
                user_id=user_id,
                user_email=user_email,
                user_name=user_name,
                category=payload.category,
                priority=payload.priority,
                status=TicketStatus.OPEN,
                subject=payload.subject,
                description=payload.description,
                attachment_url=str(payload.attachment_url) if payload.attachment_url else None,
            )
            self.db.add(ticket)
            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                logger.warning(f"Ticket number {ticket.ticket_number} already taken, retrying")
                continue

            logger.info(f"Support ticket {ticket.ticket_number} created by user {user_id}")
            return ticket

        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Could not allocate a ticket number. Please try again.",
        )

    async def list_tickets(self, filters: SupportTicketFilters) -> TicketPage:
        conditions = []
        if filters.status:
            conditions.append(SupportTicket.status == filters.status)
        if filters.category:
            conditions.append(SupportTicket.category == filters.category)
        if filters.priority:
            conditions.append(SupportTicket.priority == filters.priority)
        if filters.assigned_to == "unassigned":
            conditions.append(SupportTicket.assigned_to.is_(None))
        elif filters.assigned_to:
            conditions.append(SupportTicket.assigned_to == filters.assigned_to)
        if filters.user_id:
            conditions.append(SupportTicket.user_id == filters.user_id)
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(
                    SupportTicket.subject.ilike(pattern),
                    SupportTicket.description.ilike(pattern),
                    SupportTicket.ticket_number.ilike(pattern),
                )
            )

        total = await self._count(*conditions)
        result = await self.db.execute(
            select(SupportTicket)
            .where(*conditions)
            .order_by(SupportTicket.created_at.desc(), SupportTicket.ticket_number.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        tickets = result.scalars().all()

        return TicketPage(
            tickets=[TicketResponse.model_validate(t) for t in tickets],
            pagination=Pagination.build(filters.page, filters.limit, total),
        )

    async def _load_ticket(self, ticket_id: str) -> SupportTicket:
        result = await self.db.execute(
            select(SupportTicket)
            .options(selectinload(SupportTicket.responses))
            .where(SupportTicket.id == ticket_id)
        )
        ticket = result.scalar_one_or_none()
        if ticket is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TICKET_NOT_FOUND_MESSAGE)
        return ticket

    @staticmethod
    def _ensure_visible(user: User, ticket: SupportTicket) -> None:
        if user.role != UserRole.ADMIN and ticket.user_id != user.id:
            logger.warning(f"User {user.id} denied access to ticket {ticket.id}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=TICKET_ACCESS_DENIED_MESSAGE)

    async def get_ticket(self, user: User, ticket_id: str) -> TicketDetail:
        ticket = await self._load_ticket(ticket_id)
        self._ensure_visible(user, ticket)

        is_admin = user.role == UserRole.ADMIN
        responses = [
            SupportResponseOut.model_validate(r)
            for r in ticket.responses
            if is_admin or not r.is_internal
        ]
        return TicketDetail(**TicketResponse.model_validate(ticket).model_dump(), responses=responses)

    async def add_response(
        self, user: User, ticket_id: str, payload: AddSupportResponse
    ) -> tuple[SupportTicket, SupportResponse]:
        """
        Append a reply to a ticket.

        Only admins may leave internal notes; the flag is dropped for anyone else.
        A reply from the ticket owner reopens a resolved ticket.
        """
        ticket = await self._load_ticket(ticket_id)
        self._ensure_visible(user, ticket)

        is_admin = user.role == UserRole.ADMIN
        response = SupportResponse(
            ticket_id=ticket.id,
            responder_id=user.id,
            responder_name=user.name,
            responder_role=user.role.value,
            message=payload.message,
            attachment_url=str(payload.attachment_url) if payload.attachment_url else None,
            is_internal=payload.is_internal and is_admin,
        )
        self.db.add(response)

        if not is_admin and ticket.status == TicketStatus.RESOLVED:
            ticket.status = TicketStatus.OPEN
            logger.info(f"Ticket {ticket.ticket_number} reopened by user reply")
        ticket.updated_at = datetime.utcnow()

        await self.db.commit()
        logger.info(f"Response added to ticket {ticket.ticket_number} by {user.id}")
        return ticket, response

    async def update_status(self, admin: User, ticket_id: str, payload: UpdateTicketStatus) -> SupportTicket:
        ticket = await self._load_ticket(ticket_id)

        ticket.status = payload.status
        if payload.assigned_to is not None:
            ticket.assigned_to = payload.assigned_to
        if payload.status in CLOSING_STATUSES:
            ticket.resolved_at = datetime.utcnow()
            ticket.resolved_by = admin.id
            if payload.resolution_notes is not None:
                ticket.resolution_notes = payload.resolution_notes
        ticket.updated_at = datetime.utcnow()

        await self.db.commit()
        logger.info(f"Ticket {ticket.ticket_number} set to {payload.status.value} by admin {admin.id}")
        return ticket

    async def get_stats(self) -> SupportStats:
        return SupportStats(
            total_tickets=await self._count(),
            open_tickets=await self._count(SupportTicket.status == TicketStatus.OPEN),
            in_progress_tickets=await self._count(SupportTicket.status == TicketStatus.IN_PROGRESS),
            resolved_tickets=await self._count(SupportTicket.status == TicketStatus.RESOLVED),
            unassigned_tickets=await self._count(SupportTicket.assigned_to.is_(None)),
        )

    @staticmethod
    def should_notify_owner(user: User, ticket: SupportTicket, response: SupportResponse) -> bool:
        return user.role == UserRole.ADMIN and not response.is_internal and user.id != ticket.user_id
