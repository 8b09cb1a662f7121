from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.applications.models.application import (
    Application,
    ApplicationStatus,
    ApplicationStatusChange,
)
from app.features.applications.schemas.application import (
    ApplicationPage,
    ApplicationResponse,
    ApplicationStatusStats,
    BulkStatusItem,
)
from app.features.auth.models.user import User
from app.platform.logger import get_logger
from app.platform.pagination import Pagination

logger = get_logger(__name__)


class ApplicationStatusService:
    """Admin-side moves of applications through the selection pipeline."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _record_change(
        self,
        admin: User,
        application_id: int,
        from_status: Optional[ApplicationStatus],
        to_status: ApplicationStatus,
        notes: Optional[str],
    ) -> None:
        self.db.add(
            ApplicationStatusChange(
                application_id=application_id,
                from_status=from_status,
                to_status=to_status,
                notes=notes,
                changed_by=admin.id,
            )
        )

    async def update_status(
        self, admin: User, application_id: int, new_status: ApplicationStatus, notes: Optional[str] = None
    ) -> Application:
        application = await self.db.get(Application, application_id)
        if application is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Application {application_id} not found",
            )

        previous = application.status
        application.status = new_status
        application.updated_at = datetime.utcnow()
        self._record_change(admin, application.id, previous, new_status, notes)

        await self.db.commit()
        logger.info(
            f"Application status updated - application: {application_id}, "
            f"{previous.value} -> {new_status.value}, by: {admin.id}"
        )
        return application

    async def bulk_update(self, admin: User, updates: list[BulkStatusItem]) -> int:
        """Apply each update in order. Unknown application ids are skipped."""
        applied = 0
        now = datetime.utcnow()
        for item in updates:
            application = await self.db.get(Application, item.application_id)
            if application is None:
                logger.warning(f"Bulk status update skipped - application {item.application_id} not found")
                continue
            self._record_change(admin, application.id, application.status, item.status, item.notes)
            application.status = item.status
            application.updated_at = now
            applied += 1

        await self.db.commit()
        logger.info(f"Bulk status update - applied: {applied}/{len(updates)}, by: {admin.id}")
        return applied

    async def list_by_status(
        self, statuses: Optional[list[ApplicationStatus]] = None, page: int = 1, limit: int = 10
    ) -> ApplicationPage:
        conditions = []
        if statuses:
            conditions.append(Application.status.in_(statuses))

        count_result = await self.db.execute(select(func.count(Application.id)).where(*conditions))
        total = count_result.scalar_one()

        result = await self.db.execute(
            select(Application)
            .where(*conditions)
            .order_by(Application.created_at.desc(), Application.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return ApplicationPage(
            applications=[ApplicationResponse.model_validate(a) for a in result.scalars()],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_status_stats(self) -> ApplicationStatusStats:
        result = await self.db.execute(
            select(Application.status, func.count(Application.id)).group_by(Application.status)
        )
        counts = {row_status.value: count for row_status, count in result.all()}
        return ApplicationStatusStats(total_applications=sum(counts.values()), **counts)

    async def _move(
        self,
        admin: User,
        application_ids: list[int],
        to_status: ApplicationStatus,
        notes: Optional[str],
        only_from: Optional[ApplicationStatus] = None,
    ) -> int:
        conditions = [Application.id.in_(application_ids)]
        if only_from is not None:
            conditions.append(Application.status == only_from)

        result = await self.db.execute(select(Application.id, Application.status).where(*conditions))
        moving = result.all()
        if not moving:
            return 0

        await self.db.execute(
            update(Application)
            .where(Application.id.in_([row.id for row in moving]), *conditions[1:])
            .values(status=to_status, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        for application_id, previous in moving:
            self._record_change(admin, application_id, previous, to_status, notes)

        await self.db.commit()
        return len(moving)

    async def shortlist(self, admin: User, application_ids: list[int], notes: Optional[str] = None) -> int:
        count = await self._move(
            admin,
            application_ids,
            ApplicationStatus.SHORTLISTED,
            notes or "Application shortlisted for further evaluation",
        )
        logger.info(f"Applications shortlisted - count: {count}, by: {admin.id}")
        return count

    async def move_to_scoring_phase(
        self, admin: User, application_ids: list[int], notes: Optional[str] = None
    ) -> int:
        """Only applications currently shortlisted are moved."""
        count = await self._move(
            admin,
            application_ids,
            ApplicationStatus.SCORING_PHASE,
            notes or "Application moved to scoring phase",
            only_from=ApplicationStatus.SHORTLISTED,
        )
        logger.info(f"Applications moved to scoring phase - count: {count}, by: {admin.id}")
        return count

    async def get_status_history(self, application_id: int) -> list[ApplicationStatusChange]:
        result = await self.db.execute(
            select(ApplicationStatusChange)
            .where(ApplicationStatusChange.application_id == application_id)
            .order_by(ApplicationStatusChange.changed_at, ApplicationStatusChange.id)
        )
        return list(result.scalars().all())
