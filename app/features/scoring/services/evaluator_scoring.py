import math
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.features.applications.models.application import Application
from app.features.auth.models.user import EVALUATOR_ROLES, User
from app.features.scoring.models.application_score import ApplicationScore
from app.features.scoring.schemas.scoring import (
    ApplicationSummary,
    AssignedApplication,
    CriteriaSummary,
    ScoreEntry,
    ScoreUpdate,
)
from app.platform.logger import get_logger

logger = get_logger(__name__)


def completion_percentage(scored: int, total: int) -> int:
    if total == 0:
        return 0
    return math.floor(scored / total * 100 + 0.5)


class EvaluatorScoringService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def ensure_evaluator(user: User) -> None:
        if user is None or user.role not in EVALUATOR_ROLES:
            logger.warning(f"Scoring access denied - user: {getattr(user, 'id', None)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. You do not have the required permissions.",
            )

    async def get_assigned_applications(self, evaluator: User) -> list[AssignedApplication]:
        self.ensure_evaluator(evaluator)
        return await self.group_assignments(evaluator.id)

    async def group_assignments(self, evaluator_id: str) -> list[AssignedApplication]:
        """Score rows of one evaluator grouped per application, with totals."""
        result = await self.db.execute(
            select(ApplicationScore)
            .options(selectinload(ApplicationScore.criteria))
            .where(ApplicationScore.evaluated_by == evaluator_id)
            .order_by(ApplicationScore.application_id, ApplicationScore.criteria_id)
        )
        rows = result.scalars().all()

        application_ids = {row.application_id for row in rows}
        applications = {}
        if application_ids:
            app_result = await self.db.execute(
                select(Application).where(Application.id.in_(application_ids))
            )
            applications = {app.id: app for app in app_result.scalars()}

        grouped: dict[int, AssignedApplication] = {}
        for row in rows:
            entry = grouped.get(row.application_id)
            if entry is None:
                application = applications.get(row.application_id)
                entry = AssignedApplication(
                    application_id=row.application_id,
                    application=ApplicationSummary.model_validate(application) if application else None,
                    configuration_id=row.configuration_id,
                )
                grouped[row.application_id] = entry

            entry.scores.append(
                ScoreEntry(
                    id=row.id,
                    criteria_id=row.criteria_id,
                    criteria=CriteriaSummary.model_validate(row.criteria) if row.criteria else None,
                    score=row.score,
                    max_score=row.max_score,
                    level=row.level,
                    notes=row.notes,
                    evaluated_at=row.evaluated_at,
                )
            )
            entry.total_score += row.score or 0
            entry.max_total_score += row.max_score

        for entry in grouped.values():
            scored = sum(1 for s in entry.scores if s.score is not None)
            entry.completion_percentage = completion_percentage(scored, len(entry.scores))

        return list(grouped.values())

    async def update_scores(self, evaluator: User, updates: list[ScoreUpdate]) -> int:
        """
        Overwrite the evaluator's own score rows.

        Rows owned by someone else are skipped. One out-of-bounds score
        rejects the whole batch before anything is written.
        """
        self.ensure_evaluator(evaluator)

        pending: list[tuple[ApplicationScore, ScoreUpdate]] = []
        for update in updates:
            result = await self.db.execute(
                select(ApplicationScore).where(
                    ApplicationScore.application_id == update.application_id,
                    ApplicationScore.criteria_id == update.criteria_id,
                    ApplicationScore.evaluated_by == evaluator.id,
                )
            )
            row = result.scalar_one_or_none()

            if row is None:
                logger.warning(
                    f"Score update skipped - not assigned - evaluator: {evaluator.id}, "
                    f"application: {update.application_id}, criteria: {update.criteria_id}"
                )
                continue

            if update.score < 0 or update.score > row.max_score:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Score {update.score} is out of bounds (0-{row.max_score})",
                )

            pending.append((row, update))

        now = datetime.utcnow()
        for row, update in pending:
            row.score = update.score
            if update.level is not None:
                row.level = update.level
            if update.notes is not None:
                row.notes = update.notes
            row.evaluated_at = now

        await self.db.commit()
        logger.info(f"Scores updated - evaluator: {evaluator.id}, rows: {len(pending)}")
        return len(pending)
