from collections import defaultdict

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.applications.models.application import Application, ApplicationStatus
from app.features.auth.models.user import REVIEWER_ROLES, User
from app.features.scoring.models.application_score import ApplicationScore
from app.features.scoring.schemas.scoring import (
    AssignedApplication,
    AssignmentResult,
    EvaluatorWorkload,
    RemovalResult,
)
from app.features.scoring.services.configuration_service import ScoringConfigurationService
from app.features.scoring.services.evaluator_scoring import EvaluatorScoringService
from app.platform.logger import get_logger

logger = get_logger(__name__)


class EvaluatorAssignmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_evaluator(self, evaluator_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == evaluator_id))
        evaluator = result.scalar_one_or_none()
        if evaluator is None or evaluator.role not in REVIEWER_ROLES:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Evaluator {evaluator_id} not found or has incorrect role",
            )
        return evaluator

    async def assign_applications(self, evaluator_id: str, application_ids: list[int]) -> AssignmentResult:
        """Create one unscored row per active criterion for each application."""
        evaluator = await self._get_evaluator(evaluator_id)

        configuration = await ScoringConfigurationService(self.db).get_active_configuration()
        if configuration is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No active scoring configuration found",
            )

        existing_result = await self.db.execute(
            select(ApplicationScore.application_id, ApplicationScore.criteria_id).where(
                ApplicationScore.evaluated_by == evaluator.id,
                ApplicationScore.application_id.in_(application_ids),
            )
        )
        existing = {(row.application_id, row.criteria_id) for row in existing_result}

        created = 0
        skipped: list[int] = []
        for application_id in dict.fromkeys(application_ids):
            application = await self.db.get(Application, application_id)
            if application is None:
                skipped.append(application_id)
                continue

            for criterion in configuration.criteria:
                if (application_id, criterion.id) in existing:
                    continue
                self.db.add(
                    ApplicationScore(
                        application_id=application_id,
                        criteria_id=criterion.id,
                        configuration_id=configuration.id,
                        evaluated_by=evaluator.id,
                        score=None,
                        max_score=criterion.max_points,
                    )
                )
                created += 1

            if application.status == ApplicationStatus.SUBMITTED:
                application.status = ApplicationStatus.UNDER_REVIEW

        await self.db.commit()
        logger.info(
            f"Applications assigned - evaluator: {evaluator.id}, rows: {created}, skipped: {skipped}"
        )
        return AssignmentResult(evaluator_id=evaluator.id, created=created, skipped_applications=skipped)

    async def remove_assignments(self, evaluator_id: str, application_ids: list[int]) -> RemovalResult:
        """Delete the evaluator's score rows for the given applications, scored or not."""
        result = await self.db.execute(
            delete(ApplicationScore).where(
                ApplicationScore.evaluated_by == evaluator_id,
                ApplicationScore.application_id.in_(application_ids),
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info(
            f"Assignments removed - evaluator: {evaluator_id}, applications: {application_ids}, "
            f"rows: {result.rowcount}"
        )
        return RemovalResult(evaluator_id=evaluator_id, removed_rows=result.rowcount)

    async def get_evaluator_assignments(self, evaluator_id: str) -> list[AssignedApplication]:
        await self._get_evaluator(evaluator_id)
        return await EvaluatorScoringService(self.db).group_assignments(evaluator_id)

    async def get_evaluator_workloads(self) -> list[EvaluatorWorkload]:
        result = await self.db.execute(
            select(User).where(User.role.in_(REVIEWER_ROLES)).order_by(User.name)
        )
        evaluators = result.scalars().all()
        if not evaluators:
            return []

        score_result = await self.db.execute(
            select(ApplicationScore.evaluated_by, ApplicationScore.application_id, ApplicationScore.score).where(
                ApplicationScore.evaluated_by.in_([e.id for e in evaluators])
            )
        )

        # evaluator -> application -> [scored flags]
        progress: dict[str, dict[int, list[bool]]] = defaultdict(lambda: defaultdict(list))
        for evaluated_by, application_id, score in score_result.all():
            progress[evaluated_by][application_id].append(score is not None)

        workloads = []
        for evaluator in evaluators:
            applications = progress.get(evaluator.id, {})
            completed = sum(1 for flags in applications.values() if all(flags))
            workloads.append(
                EvaluatorWorkload(
                    evaluator_id=evaluator.id,
                    evaluator_name=evaluator.name,
                    evaluator_email=evaluator.email,
                    role=evaluator.role,
                    assigned_applications=len(applications),
                    completed_evaluations=completed,
                    pending_evaluations=len(applications) - completed,
                )
            )
        return workloads
