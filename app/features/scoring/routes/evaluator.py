from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import get_current_user
from app.features.auth.models.user import User
from app.features.scoring.schemas.scoring import ScoreUpdateBatch, ScoreUpdateResult
from app.features.scoring.services.evaluator_scoring import EvaluatorScoringService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/evaluator", tags=["Evaluator Scoring"])


@router.get("/applications", response_model=dict, summary="Applications assigned to me")
async def get_my_assigned_applications(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = EvaluatorScoringService(db)
    assignments = await service.get_assigned_applications(current_user)
    return api_response(
        data=assignments,
        message="Assigned applications retrieved successfully",
    )


@router.put("/scores", response_model=dict, summary="Update my scores")
async def update_application_scores(
    payload: ScoreUpdateBatch,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = EvaluatorScoringService(db)
    count = await service.update_scores(current_user, payload.updates)
    return api_response(
        data=ScoreUpdateResult(count=count),
        message="Scores updated successfully",
    )
