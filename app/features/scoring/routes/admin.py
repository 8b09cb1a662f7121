"""
Admin scoring routes: scoring configurations, evaluator assignment and workloads.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import require_admin
from app.features.auth.models.user import User
from app.features.scoring.schemas.scoring import (
    AssignmentRequest,
    ConfigurationCreate,
    ConfigurationResponse,
)
from app.features.scoring.services.assignment_service import EvaluatorAssignmentService
from app.features.scoring.services.configuration_service import ScoringConfigurationService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/admin/scoring", tags=["Admin Scoring"])


@router.post("/configurations", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_scoring_configuration(
    payload: ConfigurationCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    service = ScoringConfigurationService(db)
    configuration = await service.create_configuration(admin, payload)
    return api_response(
        data=ConfigurationResponse.model_validate(configuration),
        message="Scoring configuration created successfully",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/configurations", response_model=dict)
async def list_scoring_configurations(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    configurations = await ScoringConfigurationService(db).list_configurations()
    return api_response(
        data=[ConfigurationResponse.model_validate(c) for c in configurations],
        message="Scoring configurations retrieved successfully",
    )


@router.post("/configurations/{configuration_id}/activate", response_model=dict)
async def activate_scoring_configuration(
    configuration_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    configuration = await ScoringConfigurationService(db).activate_configuration(configuration_id)
    return api_response(
        data=ConfigurationResponse.model_validate(configuration),
        message="Scoring configuration activated",
    )


@router.post("/assignments", response_model=dict)
async def assign_applications_to_evaluator(
    payload: AssignmentRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await EvaluatorAssignmentService(db).assign_applications(
        payload.evaluator_id, payload.application_ids
    )
    return api_response(data=result, message="Applications assigned successfully")


@router.post("/assignments/remove", response_model=dict)
async def remove_evaluator_assignments(
    payload: AssignmentRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await EvaluatorAssignmentService(db).remove_assignments(
        payload.evaluator_id, payload.application_ids
    )
    return api_response(data=result, message="Evaluator assignments removed successfully")


@router.get("/evaluators/{evaluator_id}/assignments", response_model=dict)
async def get_evaluator_assignments(
    evaluator_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    assignments = await EvaluatorAssignmentService(db).get_evaluator_assignments(evaluator_id)
    return api_response(data=assignments, message="Evaluator assignments retrieved successfully")


@router.get("/workloads", response_model=dict)
async def get_evaluator_workloads(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    workloads = await EvaluatorAssignmentService(db).get_evaluator_workloads()
    return api_response(data=workloads, message="Evaluator workloads retrieved successfully")
