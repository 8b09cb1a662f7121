"""
Admin application routes: status changes, shortlisting, scoring phase and stats.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.applications.models.application import ApplicationStatus
from app.features.applications.schemas.application import (
    ApplicationResponse,
    ApplicationSelection,
    BulkStatusUpdate,
    StatusChangeResponse,
    StatusChangeResult,
    StatusUpdate,
)
from app.features.applications.services.application_status_service import ApplicationStatusService
from app.features.auth.dependencies.auth import require_admin
from app.features.auth.models.user import User
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/admin/applications", tags=["Admin Applications"])


@router.get("", response_model=dict)
async def list_applications_by_status(
    status: Optional[list[ApplicationStatus]] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await ApplicationStatusService(db).list_by_status(status, page, limit)
    return api_response(data=result, message="Applications retrieved successfully")


@router.get("/stats", response_model=dict)
async def get_application_status_stats(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    stats = await ApplicationStatusService(db).get_status_stats()
    return api_response(data=stats, message="Application status statistics retrieved successfully")


@router.patch("/{application_id}/status", response_model=dict)
async def update_application_status(
    application_id: int,
    payload: StatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    application = await ApplicationStatusService(db).update_status(
        admin, application_id, payload.status, payload.notes
    )
    return api_response(
        data=ApplicationResponse.model_validate(application),
        message="Application status updated successfully",
    )


@router.get("/{application_id}/status-history", response_model=dict)
async def get_application_status_history(
    application_id: int,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    changes = await ApplicationStatusService(db).get_status_history(application_id)
    return api_response(
        data=[StatusChangeResponse.model_validate(c) for c in changes],
        message="Status history retrieved successfully",
    )


@router.post("/status/bulk", response_model=dict)
async def bulk_update_application_status(
    payload: BulkStatusUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await ApplicationStatusService(db).bulk_update(admin, payload.updates)
    return api_response(data=StatusChangeResult(count=count), message=f"Updated {count} applications")


@router.post("/shortlist", response_model=dict)
async def shortlist_applications(
    payload: ApplicationSelection,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await ApplicationStatusService(db).shortlist(admin, payload.application_ids, payload.notes)
    return api_response(data=StatusChangeResult(count=count), message=f"Shortlisted {count} applications")


@router.post("/scoring-phase", response_model=dict)
async def move_applications_to_scoring_phase(
    payload: ApplicationSelection,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    count = await ApplicationStatusService(db).move_to_scoring_phase(
        admin, payload.application_ids, payload.notes
    )
    return api_response(
        data=StatusChangeResult(count=count),
        message=f"Moved {count} applications to scoring phase",
    )
