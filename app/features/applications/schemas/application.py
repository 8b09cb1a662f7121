from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.applications.models.application import ApplicationStatus
from app.platform.pagination import Pagination


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    business_name: str
    status: ApplicationStatus
    submitted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ApplicationPage(BaseModel):
    applications: list[ApplicationResponse]
    pagination: Pagination


class StatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = Field(None, max_length=2000)


class BulkStatusItem(StatusUpdate):
    application_id: int


class BulkStatusUpdate(BaseModel):
    updates: list[BulkStatusItem] = Field(..., min_length=1)


class ApplicationSelection(BaseModel):
    """Applications picked for shortlisting or the scoring phase."""

    application_ids: list[int] = Field(..., min_length=1)
    notes: Optional[str] = Field(None, max_length=2000)


class StatusChangeResult(BaseModel):
    count: int


class ApplicationStatusStats(BaseModel):
    total_applications: int
    draft: int = 0
    submitted: int = 0
    under_review: int = 0
    shortlisted: int = 0
    scoring_phase: int = 0
    dragons_den: int = 0
    finalist: int = 0
    approved: int = 0
    rejected: int = 0


class StatusChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    application_id: int
    from_status: Optional[ApplicationStatus] = None
    to_status: ApplicationStatus
    notes: Optional[str] = None
    changed_by: Optional[str] = None
    changed_at: datetime
