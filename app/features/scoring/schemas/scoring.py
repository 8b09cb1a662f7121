from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.features.applications.models.application import ApplicationStatus
from app.features.auth.models.user import UserRole


class ScoreUpdate(BaseModel):
    application_id: int
    criteria_id: int
    score: int
    level: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)


class ScoreUpdateBatch(BaseModel):
    updates: list[ScoreUpdate] = Field(..., min_length=1)


class ScoreUpdateResult(BaseModel):
    count: int


class CriteriaSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    name: str
    description: Optional[str] = None
    max_points: int


class ScoreEntry(BaseModel):
    id: int
    criteria_id: int
    criteria: Optional[CriteriaSummary] = None
    score: Optional[int] = None
    max_score: int
    level: Optional[str] = None
    notes: Optional[str] = None
    evaluated_at: Optional[datetime] = None


class ApplicationSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    business_name: str
    status: ApplicationStatus
    submitted_at: Optional[datetime] = None


class AssignedApplication(BaseModel):
    application_id: int
    application: Optional[ApplicationSummary] = None
    configuration_id: int
    scores: list[ScoreEntry] = []
    total_score: int = 0
    max_total_score: int = 0
    completion_percentage: int = 0


class CriteriaCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=200)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    max_points: int = Field(..., gt=0)
    sort_order: int = 0


class ConfigurationCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    version: str = Field(..., min_length=1, max_length=20)
    pass_threshold: int = Field(..., ge=0)
    criteria: list[CriteriaCreate] = Field(..., min_length=1)
    activate: bool = False

    @model_validator(mode="after")
    def threshold_within_total(self):
        total = sum(c.max_points for c in self.criteria)
        if self.pass_threshold > total:
            raise ValueError(f"Pass threshold {self.pass_threshold} exceeds total max score {total}")
        return self


class ConfigurationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    version: str
    total_max_score: int
    pass_threshold: int
    is_active: bool
    criteria: list[CriteriaSummary] = []
    created_at: datetime


class AssignmentRequest(BaseModel):
    evaluator_id: str
    application_ids: list[int] = Field(..., min_length=1)


class AssignmentResult(BaseModel):
    evaluator_id: str
    created: int
    skipped_applications: list[int] = []


class EvaluatorWorkload(BaseModel):
    evaluator_id: str
    evaluator_name: str
    evaluator_email: str
    role: UserRole
    assigned_applications: int
    completed_evaluations: int
    pending_evaluations: int


class RemovalResult(BaseModel):
    evaluator_id: str
    removed_rows: int
