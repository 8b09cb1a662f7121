from app.features.applications.models.application import (
    ADVANCING_STATUSES,
    Application,
    ApplicationStatus,
    ApplicationStatusChange,
)

__all__ = ["ADVANCING_STATUSES", "Application", "ApplicationStatus", "ApplicationStatusChange"]
