from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy import Enum as SQLEnum

from app.platform.db.base import Base


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    SHORTLISTED = "shortlisted"
    SCORING_PHASE = "scoring_phase"
    DRAGONS_DEN = "dragons_den"
    FINALIST = "finalist"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses that mean the application is still in the running
ADVANCING_STATUSES = (
    ApplicationStatus.SHORTLISTED,
    ApplicationStatus.SCORING_PHASE,
    ApplicationStatus.DRAGONS_DEN,
    ApplicationStatus.FINALIST,
    ApplicationStatus.APPROVED,
)


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    business_name = Column(String(200), nullable=False)
    status = Column(SQLEnum(ApplicationStatus), nullable=False, default=ApplicationStatus.DRAFT, index=True)
    submitted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Application(id={self.id}, business={self.business_name}, status={self.status})>"


class ApplicationStatusChange(Base):
    """Audit trail of admin status changes."""

    __tablename__ = "application_status_changes"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    from_status = Column(SQLEnum(ApplicationStatus), nullable=True)
    to_status = Column(SQLEnum(ApplicationStatus), nullable=False)
    notes = Column(Text, nullable=True)
    changed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    changed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
