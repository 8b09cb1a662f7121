from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.features.scoring.models.configuration import ScoringCriteria
from app.platform.db.base import Base


class ApplicationScore(Base):
    """One evaluator's score for one criterion of one application."""

    __tablename__ = "application_scores"
    __table_args__ = (
        UniqueConstraint("application_id", "criteria_id", "evaluated_by", name="uq_score_per_evaluator"),
    )

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    criteria_id = Column(
        Integer, ForeignKey("scoring_criteria.id", ondelete="CASCADE"), nullable=False
    )
    configuration_id = Column(
        Integer, ForeignKey("scoring_configurations.id", ondelete="CASCADE"), nullable=False
    )
    evaluated_by = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(Integer, nullable=True)  # NULL until scored
    max_score = Column(Integer, nullable=False)
    level = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    evaluated_at = Column(DateTime, nullable=True)

    criteria = relationship(ScoringCriteria)
