from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.platform.db.base import Base


class ScoringConfiguration(Base):
    __tablename__ = "scoring_configurations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    version = Column(String(20), nullable=False)
    total_max_score = Column(Integer, nullable=False)
    pass_threshold = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=False, index=True)
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    criteria = relationship(
        "ScoringCriteria",
        back_populates="configuration",
        cascade="all, delete-orphan",
        order_by="ScoringCriteria.sort_order",
    )


class ScoringCriteria(Base):
    __tablename__ = "scoring_criteria"

    id = Column(Integer, primary_key=True, index=True)
    configuration_id = Column(
        Integer, ForeignKey("scoring_configurations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category = Column(String(200), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    max_points = Column(Integer, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)

    configuration = relationship("ScoringConfiguration", back_populates="criteria")
