from app.features.scoring.models.application_score import ApplicationScore
from app.features.scoring.models.configuration import ScoringConfiguration, ScoringCriteria

__all__ = ["ApplicationScore", "ScoringConfiguration", "ScoringCriteria"]
