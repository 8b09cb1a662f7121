from app.features.auth.models.user import EVALUATOR_ROLES, REVIEWER_ROLES, User, UserRole

__all__ = ["User", "UserRole", "EVALUATOR_ROLES", "REVIEWER_ROLES"]
