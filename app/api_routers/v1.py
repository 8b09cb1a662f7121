from fastapi import APIRouter

from app.features.applications.routes.admin import router as applications_admin_router
from app.features.auth.routes.admin_users import router as users_admin_router
from app.features.auth.routes.auth import router as auth_router
from app.features.auth.routes.password_reset import router as password_reset_router
from app.features.health.routes.health import router as health_router
from app.features.scoring.routes.admin import router as scoring_admin_router
from app.features.scoring.routes.evaluator import router as evaluator_router
from app.features.support.routes.admin import router as support_admin_router
from app.features.support.routes.tickets import router as support_tickets_router
from app.features.verification.routes.verification import router as verification_router

api_router = APIRouter()

# Signup and authentication
api_router.include_router(verification_router)
api_router.include_router(auth_router)
api_router.include_router(password_reset_router)
api_router.include_router(users_admin_router)

# Applications
api_router.include_router(applications_admin_router)

# Scoring
api_router.include_router(evaluator_router)
api_router.include_router(scoring_admin_router)

# Support
api_router.include_router(support_tickets_router)
api_router.include_router(support_admin_router)

api_router.include_router(health_router)
