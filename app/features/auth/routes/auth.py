from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.dependencies.auth import get_current_user
from app.features.auth.models.user import User
from app.features.auth.schemas.auth import LoginRequest, UserResponse
from app.features.auth.services.auth_service import AuthService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/login",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Login user",
    description="Authenticate user with email and password",
)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """
    Login with email and password.
    Returns a bearer access token.
    """
    auth_service = AuthService(db)
    token_response = await auth_service.login_user(request)

    return api_response(data=token_response, message="Login successful")


@router.get("/me", response_model=dict, summary="Current user profile")
async def me(current_user: User = Depends(get_current_user)):
    return api_response(
        data=UserResponse.model_validate(current_user),
        message="User retrieved successfully",
    )
