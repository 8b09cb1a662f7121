from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.schemas.auth import (
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordResetVerify,
)
from app.features.auth.services.password_reset import PasswordResetService
from app.platform.db.session import get_db
from app.platform.response import api_response
from app.platform.services.email import send_password_reset_email

router = APIRouter(prefix="/auth/password-reset", tags=["Password Reset"])

RESET_REQUESTED_MESSAGE = "If an account with that email exists, we've sent a password reset code."


@router.post("/request", response_model=dict)
async def request_password_reset(
    request: PasswordResetRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    service = PasswordResetService(db)
    user, record = await service.request_reset(request.email)

    if user is not None and record is not None:
        background_tasks.add_task(
            send_password_reset_email,
            to_email=user.email,
            code=record.code,
            user_name=user.name or "User",
        )

    return api_response(message=RESET_REQUESTED_MESSAGE)


@router.post("/verify", response_model=dict)
async def verify_password_reset_code(
    request: PasswordResetVerify, db: AsyncSession = Depends(get_db)
):
    service = PasswordResetService(db)
    await service.verify_code(request.email, request.code)
    return api_response(message="Code verified successfully.")


@router.post("/confirm", response_model=dict)
async def confirm_password_reset(
    request: PasswordResetConfirm, db: AsyncSession = Depends(get_db)
):
    service = PasswordResetService(db)
    await service.reset_password(request.email, request.code, request.new_password)
    return api_response(
        message="Your password has been reset successfully. You can now sign in with your new password."
    )
