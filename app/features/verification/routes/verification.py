from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.schemas import UserResponse
from app.features.verification.schemas.verification import (
    SendVerificationRequest,
    SendVerificationResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from app.features.verification.services.verification_service import VerificationCodeService
from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.response import api_response
from app.platform.services.email import send_verification_code_email

router = APIRouter(prefix="/auth", tags=["Email Verification"])


@router.post(
    "/send-verification",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Send a signup verification code",
)
async def send_verification(
    request: SendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a 6-digit code for a new signup and email it.
    Refused while the previous code is still fresh.
    """
    service = VerificationCodeService(db)
    record = await service.request_code(request.email)

    background_tasks.add_task(
        send_verification_code_email,
        to_email=record.email,
        code=record.code,
    )

    return api_response(
        data=SendVerificationResponse(
            email=record.email,
            expires_in_minutes=settings.VERIFICATION_CODE_TTL_MINUTES,
        ),
        message="Verification code sent to your email.",
    )


@router.post(
    "/verify-code",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Verify the emailed code and create the account",
)
async def verify_code(request: VerifyCodeRequest, db: AsyncSession = Depends(get_db)):
    service = VerificationCodeService(db)
    user = await service.verify_code(
        email=request.email,
        code=request.code,
        password=request.password,
        name=request.name,
    )

    return api_response(
        data=VerifyCodeResponse(user=UserResponse.model_validate(user)),
        message="Account created successfully!",
    )
