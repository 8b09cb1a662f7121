from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.services.auth_service import AuthService
from app.features.verification.models.verification_code import CodePurpose, VerificationCode
from app.features.verification.services.verification_service import VerificationCodeService
from app.platform.logger import get_logger

logger = get_logger(__name__)


class PasswordResetService:
    """Password reset through an emailed 6-digit code."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.auth_service = AuthService(db)
        self.codes = VerificationCodeService(db)

    async def request_reset(self, email: str) -> tuple[User | None, VerificationCode | None]:
        """
        Issue a reset code when the account exists.

        Callers must answer the same way whether or not a user was found.
        """
        email = email.lower().strip()
        user = await self.auth_service.get_user_by_email(email)
        if user is None:
            logger.info(f"Password reset requested for unknown email: {email}")
            return None, None

        await self.codes.purge_expired()
        record = await self.codes.issue_code(email, CodePurpose.PASSWORD_RESET)
        logger.info(f"Password reset code issued - user: {user.id}")
        return user, record

    async def verify_code(self, email: str, code: str) -> VerificationCode:
        return await self.codes.match_code(email.lower().strip(), code, CodePurpose.PASSWORD_RESET)

    async def reset_password(self, email: str, code: str, new_password: str) -> User:
        email = email.lower().strip()
        await self.codes.match_code(email, code, CodePurpose.PASSWORD_RESET, consume=True)

        user = await self.auth_service.update_password(email, new_password)
        await self.codes.discard_codes(email, CodePurpose.PASSWORD_RESET)
        await self.db.commit()

        logger.info(f"Password reset successful - user: {user.id}")
        return user
