"""
Email verification codes.

Codes are six digits, live for ``VERIFICATION_CODE_TTL_MINUTES`` and allow
``VERIFICATION_MAX_ATTEMPTS`` wrong guesses. The same store backs signup
verification and password reset, separated by ``CodePurpose``.
"""

import math
from datetime import datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.features.auth.models.user import User, UserRole
from app.features.auth.utils.security import generate_otp, hash_password
from app.features.verification.models.verification_code import CodePurpose, VerificationCode
from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger(__name__)

INVALID_CODE_MESSAGE = "Invalid or expired verification code. Please try again."
TOO_MANY_ATTEMPTS_MESSAGE = "Too many failed attempts. Please request a new verification code."
ACCOUNT_EXISTS_MESSAGE = "An account with this email already exists. Please sign in instead."


class VerificationCodeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)

    async def purge_expired(self) -> int:
        result = await self.db.execute(
            delete(VerificationCode).where(VerificationCode.expires_at <= datetime.utcnow())
        )
        return result.rowcount or 0

    async def get_active_code(
        self, email: str, purpose: CodePurpose, now: datetime | None = None
    ) -> VerificationCode | None:
        """Latest unused, unexpired code for the email."""
        now = now or datetime.utcnow()
        result = await self.db.execute(
            select(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.purpose == purpose,
                VerificationCode.is_used.is_(False),
                VerificationCode.expires_at > now,
            )
            .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def issue_code(self, email: str, purpose: CodePurpose) -> VerificationCode:
        """Replace the email's unused codes with a fresh one. Commits."""
        await self.db.execute(
            delete(VerificationCode).where(
                VerificationCode.email == email,
                VerificationCode.purpose == purpose,
                VerificationCode.is_used.is_(False),
            )
        )
        now = datetime.utcnow()
        record = VerificationCode(
            email=email,
            code=generate_otp(),
            purpose=purpose,
            expires_at=now + self.ttl,
            is_used=False,
            attempts=0,
            created_at=now,
        )
        self.db.add(record)
        await self.db.commit()
        return record

    async def request_code(self, email: str) -> VerificationCode:
        email = email.lower().strip()

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user and user.email_verified:
            logger.warning(f"Verification code refused - account already exists: {email}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=ACCOUNT_EXISTS_MESSAGE,
            )

        await self.purge_expired()

        now = datetime.utcnow()
        active = await self.get_active_code(email, CodePurpose.SIGNUP, now)
        if active is not None:
            remaining = active.expires_at - now
            threshold = timedelta(minutes=settings.VERIFICATION_RESEND_THRESHOLD_MINUTES)
            if remaining > threshold:
                wait_minutes = max(1, math.ceil((remaining - threshold).total_seconds() / 60))
                logger.warning(
                    f"Verification code refused (cooldown) - email: {email}, "
                    f"seconds_remaining: {remaining.total_seconds():.0f}"
                )
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=(
                        "A verification code was sent recently. Please wait "
                        f"{wait_minutes} minute{'s' if wait_minutes != 1 else ''} "
                        "before requesting a new one."
                    ),
                )

        record = await self.issue_code(email, CodePurpose.SIGNUP)
        logger.info(f"Verification code issued - email: {email}, expires_at: {record.expires_at}")
        return record

    async def _record_failed_attempt(self, email: str, code: str, purpose: CodePurpose, active_id: int | None) -> bool:
        """
        Count a wrong guess in the database.

        Returns False when the active code had already used up its attempts,
        which happens when guesses for the same code race each other.
        """
        max_attempts = settings.VERIFICATION_MAX_ATTEMPTS
        counted = True
        if active_id is not None:
            result = await self.db.execute(
                update(VerificationCode)
                .where(
                    VerificationCode.id == active_id,
                    VerificationCode.is_used.is_(False),
                    VerificationCode.attempts < max_attempts,
                )
                .values(attempts=VerificationCode.attempts + 1)
                .execution_options(synchronize_session=False)
            )
            counted = result.rowcount == 1

        stale_conditions = [
            VerificationCode.email == email,
            VerificationCode.purpose == purpose,
            VerificationCode.is_used.is_(False),
            VerificationCode.code == code,
            VerificationCode.attempts < max_attempts,
        ]
        if active_id is not None:
            stale_conditions.append(VerificationCode.id != active_id)
        await self.db.execute(
            update(VerificationCode)
            .where(*stale_conditions)
            .values(attempts=VerificationCode.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return counted

    async def match_code(
        self, email: str, code: str, purpose: CodePurpose, consume: bool = False
    ) -> VerificationCode:
        """
        Return the active code if ``code`` matches it.

        A miss counts as a failed attempt against the email's active code and
        any unused row carrying the submitted code. Once the active code has
        used up its attempts it is refused even when the guess is right.
        Counters and the used flag change in single guarded UPDATEs, so
        concurrent guesses cannot get past the attempt limit.
        With ``consume`` the matched code is claimed as used.
        """
        now = datetime.utcnow()
        active = await self.get_active_code(email, purpose, now)

        if active is not None and active.attempts >= settings.VERIFICATION_MAX_ATTEMPTS:
            logger.warning(f"Verification refused (attempts exhausted) - email: {email}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=TOO_MANY_ATTEMPTS_MESSAGE,
            )

        if active is None or active.code != code:
            counted = await self._record_failed_attempt(
                email, code, purpose, active.id if active is not None else None
            )
            if not counted:
                logger.warning(f"Verification refused (attempts exhausted) - email: {email}")
                raise HTTPException(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    detail=TOO_MANY_ATTEMPTS_MESSAGE,
                )

            logger.warning(f"Verification failed - invalid or expired code - email: {email}")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CODE_MESSAGE)

        if consume:
            result = await self.db.execute(
                update(VerificationCode)
                .where(
                    VerificationCode.id == active.id,
                    VerificationCode.is_used.is_(False),
                    VerificationCode.attempts < settings.VERIFICATION_MAX_ATTEMPTS,
                    VerificationCode.expires_at > now,
                )
                .values(is_used=True)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.db.rollback()
                logger.warning(f"Verification failed - code claimed concurrently - email: {email}")
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CODE_MESSAGE)
            set_committed_value(active, "is_used", True)

        return active

    async def discard_codes(self, email: str, purpose: CodePurpose | None = None, used_only: bool = False):
        stmt = delete(VerificationCode).where(VerificationCode.email == email)
        if purpose is not None:
            stmt = stmt.where(VerificationCode.purpose == purpose)
        if used_only:
            stmt = stmt.where(VerificationCode.is_used.is_(True))
        await self.db.execute(stmt)

    async def verify_code(self, email: str, code: str, password: str, name: str) -> User:
        email = email.lower().strip()

        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is not None and user.email_verified:
            logger.warning(f"Verification refused - account verified since code was issued: {email}")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=ACCOUNT_EXISTS_MESSAGE)

        await self.match_code(email, code, CodePurpose.SIGNUP, consume=True)

        now = datetime.utcnow()

        if user is None:
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=UserRole.USER,
                email_verified=True,
                email_verified_at=now,
            )
            self.db.add(user)
        else:
            user.name = name
            user.password_hash = hash_password(password)
            user.email_verified = True
            user.email_verified_at = now

        await self.db.flush()
        await self.discard_codes(email, used_only=True)
        await self.db.commit()

        logger.info(f"Email verified and account saved - user: {user.id}, email: {email}")
        return user
