"""
Verification code issue/consume rules, exercised against the service layer.

Run with: pytest tests/test_verification_service.py -v
"""

import asyncio
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from app.features.auth.models.user import User, UserRole
from app.features.auth.utils.security import verify_password
from app.features.verification.models.verification_code import CodePurpose, VerificationCode
from app.features.verification.services.verification_service import (
    ACCOUNT_EXISTS_MESSAGE,
    INVALID_CODE_MESSAGE,
    TOO_MANY_ATTEMPTS_MESSAGE,
    VerificationCodeService,
)

PASSWORD = "SecurePass123"


def wrong_code(code: str) -> str:
    return "000000" if code != "000000" else "111111"


async def fetch_codes(session_factory, email: str) -> list[VerificationCode]:
    async with session_factory() as session:
        result = await session.execute(
            select(VerificationCode).where(VerificationCode.email == email).order_by(VerificationCode.id)
        )
        return list(result.scalars().all())


async def fetch_user(session_factory, email: str) -> User | None:
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()


class TestRequestCode:
    @pytest.mark.asyncio
    async def test_request_stores_fresh_code(self, db_session, session_factory):
        before = datetime.utcnow()
        record = await VerificationCodeService(db_session).request_code("a@b.com")

        assert len(record.code) == 6
        assert record.code.isdigit()

        rows = await fetch_codes(session_factory, "a@b.com")
        assert len(rows) == 1
        assert rows[0].attempts == 0
        assert rows[0].is_used is False
        assert rows[0].purpose == CodePurpose.SIGNUP
        assert before + timedelta(minutes=10) <= rows[0].expires_at <= datetime.utcnow() + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_email_is_normalised(self, db_session):
        record = await VerificationCodeService(db_session).request_code("  Mixed@Example.COM ")
        assert record.email == "mixed@example.com"

    @pytest.mark.asyncio
    async def test_request_refused_while_code_is_fresh(self, db_session):
        service = VerificationCodeService(db_session)
        await service.request_code("a@b.com")

        with pytest.raises(HTTPException) as exc_info:
            await service.request_code("a@b.com")

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == (
            "A verification code was sent recently. Please wait 2 minutes before requesting a new one."
        )

    @pytest.mark.asyncio
    async def test_request_allowed_once_threshold_passed(self, db_session, session_factory):
        service = VerificationCodeService(db_session)
        first = await service.request_code("a@b.com")
        first.expires_at = datetime.utcnow() + timedelta(minutes=7)
        await db_session.commit()

        second = await service.request_code("a@b.com")

        rows = await fetch_codes(session_factory, "a@b.com")
        assert [row.id for row in rows] == [second.id]

    @pytest.mark.asyncio
    async def test_wait_message_uses_singular_minute(self, db_session):
        service = VerificationCodeService(db_session)
        first = await service.request_code("a@b.com")
        first.expires_at = datetime.utcnow() + timedelta(minutes=8, seconds=30)
        await db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            await service.request_code("a@b.com")

        assert "Please wait 1 minute before" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_expired_codes_are_purged(self, db_session, session_factory):
        db_session.add(
            VerificationCode(
                email="old@example.com",
                code="123456",
                purpose=CodePurpose.SIGNUP,
                expires_at=datetime.utcnow() - timedelta(minutes=1),
            )
        )
        await db_session.commit()

        await VerificationCodeService(db_session).request_code("new@example.com")

        assert await fetch_codes(session_factory, "old@example.com") == []

    @pytest.mark.asyncio
    async def test_verified_account_cannot_request_signup_code(self, db_session, make_user):
        await make_user(email="taken@example.com")

        with pytest.raises(HTTPException) as exc_info:
            await VerificationCodeService(db_session).request_code("taken@example.com")

        assert exc_info.value.status_code == 409


class TestVerifyCode:
    @pytest.mark.asyncio
    async def test_correct_code_creates_verified_user(self, db_session, session_factory):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")

        user = await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

        assert user.email == "a@b.com"
        assert user.email_verified is True

        stored = await fetch_user(session_factory, "a@b.com")
        assert stored is not None
        assert stored.name == "Ada Lovelace"
        assert stored.password_hash != PASSWORD
        assert verify_password(PASSWORD, stored.password_hash)
        assert await fetch_codes(session_factory, "a@b.com") == []

    @pytest.mark.asyncio
    async def test_second_verification_refused_once_account_exists(self, db_session):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

        with pytest.raises(HTTPException) as exc_info:
            await service.verify_code("a@b.com", record.code, "OtherPass456", "Mallory")

        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == ACCOUNT_EXISTS_MESSAGE

    @pytest.mark.asyncio
    async def test_used_code_cannot_be_matched_again(self, db_session):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        await service.match_code("a@b.com", record.code, CodePurpose.SIGNUP, consume=True)
        await db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            await service.match_code("a@b.com", record.code, CodePurpose.SIGNUP)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == INVALID_CODE_MESSAGE

    @pytest.mark.asyncio
    async def test_existing_unverified_user_is_updated(self, db_session, session_factory, make_user):
        await make_user(email="a@b.com", name="Old Name", email_verified=False)
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")

        await service.verify_code("a@b.com", record.code, PASSWORD, "New Name")

        stored = await fetch_user(session_factory, "a@b.com")
        assert stored.name == "New Name"
        assert stored.email_verified is True
        assert stored.email_verified_at is not None

    @pytest.mark.asyncio
    async def test_expired_code_is_never_accepted(self, db_session):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        record.expires_at = datetime.utcnow() - timedelta(seconds=1)
        await db_session.commit()

        with pytest.raises(HTTPException) as exc_info:
            await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == INVALID_CODE_MESSAGE

    @pytest.mark.asyncio
    async def test_eleven_minute_old_code_rejected(self, db_session):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        record.created_at = datetime.utcnow() - timedelta(minutes=11)
        record.expires_at = record.created_at + timedelta(minutes=10)
        await db_session.commit()

        with pytest.raises(HTTPException):
            await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

    @pytest.mark.asyncio
    async def test_wrong_code_increments_attempts(self, db_session, session_factory):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")

        for _ in range(3):
            with pytest.raises(HTTPException) as exc_info:
                await service.verify_code("a@b.com", wrong_code(record.code), PASSWORD, "Ada Lovelace")
            assert exc_info.value.detail == INVALID_CODE_MESSAGE

        rows = await fetch_codes(session_factory, "a@b.com")
        assert rows[0].attempts == 3

    @pytest.mark.asyncio
    async def test_correct_code_refused_after_three_failures(self, db_session, session_factory):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")

        for _ in range(3):
            with pytest.raises(HTTPException):
                await service.verify_code("a@b.com", wrong_code(record.code), PASSWORD, "Ada Lovelace")

        with pytest.raises(HTTPException) as exc_info:
            await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail == TOO_MANY_ATTEMPTS_MESSAGE
        assert "too many failed attempts" in exc_info.value.detail.lower()
        assert await fetch_user(session_factory, "a@b.com") is None

    @pytest.mark.asyncio
    async def test_signup_code_does_not_reset_password(self, db_session, make_user):
        await make_user(email="a@b.com", email_verified=False)
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")

        with pytest.raises(HTTPException):
            await service.match_code("a@b.com", record.code, CodePurpose.PASSWORD_RESET)

    @pytest.mark.asyncio
    async def test_account_verified_after_code_issued_is_not_overwritten(
        self, db_session, session_factory, make_user
    ):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        await make_user(email="a@b.com", name="Staff Admin", role=UserRole.ADMIN, password="AdminPass123")

        with pytest.raises(HTTPException) as exc_info:
            await service.verify_code("a@b.com", record.code, PASSWORD, "Intruder")

        assert exc_info.value.status_code == 409
        stored = await fetch_user(session_factory, "a@b.com")
        assert stored.name == "Staff Admin"
        assert stored.role == UserRole.ADMIN
        assert verify_password("AdminPass123", stored.password_hash)
        assert not verify_password(PASSWORD, stored.password_hash)


class TestConcurrentGuesses:
    @pytest.mark.asyncio
    async def test_parallel_wrong_guesses_stop_at_limit(self, db_session, session_factory):
        record = await VerificationCodeService(db_session).request_code("a@b.com")
        guess = wrong_code(record.code)

        async def submit_guess() -> int:
            async with session_factory() as session:
                try:
                    await VerificationCodeService(session).verify_code("a@b.com", guess, PASSWORD, "Ada Lovelace")
                except HTTPException as e:
                    return e.status_code
                return 200

        statuses = await asyncio.gather(*(submit_guess() for _ in range(8)))

        assert statuses.count(400) == 3
        assert statuses.count(429) == 5
        rows = await fetch_codes(session_factory, "a@b.com")
        assert rows[0].attempts == 3

    @pytest.mark.asyncio
    async def test_correct_code_refused_after_parallel_failures(self, db_session, session_factory):
        service = VerificationCodeService(db_session)
        record = await service.request_code("a@b.com")
        guess = wrong_code(record.code)

        async def submit_guess():
            async with session_factory() as session:
                with pytest.raises(HTTPException):
                    await VerificationCodeService(session).match_code("a@b.com", guess, CodePurpose.SIGNUP)

        await asyncio.gather(*(submit_guess() for _ in range(5)))

        with pytest.raises(HTTPException) as exc_info:
            await service.verify_code("a@b.com", record.code, PASSWORD, "Ada Lovelace")

        assert exc_info.value.status_code == 429
        assert await fetch_user(session_factory, "a@b.com") is None
