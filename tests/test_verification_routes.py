"""
Signup through the emailed verification code, over HTTP.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.features.verification.models.verification_code import VerificationCode

SEND_URL = "/api/v1/auth/send-verification"
VERIFY_URL = "/api/v1/auth/verify-code"


async def latest_code(session_factory, email: str) -> str:
    async with session_factory() as session:
        result = await session.execute(
            select(VerificationCode.code)
            .where(VerificationCode.email == email)
            .order_by(VerificationCode.id.desc())
        )
        return result.scalars().first()


class TestSendVerification:
    @pytest.mark.asyncio
    async def test_send_verification_success(self, client: AsyncClient, sent_emails):
        response = await client.post(SEND_URL, json={"email": "new.applicant@example.com"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Verification code sent to your email."
        assert data["data"] == {"email": "new.applicant@example.com", "expires_in_minutes": 10}

        sent_emails.assert_called_once()
        to_email, subject, body = sent_emails.call_args.args
        assert to_email == "new.applicant@example.com"
        assert "Verification Code" in subject

    @pytest.mark.asyncio
    async def test_emailed_code_matches_stored_code(self, client: AsyncClient, session_factory, sent_emails):
        await client.post(SEND_URL, json={"email": "new.applicant@example.com"})

        code = await latest_code(session_factory, "new.applicant@example.com")
        body = sent_emails.call_args.args[2]
        assert code in body

    @pytest.mark.asyncio
    async def test_invalid_email_returns_field_errors(self, client: AsyncClient, sent_emails):
        response = await client.post(SEND_URL, json={"email": "not-an-email"})

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Validation failed"
        assert "email" in data["errors"]
        sent_emails.assert_not_called()

    @pytest.mark.asyncio
    async def test_second_request_hits_cooldown(self, client: AsyncClient):
        await client.post(SEND_URL, json={"email": "new.applicant@example.com"})
        response = await client.post(SEND_URL, json={"email": "new.applicant@example.com"})

        assert response.status_code == 429
        assert "Please wait 2 minutes" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_existing_account_conflict(self, client: AsyncClient, make_user):
        await make_user(email="taken@example.com")

        response = await client.post(SEND_URL, json={"email": "taken@example.com"})

        assert response.status_code == 409
        assert response.json()["success"] is False


class TestVerifyCode:
    @pytest.mark.asyncio
    async def test_verify_code_creates_account(self, client: AsyncClient, session_factory):
        await client.post(SEND_URL, json={"email": "new.applicant@example.com"})
        code = await latest_code(session_factory, "new.applicant@example.com")

        response = await client.post(
            VERIFY_URL,
            json={
                "email": "new.applicant@example.com",
                "code": code,
                "password": "SecurePass123",
                "name": "  Grace Hopper ",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Account created successfully!"
        user = data["data"]["user"]
        assert user["email"] == "new.applicant@example.com"
        assert user["name"] == "Grace Hopper"
        assert user["role"] == "user"
        assert user["email_verified"] is True
        assert "password_hash" not in user

    @pytest.mark.asyncio
    async def test_new_account_can_login(self, client: AsyncClient, session_factory):
        await client.post(SEND_URL, json={"email": "new.applicant@example.com"})
        code = await latest_code(session_factory, "new.applicant@example.com")
        await client.post(
            VERIFY_URL,
            json={
                "email": "new.applicant@example.com",
                "code": code,
                "password": "SecurePass123",
                "name": "Grace Hopper",
            },
        )

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "new.applicant@example.com", "password": "SecurePass123"},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_wrong_code_is_rejected(self, client: AsyncClient, session_factory):
        await client.post(SEND_URL, json={"email": "new.applicant@example.com"})
        code = await latest_code(session_factory, "new.applicant@example.com")

        response = await client.post(
            VERIFY_URL,
            json={
                "email": "new.applicant@example.com",
                "code": "000000" if code != "000000" else "111111",
                "password": "SecurePass123",
                "name": "Grace Hopper",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid or expired verification code. Please try again."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"code": "12345"}, "code"),
            ({"code": "abcdef"}, "code"),
            ({"password": "short"}, "password"),
            ({"password": "alllowercase1"}, "password"),
            ({"name": " a "}, "name"),
        ],
    )
    async def test_payload_validation(self, client: AsyncClient, payload, field):
        body = {
            "email": "new.applicant@example.com",
            "code": "123456",
            "password": "SecurePass123",
            "name": "Grace Hopper",
        }
        body.update(payload)

        response = await client.post(VERIFY_URL, json=body)

        assert response.status_code == 422
        assert field in response.json()["errors"]
