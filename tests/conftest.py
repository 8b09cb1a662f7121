"""
Test configuration and fixtures for the YouthADAPT portal API.

Every test gets its own throwaway SQLite database, an httpx client wired to
it, and a patched email transport so nothing leaves the machine.
"""

import os
import tempfile
from datetime import datetime
from typing import Optional
from unittest.mock import patch

from dotenv import load_dotenv

load_dotenv()

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mktemp(suffix='.db')}"
os.environ["EMAIL_RELAY_URL"] = ""
os.environ["JWT_SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.features.applications.models.application import Application, ApplicationStatus, ApplicationStatusChange  # noqa: F401
from app.features.auth.models.user import User, UserRole
from app.features.auth.utils.security import create_access_token, hash_password
from app.features.scoring.models import ApplicationScore, ScoringConfiguration, ScoringCriteria  # noqa: F401
from app.features.support.models import SupportResponse, SupportTicket  # noqa: F401
from app.features.verification.models.verification_code import VerificationCode  # noqa: F401
from app.main import app
from app.platform.db.base import Base
from app.platform.db.session import get_db

TEST_PASSWORD = "SecurePass123"


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Async client whose requests run against the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(autouse=True)
def sent_emails():
    """Capture outgoing mail at the transport boundary; templates still render."""
    with patch("app.platform.services.email.send_email") as mock_send_email:
        mock_send_email.return_value = None
        yield mock_send_email


@pytest.fixture
def make_user(db_session):
    async def _make_user(
        email: str = "applicant@example.com",
        role: UserRole = UserRole.USER,
        name: str = "Ada Applicant",
        password: str = TEST_PASSWORD,
        email_verified: bool = True,
    ) -> User:
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            email_verified=email_verified,
            email_verified_at=datetime.utcnow() if email_verified else None,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_application(db_session):
    async def _make_application(
        user: User,
        business_name: str = "Green Roots Farm",
        status: ApplicationStatus = ApplicationStatus.SUBMITTED,
    ) -> Application:
        application = Application(
            user_id=user.id,
            business_name=business_name,
            status=status,
            submitted_at=datetime.utcnow() if status != ApplicationStatus.DRAFT else None,
        )
        db_session.add(application)
        await db_session.commit()
        return application

    return _make_application


def auth_headers(user: User, token: Optional[str] = None) -> dict:
    token = token or create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value}
    )
    return {"Authorization": f"Bearer {token}"}
