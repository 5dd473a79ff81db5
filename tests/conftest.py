"""Shared fixtures: an in-memory database and fast, mocked collaborators."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from otp_auth.api.dependencies import (
    get_email_service,
    get_password_hasher,
    get_session_issuer,
)
from otp_auth.config import Settings
from otp_auth.core.lockout import LockoutPolicy
from otp_auth.core.passwords import PasswordHasher
from otp_auth.core.tokens import SessionIssuer
from otp_auth.database.engine import create_session_factory, get_session, init_db
from otp_auth.database.repository import UserRepository
from otp_auth.main import create_app
from otp_auth.models.otp import OTPRecord  # noqa: F401
from otp_auth.models.user import User
from otp_auth.services.auth_service import AuthService
from otp_auth.services.email_service import EmailService
from otp_auth.services.otp_service import OTPService
from otp_auth.services.user_service import UserService

TEST_PASSWORD = "correct-horse"


@pytest_asyncio.fixture
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://", echo=False, poolclass=StaticPool
    )
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def hasher():
    # Minimum bcrypt cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def issuer():
    return SessionIssuer(secret="test-secret")


@pytest.fixture
def email_service():
    """Mocked email service — never actually sends emails."""
    svc = EmailService(hostname="localhost", port=25, sender="test@example.com")
    svc.send_otp = AsyncMock()
    return svc


@pytest.fixture
def otp_service(db_session, email_service):
    return OTPService(db_session, email_service, ttl_minutes=10)


@pytest.fixture
def auth_service(db_session, otp_service, hasher, issuer):
    return AuthService(db_session, otp_service, hasher, issuer, LockoutPolicy())


@pytest.fixture
def user_service(db_session, hasher, issuer):
    return UserService(db_session, hasher, issuer)


@pytest.fixture
def user_password():
    return TEST_PASSWORD


@pytest_asyncio.fixture
async def verified_user(db_session, hasher) -> User:
    """A verified, unlocked account whose password is ``TEST_PASSWORD``."""
    user = await UserRepository(db_session).add(
        User(
            first_name="Alice",
            last_name="Johnson",
            email="alice@example.com",
            mobile_number="+15551234567",
            password_hash=hasher.hash(TEST_PASSWORD),
            email_verified=True,
        )
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def client(db_session, email_service, hasher, issuer):
    """HTTP client bound to an app wired to the test database."""
    app = create_app(Settings(rate_limit_enabled=False, counter_sweep_enabled=False))

    async def override_get_session():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_password_hasher] = lambda: hasher
    app.dependency_overrides[get_session_issuer] = lambda: issuer

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as http_client:
        yield http_client
