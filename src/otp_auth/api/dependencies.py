"""FastAPI dependencies — the composition root for per-request services.

Settings are read here and handed to each component's constructor; the
services themselves never look at the global ``settings`` object.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.config import settings
from otp_auth.core.lockout import LockoutPolicy
from otp_auth.core.passwords import PasswordHasher
from otp_auth.core.tokens import INVALID_TOKEN_MESSAGE, SessionIssuer
from otp_auth.database.engine import get_session
from otp_auth.errors import Unauthorized
from otp_auth.models.user import User
from otp_auth.services.auth_service import AuthService
from otp_auth.services.email_service import EmailService
from otp_auth.services.otp_service import OTPService
from otp_auth.services.user_service import UserService

bearer_scheme = HTTPBearer(auto_error=False)


def get_email_service() -> EmailService:
    return EmailService(
        hostname=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.email_from,
        username=settings.smtp_username,
        password=settings.smtp_password,
        app_name=settings.app_name,
    )


def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.bcrypt_rounds)


def get_session_issuer() -> SessionIssuer:
    return SessionIssuer(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        ttl=timedelta(hours=settings.jwt_expire_hours),
    )


def get_lockout_policy() -> LockoutPolicy:
    return LockoutPolicy(
        max_failed_attempts=settings.max_failed_attempts,
        lockout_duration=timedelta(hours=settings.lockout_hours),
    )


def get_auth_service(
    db_session: AsyncSession = Depends(get_session),
    email_service: EmailService = Depends(get_email_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: SessionIssuer = Depends(get_session_issuer),
    policy: LockoutPolicy = Depends(get_lockout_policy),
) -> AuthService:
    otp_service = OTPService(
        db_session, email_service, ttl_minutes=settings.otp_ttl_minutes
    )
    return AuthService(db_session, otp_service, hasher, issuer, policy)


def get_user_service(
    db_session: AsyncSession = Depends(get_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: SessionIssuer = Depends(get_session_issuer),
) -> UserService:
    return UserService(db_session, hasher, issuer)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    user_service: UserService = Depends(get_user_service),
) -> User:
    """Resolve the bearer token; every failure is the same 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized(INVALID_TOKEN_MESSAGE)
    return await user_service.authenticate(credentials.credentials)
