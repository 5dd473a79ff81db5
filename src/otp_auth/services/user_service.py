"""User service — session resolution and authenticated profile updates."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.core.passwords import PasswordHasher
from otp_auth.core.tokens import INVALID_TOKEN_MESSAGE, SessionIssuer
from otp_auth.database.repository import UserRepository
from otp_auth.errors import AuthRejected, Unauthorized, ValidationError
from otp_auth.models.user import User

logger = logging.getLogger(__name__)


class UserService:
    """Operations available to a caller holding a valid session."""

    def __init__(
        self, db_session: AsyncSession, hasher: PasswordHasher, issuer: SessionIssuer
    ) -> None:
        self._session = db_session
        self._users = UserRepository(db_session)
        self._hasher = hasher
        self._issuer = issuer

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to its account.

        A token for an account that no longer exists is as invalid as a
        forged one.
        """
        user_id = self._issuer.verify(token)
        user = await self._users.find_by_user_id(user_id)
        if user is None:
            raise Unauthorized(INVALID_TOKEN_MESSAGE)
        return user

    async def update_password(
        self, user: User, current_password: str, new_password: str
    ) -> None:
        if not self._hasher.verify(current_password, user.password_hash):
            raise AuthRejected("Current password is incorrect")
        if self._hasher.verify(new_password, user.password_hash):
            raise ValidationError("New password must be different from current password")

        user.password_hash = self._hasher.hash(new_password)
        await self._session.flush()
        logger.info("Password updated for %s", user.user_id)

    async def update_profile(
        self,
        user: User,
        first_name: str | None = None,
        last_name: str | None = None,
        mobile_number: str | None = None,
    ) -> User:
        """Overwrite only the fields that were supplied."""
        if first_name:
            user.first_name = first_name
        if last_name:
            user.last_name = last_name
        if mobile_number:
            user.mobile_number = mobile_number
        await self._session.flush()
        await self._session.refresh(user)
        logger.info("Profile updated for %s", user.user_id)
        return user
