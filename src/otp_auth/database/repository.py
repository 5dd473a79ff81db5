"""Repositories — data access layer for credential and OTP records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.models.otp import OTPRecord
from otp_auth.models.user import User


def normalize_email(email: str) -> str:
    """Emails are stored and looked up trimmed and lower-cased."""
    return email.strip().lower()


class UserRepository:
    """Encapsulates all database queries related to users."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def find_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == normalize_email(email))
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: str) -> User | None:
        """Look up a user by the opaque identifier carried in session tokens."""
        stmt = select(User).where(User.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def add(self, user: User) -> User:
        user.email = normalize_email(user.email)
        self._session.add(user)
        await self._session.flush()
        return user

    async def increment_failed_attempts(self, user: User, now: datetime) -> int | None:
        """Atomically bump the failure counter and return its new value.

        A single ``UPDATE … RETURNING`` so concurrent failures for the same
        account cannot overwrite each other's increments.  Returns ``None``
        without touching the row when another request has already locked it.
        """
        stmt = (
            update(User)
            .where(User.id == user.id, User.locked_out.is_(False))
            .values(
                failed_attempt_count=User.failed_attempt_count + 1,
                last_failed_attempt_at=now,
            )
            .returning(User.failed_attempt_count)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        count = result.scalar_one_or_none()
        await self._session.refresh(user)
        return count

    async def lock(self, user: User, until: datetime) -> None:
        user.locked_out = True
        user.locked_until = until
        await self._session.flush()

    async def clear_lock(self, user: User) -> None:
        """Lift an expired lock; the counter starts over from zero."""
        user.locked_out = False
        user.locked_until = None
        user.failed_attempt_count = 0
        user.last_failed_attempt_at = None
        await self._session.flush()

    async def reset_failed_attempts(self, user: User) -> None:
        """Successful login: clear the counter and any lock."""
        user.failed_attempt_count = 0
        user.last_failed_attempt_at = None
        user.locked_out = False
        user.locked_until = None
        await self._session.flush()

    async def reset_all_failed_attempts(self) -> int:
        """Zero every positive failure counter. Locks are left alone.

        Returns the number of records touched.
        """
        stmt = (
            update(User)
            .where(User.failed_attempt_count > 0)
            .values(failed_attempt_count=0, last_failed_attempt_at=None)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0


class OTPRepository:
    """Encapsulates all database queries related to one-time codes."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def delete_for_email(self, email: str) -> int:
        stmt = delete(OTPRecord).where(OTPRecord.email == normalize_email(email))
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def create(self, email: str, code: str, expires_at: datetime) -> OTPRecord:
        record = OTPRecord(
            email=normalize_email(email), code=code, expires_at=expires_at, used=False
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def find_valid(self, email: str, code: str, now: datetime) -> OTPRecord | None:
        """Return the unused, unexpired record matching *email* and *code*.

        Expiry is checked here rather than trusting the periodic purge.
        """
        stmt = select(OTPRecord).where(
            OTPRecord.email == normalize_email(email),
            OTPRecord.code == code,
            OTPRecord.used.is_(False),
            OTPRecord.expires_at > now,
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def mark_used(self, record: OTPRecord) -> None:
        record.used = True
        await self._session.flush()

    async def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(OTPRecord)
            .where(OTPRecord.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
