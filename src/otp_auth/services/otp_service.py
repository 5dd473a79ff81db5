"""OTP service — issues, verifies and consumes signup codes."""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.database.repository import OTPRepository
from otp_auth.errors import DependencyFailure
from otp_auth.models.otp import OTPRecord
from otp_auth.services.email_service import EmailService

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def generate_code() -> str:
    """Uniformly random 6-digit code, zero-padded (000000–999999)."""
    return f"{secrets.randbelow(10**OTP_LENGTH):0{OTP_LENGTH}d}"


class OTPService:
    """Owns the OTP lifecycle for one database session.

    Issuance is transactional: if the email cannot be delivered the session
    is rolled back, so the new code is discarded and any previous code for
    the address stays valid.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        email_service: EmailService,
        ttl_minutes: int = 10,
    ) -> None:
        self._session = db_session
        self._repo = OTPRepository(db_session)
        self._email = email_service
        self._ttl = timedelta(minutes=ttl_minutes)

    async def issue(self, email: str, first_name: str) -> str:
        """Replace any code for *email* with a fresh one and mail it."""
        now = datetime.now(UTC)
        removed = await self._repo.delete_for_email(email)
        if removed:
            logger.info("Invalidated %d previous OTP(s) for %s", removed, email)

        code = generate_code()
        await self._repo.create(email, code, now + self._ttl)

        try:
            await self._email.send_otp(
                email,
                code,
                first_name,
                ttl_minutes=int(self._ttl.total_seconds() // 60),
            )
        except DependencyFailure:
            await self._session.rollback()
            raise

        logger.info("OTP issued for %s", email)
        return code

    async def verify(self, email: str, code: str) -> OTPRecord | None:
        """Return the matching unused, unexpired record, or ``None``.

        Verification does not consume the code; call :meth:`consume` once
        the signup it authorises has been written.
        """
        record = await self._repo.find_valid(email, code, datetime.now(UTC))
        if record is None:
            logger.info("OTP verification failed for %s", email)
        return record

    async def consume(self, record: OTPRecord) -> None:
        await self._repo.mark_used(record)
        logger.info("OTP consumed for %s", record.email)

    async def purge_expired(self) -> int:
        return await self._repo.delete_expired(datetime.now(UTC))
