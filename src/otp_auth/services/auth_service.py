"""Authentication service — signup via OTP and password login with lockout."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.core.lockout import AccountState, LockoutPolicy, LoginOutcome
from otp_auth.core.passwords import PasswordHasher
from otp_auth.core.tokens import SessionIssuer
from otp_auth.database.repository import UserRepository
from otp_auth.errors import AuthRejected, ConflictError, LockoutTriggered
from otp_auth.models.user import User
from otp_auth.services.otp_service import OTPService

logger = logging.getLogger(__name__)

MSG_UNKNOWN_ACCOUNT = "Invalid email or password"
MSG_BAD_OTP = "Invalid or expired OTP"
MSG_ACCOUNT_EXISTS = "User already exists with this email"


class AuthService:
    """Signup and login flows for one database session.

    Flow
    ----
    1. ``send_otp`` mails a code to an address no verified account owns.
    2. ``register`` checks the code, creates (or re-materialises) the
       account as verified and returns a session token.
    3. ``login`` runs the lockout state machine and returns a session token
       on success.  Counter changes are committed before a rejection is
       raised so they survive the request's rollback.
    """

    def __init__(
        self,
        db_session: AsyncSession,
        otp_service: OTPService,
        hasher: PasswordHasher,
        issuer: SessionIssuer,
        policy: LockoutPolicy | None = None,
    ) -> None:
        self._session = db_session
        self._users = UserRepository(db_session)
        self._otp = otp_service
        self._hasher = hasher
        self._issuer = issuer
        self._policy = policy or LockoutPolicy()

    # ── Signup ───────────────────────────────────────────

    async def send_otp(self, email: str, first_name: str) -> None:
        existing = await self._users.find_by_email(email)
        if existing is not None and existing.email_verified:
            raise ConflictError(MSG_ACCOUNT_EXISTS)
        await self._otp.issue(email, first_name)

    async def register(
        self,
        email: str,
        otp: str,
        first_name: str,
        last_name: str,
        mobile_number: str,
        password: str,
    ) -> tuple[User, str]:
        """Verify *otp* and create or update the account as verified."""
        record = await self._otp.verify(email, otp)
        if record is None:
            raise AuthRejected(MSG_BAD_OTP)

        password_hash = self._hasher.hash(password)
        user = await self._users.find_by_email(email)
        if user is None:
            user = await self._users.add(
                User(
                    first_name=first_name,
                    last_name=last_name,
                    email=email,
                    mobile_number=mobile_number,
                    password_hash=password_hash,
                    email_verified=True,
                )
            )
            logger.info("Created account %s for %s", user.user_id, user.email)
        else:
            user.first_name = first_name
            user.last_name = last_name
            user.mobile_number = mobile_number
            user.password_hash = password_hash
            user.email_verified = True
            logger.info("Re-materialised account %s for %s", user.user_id, user.email)

        await self._otp.consume(record)
        return user, self._issuer.issue(user.user_id)

    # ── Login ────────────────────────────────────────────

    async def login(self, email: str, password: str) -> tuple[User, str]:
        user = await self._users.find_by_email(email)
        if user is None:
            raise AuthRejected(MSG_UNKNOWN_ACCOUNT)

        now = datetime.now(UTC)
        if self._policy.state(user, now) is AccountState.LOCK_EXPIRED:
            await self._users.clear_lock(user)
            await self._session.commit()
            logger.info("Lock expired for %s, cleared", user.email)

        rejection = self._policy.precheck(user, now)
        if rejection is not None:
            logger.info("Login for %s rejected: %s", user.email, rejection.outcome.value)
            status_code = 403 if rejection.outcome is LoginOutcome.LOCKED else None
            raise AuthRejected(rejection.message, status_code=status_code)

        if self._hasher.verify(password, user.password_hash):
            await self._users.reset_failed_attempts(user)
            logger.info("Login successful for %s", user.email)
            return user, self._issuer.issue(user.user_id)

        count = await self._users.increment_failed_attempts(user, now)
        if count is None:
            # A concurrent failure locked the account after our precheck
            locked = self._policy.precheck(user, now)
            logger.info("Login for %s rejected: locked concurrently", user.email)
            raise AuthRejected(locked.message, status_code=403)
        decision = self._policy.after_failure(count, now)
        if decision.outcome is LoginOutcome.LOCKOUT_TRIGGERED:
            await self._users.lock(user, decision.locked_until)
            await self._session.commit()
            logger.warning(
                "Account %s locked until %s after %d failed attempts",
                user.email,
                decision.locked_until.isoformat(),
                count,
            )
            raise LockoutTriggered(decision.message)

        await self._session.commit()
        logger.info(
            "Invalid password for %s (%d attempts remaining)",
            user.email,
            decision.attempts_remaining,
        )
        raise AuthRejected(decision.message)
