"""Login lockout state machine — decides the outcome of a password attempt.

Nothing in this module touches the database.  The caller loads the account,
asks the policy what to do, and persists the changes the decision implies.

States are derived from the stored fields, never stored themselves:

* ``ACTIVE``       — ``locked_out`` is false
* ``LOCKED``       — ``locked_out`` and ``locked_until`` is in the future
* ``LOCK_EXPIRED`` — ``locked_out`` but ``locked_until`` has passed
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

MAX_FAILED_ATTEMPTS = 3
LOCKOUT_DURATION = timedelta(hours=3)

MSG_LOCKED = (
    "Account is temporarily blocked due to too many failed login attempts. "
    "Please try again after {hours} hours."
)
MSG_LOCKOUT_TRIGGERED = "Too many attempts. Please try again after {hours} hours."
MSG_NOT_VERIFIED = "Please verify your email first"
MSG_INVALID = "Invalid email or password. {remaining} attempts remaining."
MSG_ACCEPTED = "Login successful"


class LockoutState(Protocol):
    email_verified: bool
    locked_out: bool
    locked_until: datetime | None


class AccountState(enum.Enum):
    ACTIVE = "active"
    LOCKED = "locked"
    LOCK_EXPIRED = "lock_expired"


class LoginOutcome(enum.Enum):
    ACCEPTED = "accepted"
    LOCKED = "locked"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    INVALID_CREDENTIALS = "invalid_credentials"
    LOCKOUT_TRIGGERED = "lockout_triggered"


@dataclass(frozen=True)
class LoginDecision:
    """Value object describing what happened to one login attempt."""

    outcome: LoginOutcome
    message: str
    attempts_remaining: int | None = None
    locked_until: datetime | None = None

    @property
    def accepted(self) -> bool:
        return self.outcome is LoginOutcome.ACCEPTED


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything here is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True)
class LockoutPolicy:
    """Threshold and duration for the password-lockout rules."""

    max_failed_attempts: int = MAX_FAILED_ATTEMPTS
    lockout_duration: timedelta = LOCKOUT_DURATION

    @property
    def _hours(self) -> int:
        return int(self.lockout_duration.total_seconds() // 3600)

    def state(self, account: LockoutState, now: datetime) -> AccountState:
        if not account.locked_out:
            return AccountState.ACTIVE
        if account.locked_until is not None and as_utc(account.locked_until) > now:
            return AccountState.LOCKED
        return AccountState.LOCK_EXPIRED

    def precheck(self, account: LockoutState, now: datetime) -> LoginDecision | None:
        """Reject before the password is looked at, or return ``None`` to proceed.

        The caller must already have cleared a ``LOCK_EXPIRED`` account.
        """
        if self.state(account, now) is AccountState.LOCKED:
            return LoginDecision(
                outcome=LoginOutcome.LOCKED,
                message=MSG_LOCKED.format(hours=self._hours),
                attempts_remaining=0,
                locked_until=as_utc(account.locked_until),
            )
        if not account.email_verified:
            return LoginDecision(
                outcome=LoginOutcome.EMAIL_NOT_VERIFIED, message=MSG_NOT_VERIFIED
            )
        return None

    def after_failure(self, failed_count: int, now: datetime) -> LoginDecision:
        """Decide the outcome given the counter value *after* this failure."""
        if failed_count >= self.max_failed_attempts:
            return LoginDecision(
                outcome=LoginOutcome.LOCKOUT_TRIGGERED,
                message=MSG_LOCKOUT_TRIGGERED.format(hours=self._hours),
                attempts_remaining=0,
                locked_until=now + self.lockout_duration,
            )
        remaining = self.max_failed_attempts - failed_count
        return LoginDecision(
            outcome=LoginOutcome.INVALID_CREDENTIALS,
            message=MSG_INVALID.format(remaining=remaining),
            attempts_remaining=remaining,
        )

    def after_success(self) -> LoginDecision:
        return LoginDecision(outcome=LoginOutcome.ACCEPTED, message=MSG_ACCEPTED)
