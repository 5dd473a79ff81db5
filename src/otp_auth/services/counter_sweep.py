"""Counter sweep — periodic decay of failed-login counters.

Every ``interval`` (aligned to wall-clock multiples of the interval, so a
3 hour interval runs at 00:00, 03:00, 06:00 … UTC) every positive
``failed_attempt_count`` is reset to zero and expired OTPs are purged.

Lock status is never touched here: it is always derived from
``locked_until`` at login time.  The sweep is best effort; a failed run is
logged and the next one proceeds on schedule.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from otp_auth.database.repository import OTPRepository, UserRepository

logger = logging.getLogger(__name__)


def seconds_until_next_run(now: datetime, interval: timedelta) -> float:
    """Seconds from *now* to the next multiple of *interval* since midnight UTC."""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elapsed = now - midnight
    remaining = interval - (elapsed % interval)
    return remaining.total_seconds()


async def sweep_once(session: AsyncSession) -> tuple[int, int]:
    """Run one sweep in *session* and commit.

    Returns ``(counters_reset, otps_purged)``.
    """
    reset = await UserRepository(session).reset_all_failed_attempts()
    purged = await OTPRepository(session).delete_expired(datetime.now(UTC))
    await session.commit()
    return reset, purged


class CounterSweeper:
    """Runs :func:`sweep_once` on a fixed schedule as a background task."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        interval: timedelta = timedelta(hours=3),
    ) -> None:
        self._session_factory = session_factory
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="counter-sweep")
        logger.info("Counter sweep scheduled every %s", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Counter sweep stopped")

    async def run_once(self) -> tuple[int, int]:
        async with self._session_factory() as session:
            reset, purged = await sweep_once(session)
        logger.info(
            "Counter sweep: reset %d failed-attempt counter(s), purged %d expired OTP(s)",
            reset,
            purged,
        )
        return reset, purged

    async def _run(self) -> None:
        while True:
            delay = seconds_until_next_run(datetime.now(UTC), self._interval)
            await asyncio.sleep(delay)
            try:
                await self.run_once()
            except Exception:
                logger.exception("Counter sweep failed")
