"""Tests for the AuthService — signup via OTP and login with lockout."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import update

from otp_auth.core.lockout import as_utc
from otp_auth.errors import AuthRejected, ConflictError, LockoutTriggered
from otp_auth.database.repository import UserRepository
from otp_auth.models.user import User


async def _signup(auth_service, email_service, email="bob@example.com", password="secret1"):
    await auth_service.send_otp(email, "Bob")
    code = email_service.send_otp.call_args.args[1]
    return await auth_service.register(
        email=email,
        otp=code,
        first_name="Bob",
        last_name="Smith",
        mobile_number="+15559876543",
        password=password,
    )


# ──────────────────────────────────────────────────────────
# Signup
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_signup_creates_verified_account(auth_service, email_service, issuer):
    user, token = await _signup(auth_service, email_service)

    assert user.email_verified is True
    assert user.email == "bob@example.com"
    assert issuer.verify(token) == user.user_id


@pytest.mark.asyncio
async def test_send_otp_rejected_for_verified_account(auth_service, verified_user, email_service):
    with pytest.raises(ConflictError) as exc_info:
        await auth_service.send_otp("ALICE@example.com", "Alice")
    assert exc_info.value.message == "User already exists with this email"
    email_service.send_otp.assert_not_called()


@pytest.mark.asyncio
async def test_send_otp_allowed_for_unverified_account(auth_service, db_session, email_service):
    await UserRepository(db_session).add(
        User(
            first_name="Carol",
            last_name="Davis",
            email="carol@example.com",
            mobile_number="+442071234567",
            password_hash="x",
            email_verified=False,
        )
    )
    await auth_service.send_otp("carol@example.com", "Carol")
    email_service.send_otp.assert_awaited_once()


@pytest.mark.asyncio
async def test_register_with_wrong_otp_rejected(auth_service, email_service):
    await auth_service.send_otp("bob@example.com", "Bob")
    code = email_service.send_otp.call_args.args[1]
    wrong = f"{(int(code) + 1) % 1_000_000:06d}"

    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.register(
            email="bob@example.com",
            otp=wrong,
            first_name="Bob",
            last_name="Smith",
            mobile_number="+15559876543",
            password="secret1",
        )
    assert exc_info.value.message == "Invalid or expired OTP"


@pytest.mark.asyncio
async def test_register_rematerialises_unverified_account(auth_service, db_session, email_service):
    existing = await UserRepository(db_session).add(
        User(
            first_name="Old",
            last_name="Name",
            email="bob@example.com",
            mobile_number="+10000000000",
            password_hash="x",
            email_verified=False,
        )
    )
    original_id = existing.user_id

    user, _ = await _signup(auth_service, email_service)

    assert user.user_id == original_id
    assert user.first_name == "Bob"
    assert user.email_verified is True


@pytest.mark.asyncio
async def test_otp_cannot_be_reused(auth_service, email_service):
    await _signup(auth_service, email_service)
    code = email_service.send_otp.call_args.args[1]

    with pytest.raises(AuthRejected):
        await auth_service.register(
            email="bob@example.com",
            otp=code,
            first_name="Bob",
            last_name="Smith",
            mobile_number="+15559876543",
            password="another1",
        )


# ──────────────────────────────────────────────────────────
# Login
# ──────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_login_success(auth_service, verified_user, user_password, issuer):
    user, token = await auth_service.login("alice@example.com", user_password)
    assert user.user_id == verified_user.user_id
    assert issuer.verify(token) == verified_user.user_id


@pytest.mark.asyncio
async def test_login_unknown_email(auth_service):
    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.login("ghost@example.com", "whatever")
    assert exc_info.value.message == "Invalid email or password"


@pytest.mark.asyncio
async def test_login_unverified_email(auth_service, verified_user, db_session, user_password):
    verified_user.email_verified = False
    await db_session.commit()

    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.login("alice@example.com", user_password)
    assert exc_info.value.message == "Please verify your email first"
    assert verified_user.failed_attempt_count == 0


@pytest.mark.asyncio
async def test_counter_tracks_consecutive_failures(auth_service, verified_user):
    for expected_count, remaining in ((1, 2), (2, 1)):
        with pytest.raises(AuthRejected) as exc_info:
            await auth_service.login("alice@example.com", "wrong")
        assert not isinstance(exc_info.value, LockoutTriggered)
        assert exc_info.value.message == (
            f"Invalid email or password. {remaining} attempts remaining."
        )
        assert verified_user.failed_attempt_count == expected_count
        assert verified_user.locked_out is False


@pytest.mark.asyncio
async def test_third_failure_locks_and_fourth_does_not_count(
    auth_service, verified_user, user_password
):
    for _ in range(2):
        with pytest.raises(AuthRejected):
            await auth_service.login("alice@example.com", "wrong")

    with pytest.raises(LockoutTriggered) as exc_info:
        await auth_service.login("alice@example.com", "wrong")
    assert exc_info.value.status_code == 403
    assert "Too many attempts" in exc_info.value.message
    assert verified_user.failed_attempt_count == 3
    assert verified_user.locked_out is True
    assert as_utc(verified_user.locked_until) > datetime.now(UTC) + timedelta(hours=2)

    # Locked: even the right password is refused, and the counter stays put
    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.login("alice@example.com", user_password)
    assert not isinstance(exc_info.value, LockoutTriggered)
    assert exc_info.value.status_code == 403
    assert "temporarily blocked" in exc_info.value.message
    assert verified_user.failed_attempt_count == 3


@pytest.mark.asyncio
async def test_failure_racing_a_concurrent_lock_is_not_counted(
    auth_service, verified_user, db_session, monkeypatch
):
    verified_user.failed_attempt_count = 2
    await db_session.commit()
    increment = UserRepository.increment_failed_attempts

    async def lock_then_increment(self, user, now):
        # Another request's third failure lands between our precheck and increment
        await db_session.execute(
            update(User)
            .where(User.id == user.id)
            .values(
                failed_attempt_count=3,
                locked_out=True,
                locked_until=now + timedelta(hours=3),
            )
            .execution_options(synchronize_session=False)
        )
        return await increment(self, user, now)

    monkeypatch.setattr(UserRepository, "increment_failed_attempts", lock_then_increment)

    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.login("alice@example.com", "wrong")

    assert not isinstance(exc_info.value, LockoutTriggered)
    assert exc_info.value.status_code == 403
    assert "temporarily blocked" in exc_info.value.message
    assert verified_user.failed_attempt_count == 3


@pytest.mark.asyncio
async def test_success_on_second_attempt_resets_counter(
    auth_service, verified_user, user_password
):
    with pytest.raises(AuthRejected):
        await auth_service.login("alice@example.com", "wrong")
    assert verified_user.failed_attempt_count == 1

    _, token = await auth_service.login("alice@example.com", user_password)

    assert token
    assert verified_user.failed_attempt_count == 0
    assert verified_user.last_failed_attempt_at is None


@pytest.mark.asyncio
async def test_expired_lock_is_cleared_and_counter_restarts(
    auth_service, verified_user, db_session
):
    verified_user.failed_attempt_count = 3
    verified_user.locked_out = True
    verified_user.locked_until = datetime.now(UTC) - timedelta(minutes=1)
    await db_session.commit()

    with pytest.raises(AuthRejected) as exc_info:
        await auth_service.login("alice@example.com", "wrong")

    assert exc_info.value.message == "Invalid email or password. 2 attempts remaining."
    assert verified_user.failed_attempt_count == 1
    assert verified_user.locked_out is False
    assert verified_user.locked_until is None


@pytest.mark.asyncio
async def test_expired_lock_then_correct_password(
    auth_service, verified_user, db_session, user_password
):
    verified_user.failed_attempt_count = 3
    verified_user.locked_out = True
    verified_user.locked_until = datetime.now(UTC) - timedelta(seconds=1)
    await db_session.commit()

    await auth_service.login("alice@example.com", user_password)

    assert verified_user.failed_attempt_count == 0
    assert verified_user.locked_out is False


@pytest.mark.asyncio
async def test_counter_changes_are_committed_before_rejection(
    auth_service, verified_user, session_factory
):
    with pytest.raises(AuthRejected):
        await auth_service.login("alice@example.com", "wrong")

    # Visible from a separate session, so a request-level rollback cannot undo it
    async with session_factory() as other:
        user = await UserRepository(other).find_by_email("alice@example.com")
        assert user.failed_attempt_count == 1
