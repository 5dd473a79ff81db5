"""Seed script — populates the database with verified demo accounts."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from otp_auth.config import settings
from otp_auth.core.passwords import PasswordHasher
from otp_auth.database.engine import async_session_factory, init_db
from otp_auth.database.repository import UserRepository
from otp_auth.models.user import User

DEMO_PASSWORD = "password123"

SAMPLE_USERS = [
    {
        "first_name": "Alice",
        "last_name": "Johnson",
        "email": "alice@example.com",
        "mobile_number": "+15551234567",
    },
    {
        "first_name": "Bob",
        "last_name": "Smith",
        "email": "bob@example.com",
        "mobile_number": "+15559876543",
    },
]


async def seed() -> None:
    """Insert demo users (skipping any that already exist)."""
    await init_db()
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    created = 0
    async with async_session_factory() as session:
        session: AsyncSession
        repo = UserRepository(session)
        for fields in SAMPLE_USERS:
            if await repo.find_by_email(fields["email"]) is not None:
                continue
            await repo.add(
                User(
                    **fields,
                    password_hash=hasher.hash(DEMO_PASSWORD),
                    email_verified=True,
                )
            )
            created += 1
        await session.commit()
    print(f"✅ Seeded {created} users (password: {DEMO_PASSWORD!r}).")


if __name__ == "__main__":
    asyncio.run(seed())
