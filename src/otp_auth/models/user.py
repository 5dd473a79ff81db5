"""SQLAlchemy User model."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def generate_user_id() -> str:
    """Opaque, stable identifier exposed to clients and embedded in sessions."""
    return f"USER_{uuid.uuid4().hex}"


class User(Base):
    """A credential record: identity, password hash and lockout counters.

    ``locked_out`` may still be stored ``True`` after ``locked_until`` has
    passed; the lock is cleared lazily on the next login attempt.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, default=generate_user_id
    )
    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(256), nullable=False, unique=True)
    mobile_number: Mapped[str] = mapped_column(String(15), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    failed_attempt_count: Mapped[int] = mapped_column(Integer, default=0)
    last_failed_attempt_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    locked_out: Mapped[bool] = mapped_column(Boolean, default=False)
    locked_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (Index("ix_users_failed_attempt_count", "failed_attempt_count"),)

    def __repr__(self) -> str:
        return f"<User id={self.id} user_id={self.user_id!r} email={self.email!r}>"
