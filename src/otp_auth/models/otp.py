"""SQLAlchemy OTP model."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from otp_auth.models.user import Base


class OTPRecord(Base):
    """A one-time signup code sent to an email address.

    Only one unused record per email is kept: issuing a new code deletes
    the previous ones in the same transaction.
    """

    __tablename__ = "otps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(256), nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        Index("ix_otps_email", "email"),
        Index("ix_otps_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<OTPRecord id={self.id} email={self.email!r} used={self.used}>"
