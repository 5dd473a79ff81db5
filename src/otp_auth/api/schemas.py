"""Request / response models for the HTTP surface (camelCase on the wire)."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, StringConstraints, field_validator
from pydantic.alias_generators import to_camel

from otp_auth.models.user import User

Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=50)]
MobileNumber = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=10, max_length=15)
]
NewPassword = Annotated[str, StringConstraints(min_length=6)]
OTPCode = Annotated[str, StringConstraints(pattern=r"^\d{6}$")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EmailMixin(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


# ── Requests ─────────────────────────────────────────────

class SendOTPRequest(EmailMixin):
    first_name: Name


class VerifyOTPRequest(EmailMixin):
    otp: OTPCode
    first_name: Name
    last_name: Name
    mobile_number: MobileNumber
    password: NewPassword


class LoginRequest(EmailMixin):
    password: Annotated[str, StringConstraints(min_length=1)]


class UpdatePasswordRequest(CamelModel):
    current_password: Annotated[str, StringConstraints(min_length=1)]
    new_password: NewPassword


class UpdateProfileRequest(CamelModel):
    first_name: Name | None = None
    last_name: Name | None = None
    mobile_number: MobileNumber | None = None


# ── Responses ────────────────────────────────────────────

class UserOut(CamelModel):
    user_id: str
    first_name: str
    last_name: str
    email: str
    mobile_number: str
    is_email_verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(
        cls, user: User, *, created: bool = False, updated: bool = False
    ) -> UserOut:
        return cls(
            user_id=user.user_id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            mobile_number=user.mobile_number,
            is_email_verified=user.email_verified,
            created_at=user.created_at if created else None,
            updated_at=user.updated_at if updated else None,
        )


class MessageResponse(CamelModel):
    message: str


class SendOTPResponse(MessageResponse):
    email: str


class TokenResponse(MessageResponse):
    token: str
    user: UserOut


class ProfileResponse(CamelModel):
    user: UserOut


class UpdateProfileResponse(MessageResponse):
    user: UserOut
