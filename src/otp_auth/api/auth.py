"""Auth router — OTP signup and password login.

Endpoints
---------
POST /auth/send-otp     → mail a signup code
POST /auth/verify-otp   → verify the code, create the account, issue a session
POST /auth/login        → password login with lockout, issue a session
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from otp_auth.api.dependencies import get_auth_service
from otp_auth.api.schemas import (
    LoginRequest,
    SendOTPRequest,
    SendOTPResponse,
    TokenResponse,
    UserOut,
    VerifyOTPRequest,
)
from otp_auth.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", response_model=SendOTPResponse)
async def send_otp(
    body: SendOTPRequest, auth: AuthService = Depends(get_auth_service)
) -> SendOTPResponse:
    """Issue a signup code for an email no verified account owns yet."""
    await auth.send_otp(body.email, body.first_name)
    return SendOTPResponse(message="OTP sent successfully", email=body.email)


@router.post("/verify-otp", response_model=TokenResponse, response_model_exclude_none=True)
async def verify_otp(
    body: VerifyOTPRequest, auth: AuthService = Depends(get_auth_service)
) -> TokenResponse:
    """Complete signup with the mailed code."""
    user, token = await auth.register(
        email=body.email,
        otp=body.otp,
        first_name=body.first_name,
        last_name=body.last_name,
        mobile_number=body.mobile_number,
        password=body.password,
    )
    return TokenResponse(
        message="User registered successfully", token=token, user=UserOut.from_user(user)
    )


@router.post("/login", response_model=TokenResponse, response_model_exclude_none=True)
async def login(
    body: LoginRequest, auth: AuthService = Depends(get_auth_service)
) -> TokenResponse:
    """Password login; repeated failures lock the account temporarily."""
    user, token = await auth.login(body.email, body.password)
    return TokenResponse(
        message="Login successful", token=token, user=UserOut.from_user(user)
    )
