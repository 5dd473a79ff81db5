"""Email service — sends OTP emails via async SMTP."""

from __future__ import annotations

import logging
from email.message import EmailMessage

import aiosmtplib

from otp_auth.errors import DependencyFailure

logger = logging.getLogger(__name__)

OTP_EMAIL_HTML = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background-color: #f8f9fa; padding: 20px; text-align: center;">
    <h1 style="color: #333; margin: 0;">Email Verification</h1>
  </div>
  <div style="padding: 20px; background-color: #ffffff;">
    <p>Hello {first_name},</p>
    <p>Please use the following code to verify your email address:</p>
    <div style="background-color: #f8f9fa; padding: 20px; text-align: center; margin: 20px 0;">
      <h2 style="color: #007bff; margin: 0; font-size: 32px; letter-spacing: 5px;">{code}</h2>
    </div>
    <ul>
      <li>This code is valid for {ttl_minutes} minutes only</li>
      <li>Do not share this code with anyone</li>
      <li>If you didn't request this verification, please ignore this email</li>
    </ul>
    <p>Best regards,<br>The {app_name} Team</p>
  </div>
</div>
"""


class EmailService:
    """Sends transactional emails using the configured SMTP server.

    Without an SMTP password the service runs in development mode: the code
    is written to the log instead of being mailed.
    """

    def __init__(
        self,
        hostname: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        app_name: str = "OTP Auth Service",
    ) -> None:
        self._hostname = hostname
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._app_name = app_name

    @property
    def development_mode(self) -> bool:
        return not self._password

    async def send_otp(
        self, to_email: str, code: str, first_name: str, ttl_minutes: int = 10
    ) -> None:
        """Send a signup verification code.

        Parameters
        ----------
        to_email:
            Recipient email address.
        code:
            The 6-digit one-time code.
        first_name:
            Used in the greeting.
        ttl_minutes:
            Validity window quoted in the email body.

        Raises ``DependencyFailure`` if the SMTP server rejects the message.
        """
        if self.development_mode:
            logger.warning(
                "SMTP not configured — OTP for %s (%s): %s", to_email, first_name, code
            )
            return

        msg = EmailMessage()
        msg["Subject"] = "Email Verification OTP"
        msg["From"] = f'"{self._app_name}" <{self._sender}>'
        msg["To"] = to_email
        msg.set_content(
            f"Hello {first_name},\n\n"
            f"Your verification code is {code}. "
            f"It is valid for {ttl_minutes} minutes.\n\n"
            f"The {self._app_name} Team"
        )
        msg.add_alternative(
            OTP_EMAIL_HTML.format(
                first_name=first_name,
                code=code,
                ttl_minutes=ttl_minutes,
                app_name=self._app_name,
            ),
            subtype="html",
        )

        logger.info("Sending OTP email to %s", to_email)
        try:
            await aiosmtplib.send(
                msg,
                hostname=self._hostname,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Failed to send OTP email to %s: %s", to_email, exc)
            raise DependencyFailure("Failed to send OTP") from exc

        logger.info("OTP email sent to %s", to_email)
