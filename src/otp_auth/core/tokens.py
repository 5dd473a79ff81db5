"""Session issuer — stateless, signed, time-bound bearer tokens (JWT)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

from otp_auth.errors import Unauthorized

INVALID_TOKEN_MESSAGE = "Token is not valid"


class SessionIssuer:
    """Mints and checks HS256 session tokens.

    Any holder of the signing secret can verify a token without a database
    lookup.  There is no revocation: a token stays valid until it expires.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = ttl

    def issue(self, user_id: str, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(UTC)
        payload = {
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """Return the user identifier a valid token asserts.

        Expired, malformed and badly signed tokens all raise the same
        ``Unauthorized`` so callers cannot tell them apart.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError:
            raise Unauthorized(INVALID_TOKEN_MESSAGE) from None
        return payload["sub"]
