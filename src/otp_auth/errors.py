"""Service errors — business-rule rejections mapped to HTTP responses.

Every error carries a user-facing ``message`` and the ``status_code`` the
HTTP layer should answer with.  Anything that is *not* a ``ServiceError``
is treated as an unexpected failure by the top-level handler in ``main``.
"""

from __future__ import annotations


class ServiceError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    """Malformed or missing input, rejected before any state is touched."""


class ConflictError(ServiceError):
    """The email is already owned by a verified account."""


class NotFoundError(ServiceError):
    status_code = 404


class AuthRejected(ServiceError):
    """Wrong password, bad OTP, unverified email or locked account."""


class LockoutTriggered(AuthRejected):
    """The attempt that pushed the account over the failure threshold."""

    status_code = 403


class DependencyFailure(ServiceError):
    """Mail delivery (or another collaborator) failed."""

    status_code = 502


class Unauthorized(ServiceError):
    """Missing, malformed or expired session on a protected operation."""

    status_code = 401
