"""Password hashing with bcrypt."""

import base64
import hashlib

import bcrypt


class PasswordHasher:
    """bcrypt over a SHA-256 pre-hash.

    The pre-hash is base64-encoded so bcrypt always sees 44 printable bytes,
    well inside its 72-byte input limit.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    @staticmethod
    def _prehash(password: str) -> bytes:
        return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._prehash(password), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(self._prehash(password), password_hash.encode("utf-8"))
        except ValueError:
            # Stored value is not a bcrypt hash
            return False
