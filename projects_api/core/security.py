"""Identity primitives: password hashing and bearer token signing.

Both are small wrappers so services never touch bcrypt or PyJWT directly and
tests can swap in cheaper parameters (e.g., a low bcrypt cost).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import bcrypt
import jwt

# bcrypt only considers the first 72 bytes of a password.
_BCRYPT_MAX_BYTES = 72


def _encode_password(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Cost-parameterised one-way password hash (bcrypt)."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds
        # Verified against when a username is unknown, so response time does
        # not reveal whether the account exists.
        self._dummy_hash = self.hash("dummy-password-for-timing")

    def hash(self, plain: str) -> str:
        return bcrypt.hashpw(_encode_password(plain), bcrypt.gensalt(rounds=self._rounds)).decode()

    def verify(self, plain: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(_encode_password(plain), hashed.encode())
        except ValueError:
            # Stored value is not a bcrypt hash.
            return False

    def verify_dummy(self, plain: str) -> None:
        self.verify(plain, self._dummy_hash)


class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, tampered with or expired."""


class TokenCodec:
    """Issues and verifies signed bearer tokens bound to a subject."""

    def __init__(
        self,
        *,
        secret: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        issuer: str = "projects-api",
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._secret = secret
        self._ttl = timedelta(seconds=ttl_seconds)
        self._algorithm = algorithm
        self._issuer = issuer
        self._clock = clock

    def sign(self, subject: str) -> str:
        now = self._clock()
        payload = {
            "sub": subject,
            "iss": self._issuer,
            "iat": now,
            "exp": now + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """Return the token's subject.

        Raises:
            InvalidTokenError: If the signature, issuer or expiry check fails.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(str(exc)) from exc

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Token has no subject")
        return subject
