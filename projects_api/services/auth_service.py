"""Login and bearer token resolution.

Login verifies a username/password pair and issues a signed token whose
subject is the username. Every protected request resolves the token's
subject back to a fresh user record.
"""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from projects_api.adapters.repositories.base import UserRepository
from projects_api.core.errors import AuthenticationAppError
from projects_api.core.security import InvalidTokenError, PasswordHasher, TokenCodec
from projects_api.models.entities import User
from projects_api.schemas.auth import LoginRequest, TokenResponse

logger = logging.getLogger(__name__)


def _bad_credentials() -> AuthenticationAppError:
    return AuthenticationAppError(
        code="bad_credentials",
        message="Invalid username or password",
        title="Authentication failed",
    )


class AuthService:
    """Authenticates credentials and bearer tokens."""

    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenCodec) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens

    async def authenticate(self, login: LoginRequest) -> TokenResponse:
        """Verify credentials and issue a bearer token.

        Unknown users, wrong passwords and empty fields all fail the same way.

        Raises:
            AuthenticationAppError: If the credentials are not valid.
        """
        if not login.username or not login.password:
            logger.warning("auth.failed", extra={"reason": "empty_credentials"})
            raise _bad_credentials()

        user = await self._users.find_by_username(login.username)
        if user is None:
            await run_in_threadpool(self._hasher.verify_dummy, login.password)
            logger.warning("auth.failed", extra={"reason": "unknown_user"})
            raise _bad_credentials()

        if not await run_in_threadpool(self._hasher.verify, login.password, user.password_hash):
            logger.warning("auth.failed", extra={"reason": "password_mismatch", "user_id": user.id})
            raise _bad_credentials()

        token = self._tokens.sign(user.username)
        logger.info("auth.success", extra={"user_id": user.id})
        return TokenResponse(token=token)

    async def resolve_user(self, token: str) -> User:
        """Return the user a bearer token was issued to.

        Raises:
            AuthenticationAppError: If the token is invalid, expired or its
                subject no longer exists.
        """
        try:
            subject = self._tokens.verify(token)
        except InvalidTokenError as exc:
            logger.warning("auth.invalid_token", extra={"reason": str(exc)})
            raise AuthenticationAppError(
                code="invalid_token",
                message="Invalid or expired token",
                title="Unauthorized",
            ) from exc

        user = await self._users.find_by_username(subject)
        if user is None:
            logger.warning("auth.invalid_token", extra={"reason": "unknown_subject"})
            raise AuthenticationAppError(
                code="unknown_subject",
                message="Invalid or expired token",
                title="Unauthorized",
            )
        return user
