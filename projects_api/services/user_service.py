"""User registration."""

from __future__ import annotations

import logging

from starlette.concurrency import run_in_threadpool

from projects_api.adapters.repositories.base import DuplicateKeyError, UserRepository
from projects_api.core.errors import ConflictAppError
from projects_api.core.security import PasswordHasher
from projects_api.models.entities import User
from projects_api.models.enums import Role
from projects_api.schemas.user import UserRequest, UserResponse
from projects_api.utils.text_normalizer import collapse_whitespace

logger = logging.getLogger(__name__)

USERNAME_ALREADY_EXISTS_MESSAGE = "Username already exists, please, try other username"
EMAIL_ALREADY_EXISTS_MESSAGE = "Email already exists, please, try other email address"


def _conflict_for(field_name: str) -> ConflictAppError:
    if field_name == "username":
        return ConflictAppError(code="username_taken", message=USERNAME_ALREADY_EXISTS_MESSAGE)
    return ConflictAppError(code="email_taken", message=EMAIL_ALREADY_EXISTS_MESSAGE)


class UserService:
    """Creates accounts with normalized usernames and hashed passwords."""

    def __init__(self, users: UserRepository, hasher: PasswordHasher) -> None:
        self._users = users
        self._hasher = hasher

    async def create(self, request: UserRequest) -> UserResponse:
        """Register a new user.

        The username is trimmed and internal whitespace collapsed before the
        uniqueness checks. Username is checked before email; the first
        conflict wins. The repository enforces the same rule on save, so
        concurrent registrations of one name store a single user.

        Raises:
            ConflictAppError: If the username or email is already taken.
        """
        username = collapse_whitespace(request.username)

        if await self._users.exists_by_username(username):
            raise _conflict_for("username")
        if await self._users.exists_by_email(request.email):
            raise _conflict_for("email")

        password_hash = await run_in_threadpool(self._hasher.hash, request.password)

        user = User(
            username=username,
            email=request.email,
            password_hash=password_hash,
            role=request.role or Role.USER,
        )
        user.touch(actor=None)
        try:
            saved = await self._users.save(user)
        except DuplicateKeyError as exc:
            raise _conflict_for(exc.field_name) from exc

        logger.info("user.created", extra={"user_id": saved.id, "role": saved.role.value})
        return UserResponse.from_entity(saved)
