"""Tests for user registration and login services."""

from __future__ import annotations

import asyncio

import pytest

from projects_api.adapters.repositories.base import DuplicateKeyError
from projects_api.adapters.repositories.in_memory import InMemoryUserRepository
from projects_api.core.errors import AuthenticationAppError, ConflictAppError
from projects_api.core.security import PasswordHasher, TokenCodec
from projects_api.models.enums import Role
from projects_api.schemas.auth import LoginRequest
from projects_api.schemas.user import UserRequest
from projects_api.services.auth_service import AuthService
from projects_api.services.user_service import UserService

SECRET = "service-test-secret-long-enough-for-hs256"


@pytest.fixture(scope="module")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def user_service(users, hasher) -> UserService:
    return UserService(users, hasher)


@pytest.fixture
def tokens() -> TokenCodec:
    return TokenCodec(secret=SECRET, ttl_seconds=60)


@pytest.fixture
def auth_service(users, hasher, tokens) -> AuthService:
    return AuthService(users, hasher, tokens)


def _request(username: str = "Rafael", email: str = "r@x", **extra) -> UserRequest:
    return UserRequest(username=username, email=email, password="Aa1@valid", **extra)


class TestUserService:
    @pytest.mark.asyncio
    async def test_create_defaults_role_and_hashes_password(self, user_service, users, hasher):
        response = await user_service.create(_request())

        assert response.id == 1
        assert response.username == "Rafael"
        assert response.role is Role.USER

        stored = await users.find_by_username("Rafael")
        assert stored.password_hash != "Aa1@valid"
        assert hasher.verify("Aa1@valid", stored.password_hash)
        assert stored.created_at is not None

    @pytest.mark.asyncio
    async def test_username_is_normalized(self, user_service):
        response = await user_service.create(_request(username="  a  b  "))

        assert response.username == "a b"

    @pytest.mark.asyncio
    async def test_explicit_admin_role(self, user_service):
        response = await user_service.create(_request(role=Role.ADMIN))

        assert response.role is Role.ADMIN

    @pytest.mark.asyncio
    async def test_duplicate_username_after_normalization_conflicts(self, user_service):
        await user_service.create(_request(username="john doe", email="a@x"))

        with pytest.raises(ConflictAppError) as exc_info:
            await user_service.create(_request(username=" john   doe ", email="b@x"))

        assert exc_info.value.message == "Username already exists, please, try other username"

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, user_service):
        await user_service.create(_request(username="first", email="same@x"))

        with pytest.raises(ConflictAppError) as exc_info:
            await user_service.create(_request(username="second", email="same@x"))

        assert exc_info.value.message == "Email already exists, please, try other email address"

    @pytest.mark.asyncio
    async def test_username_conflict_is_reported_before_email(self, user_service):
        await user_service.create(_request(username="first", email="same@x"))

        with pytest.raises(ConflictAppError) as exc_info:
            await user_service.create(_request(username="first", email="same@x"))

        assert exc_info.value.code == "username_taken"

    @pytest.mark.asyncio
    async def test_concurrent_registrations_store_one_user(self, user_service, users):
        results = await asyncio.gather(
            user_service.create(_request(username="rafael", email="a@x")),
            user_service.create(_request(username="rafael", email="b@x")),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictAppError)]
        assert len(conflicts) == 1
        assert conflicts[0].code == "username_taken"
        assert len([u for u in [await users.find_by_id(1), await users.find_by_id(2)] if u is not None]) == 1

    @pytest.mark.asyncio
    async def test_concurrent_registrations_with_same_email(self, user_service):
        results = await asyncio.gather(
            user_service.create(_request(username="one", email="same@x")),
            user_service.create(_request(username="two", email="same@x")),
            return_exceptions=True,
        )

        assert sorted(type(r).__name__ for r in results) == ["ConflictAppError", "UserResponse"]
        assert next(r for r in results if isinstance(r, ConflictAppError)).code == "email_taken"


class TestInMemoryUserRepository:
    @pytest.mark.asyncio
    async def test_save_rejects_duplicate_username_before_email(self, users, make_user):
        await users.save(make_user("rafael"))

        with pytest.raises(DuplicateKeyError) as exc_info:
            await users.save(make_user("rafael"))

        assert exc_info.value.field_name == "username"
        assert await users.exists_by_username("rafael")

    @pytest.mark.asyncio
    async def test_save_rejects_duplicate_email(self, users, make_user):
        first = make_user("rafael")
        await users.save(first)
        other = make_user("other")
        other.email = first.email

        with pytest.raises(DuplicateKeyError) as exc_info:
            await users.save(other)

        assert exc_info.value.field_name == "email"

    @pytest.mark.asyncio
    async def test_resaving_a_user_does_not_conflict_with_itself(self, users, make_user):
        saved = await users.save(make_user("rafael"))

        again = await users.save(saved)

        assert again.id == saved.id


class TestAuthService:
    @pytest.mark.asyncio
    async def test_authenticate_issues_token_for_username(self, user_service, auth_service, tokens):
        await user_service.create(_request())

        response = await auth_service.authenticate(LoginRequest(username="Rafael", password="Aa1@valid"))

        assert response.token
        assert tokens.verify(response.token) == "Rafael"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("username", "password"),
        [
            ("Rafael", "Aa1@wrong"),
            ("nobody", "Aa1@valid"),
            ("", "Aa1@valid"),
            ("Rafael", ""),
        ],
    )
    async def test_bad_credentials_fail_uniformly(self, user_service, auth_service, username, password):
        await user_service.create(_request())

        with pytest.raises(AuthenticationAppError) as exc_info:
            await auth_service.authenticate(LoginRequest(username=username, password=password))

        assert exc_info.value.title == "Authentication failed"
        assert exc_info.value.message == "Invalid username or password"

    @pytest.mark.asyncio
    async def test_resolve_user_loads_current_record(self, user_service, auth_service, tokens):
        await user_service.create(_request())

        user = await auth_service.resolve_user(tokens.sign("Rafael"))

        assert user.username == "Rafael"
        assert user.role is Role.USER

    @pytest.mark.asyncio
    async def test_resolve_user_rejects_unknown_subject(self, auth_service, tokens):
        with pytest.raises(AuthenticationAppError):
            await auth_service.resolve_user(tokens.sign("ghost"))

    @pytest.mark.asyncio
    async def test_resolve_user_rejects_garbage(self, auth_service):
        with pytest.raises(AuthenticationAppError) as exc_info:
            await auth_service.resolve_user("not-a-token")

        assert exc_info.value.message == "Invalid or expired token"
