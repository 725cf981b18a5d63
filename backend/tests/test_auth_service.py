from __future__ import annotations

import datetime as dt

import pytest

from receipt_keeper.core.exceptions import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from receipt_keeper.core.security import decode_access_token, hash_token, verify_password
from receipt_keeper.models.schemas import LoginRequest, UserCreate, UserUpdate
from receipt_keeper.services import auth_service as auth_module
from receipt_keeper.services.auth_service import AuthService

from fakes import InMemorySessionRepository, InMemoryUserRepository

SECRET = "unit-test-secret"


@pytest.fixture
def users() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def sessions() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def auth(users, sessions) -> AuthService:
    return AuthService(users, sessions, jwt_secret=SECRET, jwt_expire_hours=24, bcrypt_rounds=4)


async def _register(auth: AuthService, email="a@x.com", password="password1", full_name="Alice"):
    return await auth.register(UserCreate(email=email, password=password, full_name=full_name))


@pytest.mark.asyncio
async def test_register_hashes_password_and_assigns_uuid(auth):
    user = await _register(auth)
    assert user.uuid is not None
    assert user.password_hash != "password1"
    assert verify_password("password1", user.password_hash)


@pytest.mark.asyncio
async def test_register_same_email_twice_is_already_exists(auth):
    await _register(auth)
    with pytest.raises(AlreadyExistsError):
        await _register(auth, full_name="Impostor")


class RacingUserRepository(InMemoryUserRepository):
    """Pre-check misses, insert hits the unique constraint."""

    async def find_by_email(self, email):
        raise NotFoundError("user not found")


@pytest.mark.asyncio
async def test_register_reports_store_duplicate_as_already_exists(sessions):
    users = RacingUserRepository()
    auth = AuthService(users, sessions, jwt_secret=SECRET, bcrypt_rounds=4)
    await _register(auth)
    with pytest.raises(AlreadyExistsError):
        await _register(auth)


@pytest.mark.asyncio
async def test_login_issues_token_and_records_session(auth, sessions):
    registered = await _register(auth)
    token, user = await auth.login(LoginRequest(email="a@x.com", password="password1"))

    assert user.id == registered.id
    claims = decode_access_token(token, SECRET)
    assert claims.user_id == registered.id
    assert claims.email == "a@x.com"
    session = sessions.rows[hash_token(token)]
    assert session.user_id == registered.id
    assert session.expires_at.replace(microsecond=0) == claims.expires_at


@pytest.mark.asyncio
async def test_login_failures_are_indistinguishable(auth):
    await _register(auth)
    with pytest.raises(InvalidCredentialsError) as unknown:
        await auth.login(LoginRequest(email="nobody@x.com", password="password1"))
    with pytest.raises(InvalidCredentialsError) as wrong:
        await auth.login(LoginRequest(email="a@x.com", password="wrong-password"))
    assert type(unknown.value) is type(wrong.value)
    assert unknown.value.message == wrong.value.message == "invalid email or password"


@pytest.mark.asyncio
async def test_unknown_email_still_checks_a_password_hash(auth, monkeypatch):
    checked = []

    def recording_verify(plain, hashed):
        checked.append(hashed)
        return verify_password(plain, hashed)

    monkeypatch.setattr(auth_module, "verify_password", recording_verify)
    with pytest.raises(InvalidCredentialsError):
        await auth.login(LoginRequest(email="nobody@x.com", password="password1"))
    assert len(checked) == 1
    assert checked[0].startswith("$2")


@pytest.mark.asyncio
async def test_get_user_by_id(auth):
    user = await _register(auth)
    assert (await auth.get_user_by_id(user.id)).email == "a@x.com"
    with pytest.raises(NotFoundError, match="user not found"):
        await auth.get_user_by_id(999)


@pytest.mark.asyncio
async def test_update_profile(auth):
    user = await _register(auth)
    await _register(auth, email="b@x.com", full_name="Bob")

    updated = await auth.update_profile(user.id, UserUpdate(full_name="Alice L."))
    assert updated.full_name == "Alice L."
    assert updated.email == "a@x.com"

    with pytest.raises(AlreadyExistsError):
        await auth.update_profile(user.id, UserUpdate(email="b@x.com"))


@pytest.mark.asyncio
async def test_authenticate_token_requires_live_session(auth, sessions):
    await _register(auth)
    token, user = await auth.login(LoginRequest(email="a@x.com", password="password1"))

    claims = await auth.authenticate_token(token)
    assert claims.user_id == user.id

    # Signature is still valid but the session has lapsed
    later = dt.datetime.now(dt.timezone.utc) + dt.timedelta(hours=25)
    with pytest.raises(InvalidTokenError):
        await auth.authenticate_token(token, now=later)

    sessions.rows.clear()
    with pytest.raises(InvalidTokenError):
        await auth.authenticate_token(token)


@pytest.mark.asyncio
async def test_authenticate_token_rejects_foreign_signature(auth):
    other = AuthService(InMemoryUserRepository(), InMemorySessionRepository(), jwt_secret="other", bcrypt_rounds=4)
    await _register(other)
    token, _ = await other.login(LoginRequest(email="a@x.com", password="password1"))
    with pytest.raises(InvalidTokenError):
        await auth.authenticate_token(token)
