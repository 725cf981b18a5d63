"""Registration, login and token authentication.

``AuthService`` owns the credential rules of the API:

* registration hashes the password with bcrypt and relies on the store's
  unique email constraint as the final word on duplicates;
* login answers every failure with the same ``InvalidCredentialsError``
  so callers cannot probe which emails are registered;
* every issued token is recorded as a session row keyed by its SHA-256
  digest, and ``authenticate_token`` rejects tokens whose row is gone or
  expired even if the signature is still valid.

Plaintext passwords and tokens are never logged.
"""

from __future__ import annotations

import datetime as dt
import logging
from functools import lru_cache
from typing import Optional, Tuple

from receipt_keeper.core.exceptions import (
    AlreadyExistsError,
    DuplicateKeyError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from receipt_keeper.core.security import (
    DEFAULT_ALGORITHM,
    TokenClaims,
    create_access_token,
    decode_access_token,
    hash_password,
    hash_token,
    verify_password,
)
from receipt_keeper.models.schemas import LoginRequest, UserCreate, UserUpdate
from receipt_keeper.models.tables import User, UserSession
from receipt_keeper.repositories.session_repository import SessionRepository
from receipt_keeper.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid email or password"


@lru_cache(maxsize=None)
def _placeholder_hash(rounds: int) -> str:
    """Hash checked for unknown emails so both login failures cost one bcrypt round."""
    return hash_password("placeholder-password", rounds=rounds)


class AuthService:
    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        jwt_secret: str,
        jwt_expire_hours: int = 24,
        jwt_algorithm: str = DEFAULT_ALGORITHM,
        bcrypt_rounds: int = 10,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.jwt_secret = jwt_secret
        self.jwt_expire_hours = jwt_expire_hours
        self.jwt_algorithm = jwt_algorithm
        self.bcrypt_rounds = bcrypt_rounds

    async def register(self, request: UserCreate) -> User:
        """Create a new account.

        Raises:
            AlreadyExistsError: if the email is taken.
        """
        email = str(request.email)
        try:
            await self.users.find_by_email(email)
        except NotFoundError:
            pass
        else:
            raise AlreadyExistsError("user with this email already exists")

        user = User(
            email=email,
            password_hash=hash_password(request.password, rounds=self.bcrypt_rounds),
            full_name=request.full_name,
        )
        try:
            user = await self.users.create(user)
        except DuplicateKeyError as exc:
            # Lost a race with a concurrent registration
            raise AlreadyExistsError("user with this email already exists") from exc
        logger.info("Registered user %s", user.id)
        return user

    async def login(self, request: LoginRequest) -> Tuple[str, User]:
        """Check credentials and issue a token; returns ``(token, user)``."""
        try:
            user = await self.users.find_by_email(str(request.email))
        except NotFoundError as exc:
            verify_password(request.password, _placeholder_hash(self.bcrypt_rounds))
            raise InvalidCredentialsError(INVALID_CREDENTIALS) from exc
        if not verify_password(request.password, user.password_hash):
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        token, expires_at = create_access_token(
            user.id,
            user.email,
            self.jwt_secret,
            self.jwt_expire_hours,
            algorithm=self.jwt_algorithm,
        )
        await self.sessions.create(
            UserSession(user_id=user.id, token_hash=hash_token(token), expires_at=expires_at)
        )
        logger.info("User %s logged in", user.id)
        return token, user

    async def get_user_by_id(self, user_id: int) -> User:
        try:
            return await self.users.find_by_id(user_id)
        except NotFoundError as exc:
            raise NotFoundError("user not found") from exc

    async def update_profile(self, user_id: int, request: UserUpdate) -> User:
        """Change the email and/or full name of ``user_id``.

        A new email that belongs to someone else raises ``AlreadyExistsError``.
        """
        user = await self.get_user_by_id(user_id)
        if request.email is not None and str(request.email) != user.email:
            user.email = str(request.email)
        if request.full_name is not None:
            user.full_name = request.full_name
        try:
            user = await self.users.update(user)
        except DuplicateKeyError as exc:
            raise AlreadyExistsError("user with this email already exists") from exc
        logger.info("Updated profile of user %s", user_id)
        return user

    async def authenticate_token(self, token: str, now: Optional[dt.datetime] = None) -> TokenClaims:
        """Validate ``token`` and its session row.

        Raises:
            InvalidTokenError: bad signature, expired token, or no live session.
        """
        claims = decode_access_token(token, self.jwt_secret, self.jwt_algorithm)
        try:
            session = await self.sessions.find_by_token_hash(hash_token(token))
        except NotFoundError as exc:
            raise InvalidTokenError("session not found") from exc
        if session.user_id != claims.user_id or session.is_expired(now):
            raise InvalidTokenError("session expired")
        return claims
