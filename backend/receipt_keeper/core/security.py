"""Credential hashing and access-token utilities.

Passwords are hashed with bcrypt using a configurable work factor
(``BCRYPT_ROUNDS``).  Access tokens are HS256 JWTs signed with the
server-held ``JWT_SECRET`` and carry the user's id and email plus an
expiry ``JWT_EXPIRE_HOURS`` after issue.  A random ``jti`` makes every
issued token distinct so that its SHA-256 digest can identify the
server-side session row.

These helpers are pure functions; the FastAPI dependency that resolves
the current user lives in ``receipt_keeper.api.dependencies``.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import uuid
from dataclasses import dataclass
from typing import Any, Dict

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from receipt_keeper.core.exceptions import InvalidTokenError, ValidationFailedError

DEFAULT_ALGORITHM = "HS256"
# bcrypt only considers the first 72 bytes of input
BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    expires_at: dt.datetime
    token_id: str


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of ``plain``."""
    encoded = plain.encode("utf-8")
    if len(encoded) > BCRYPT_MAX_BYTES:
        raise ValidationFailedError(f"password must be at most {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Check ``plain`` against a stored bcrypt hash.

    Returns False for malformed hashes or oversize input instead of raising,
    so callers can treat every failure the same way.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store tokens without keeping them verbatim."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(
    user_id: int,
    email: str,
    secret: str,
    expire_hours: int,
    algorithm: str = DEFAULT_ALGORITHM,
    now: dt.datetime | None = None,
) -> tuple[str, dt.datetime]:
    """Issue a signed token for ``user_id``.

    Returns ``(token, expires_at)``.
    """
    issued_at = now or dt.datetime.now(dt.timezone.utc)
    expires_at = issued_at + dt.timedelta(hours=expire_hours)
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "user_id": user_id,
        "email": email,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": uuid.uuid4().hex,
    }
    token = jwt.encode(claims, secret, algorithm=algorithm)
    return token, expires_at


def decode_access_token(token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenClaims:
    """Verify signature and expiry of ``token`` and return its claims.

    Raises:
        InvalidTokenError: if the token is malformed, tampered with or expired.
    """
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError as exc:
        raise InvalidTokenError("token has expired") from exc
    except JWTError as exc:
        raise InvalidTokenError("invalid token") from exc

    user_id = payload.get("user_id")
    email = payload.get("email")
    exp = payload.get("exp")
    if not isinstance(user_id, int) or not email or exp is None:
        raise InvalidTokenError("invalid token claims")
    return TokenClaims(
        user_id=user_id,
        email=email,
        expires_at=dt.datetime.fromtimestamp(int(exp), tz=dt.timezone.utc),
        token_id=str(payload.get("jti") or ""),
    )


__all__ = [
    "TokenClaims",
    "hash_password",
    "verify_password",
    "hash_token",
    "create_access_token",
    "decode_access_token",
]
