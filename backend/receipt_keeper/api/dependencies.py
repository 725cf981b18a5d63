"""Common dependencies for FastAPI routes.

This module wires the request-scoped database session into the
repositories and services, hands the process-wide ``Settings`` to their
constructors and resolves the authenticated user from the bearer token.
Tests swap ``get_db_session`` and ``get_settings`` through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_keeper.core.config import Settings, settings
from receipt_keeper.core.database import get_db
from receipt_keeper.core.exceptions import InvalidTokenError, NotFoundError
from receipt_keeper.models.tables import User
from receipt_keeper.repositories.item_repository import SQLItemRepository
from receipt_keeper.repositories.receipt_repository import SQLReceiptRepository
from receipt_keeper.repositories.session_repository import SQLSessionRepository
from receipt_keeper.repositories.user_repository import SQLUserRepository
from receipt_keeper.services.auth_service import AuthService
from receipt_keeper.services.receipt_service import ReceiptService
from receipt_keeper.services.storage_service import StorageService

# auto_error=False so a missing header reaches get_current_user and becomes a 401
bearer_scheme = HTTPBearer(auto_error=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Alias for `get_db` to be imported in routers."""
    async for session in get_db():
        yield session


def get_settings() -> Settings:
    return settings


def get_auth_service(
    db: AsyncSession = Depends(get_db_session),
    cfg: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(
        SQLUserRepository(db),
        SQLSessionRepository(db),
        jwt_secret=cfg.JWT_SECRET,
        jwt_expire_hours=cfg.JWT_EXPIRE_HOURS,
        jwt_algorithm=cfg.JWT_ALGORITHM,
        bcrypt_rounds=cfg.BCRYPT_ROUNDS,
    )


def get_receipt_service(
    db: AsyncSession = Depends(get_db_session),
    cfg: Settings = Depends(get_settings),
) -> ReceiptService:
    return ReceiptService(
        SQLReceiptRepository(db),
        SQLItemRepository(db),
        delete_mode=cfg.RECEIPT_DELETE_MODE,
    )


def get_storage_service(cfg: Settings = Depends(get_settings)) -> StorageService:
    return StorageService(cfg)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the user behind the ``Authorization: Bearer`` header.

    Missing or malformed headers, bad or expired tokens and tokens
    without a live session all raise ``InvalidTokenError`` (HTTP 401).
    """
    if credentials is None or not credentials.credentials:
        raise InvalidTokenError("missing or malformed authorization header")
    claims = await auth.authenticate_token(credentials.credentials)
    try:
        return await auth.get_user_by_id(claims.user_id)
    except NotFoundError as exc:
        raise InvalidTokenError("user no longer exists") from exc
