"""Shared plumbing for the SQLAlchemy repositories.

Every repository owns an ``AsyncSession`` for the duration of a request,
commits its own writes and converts driver errors into the domain
exceptions from ``receipt_keeper.core.exceptions``.  Repositories never
perform authorization checks.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from receipt_keeper.core.exceptions import DuplicateKeyError, StoreError

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation on PostgreSQL
UNIQUE_VIOLATION = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION:
        return True
    return "unique" in str(orig).lower()


class SQLRepository:
    """Base class holding the session and the error translation helpers."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def _write(self, operation: str, duplicate_message: str | None = None) -> AsyncIterator[None]:
        """Run a write block, rolling back and translating store errors.

        ``duplicate_message`` turns unique-constraint violations into
        ``DuplicateKeyError``; without it they surface as ``StoreError``.
        """
        try:
            yield
        except IntegrityError as exc:
            await self.db.rollback()
            if duplicate_message and is_unique_violation(exc):
                raise DuplicateKeyError(duplicate_message) from exc
            logger.warning("Integrity error during %s: %s", operation, exc.orig)
            raise StoreError(f"failed to {operation}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Store error during %s: %s", operation, exc)
            raise StoreError(f"failed to {operation}: {exc}") from exc

    @asynccontextmanager
    async def _read(self, operation: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Store error during %s: %s", operation, exc)
            raise StoreError(f"failed to {operation}: {exc}") from exc
