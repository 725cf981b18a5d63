"""Persistence for login sessions.

A session row is written for every issued access token and holds the
SHA-256 digest of the token, never the token itself.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Protocol

from sqlalchemy import delete, select

from receipt_keeper.core.exceptions import NotFoundError
from receipt_keeper.models.tables import UserSession, utcnow
from .base import SQLRepository

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    async def create(self, session: UserSession) -> UserSession: ...

    async def find_by_token_hash(self, token_hash: str) -> UserSession: ...

    async def delete_expired(self, now: dt.datetime | None = None) -> int: ...


class SQLSessionRepository(SQLRepository):
    """``SessionRepository`` backed by an ``AsyncSession``."""

    async def create(self, session: UserSession) -> UserSession:
        async with self._write("create session", duplicate_message="session already exists"):
            self.db.add(session)
            await self.db.commit()
        await self.db.refresh(session)
        return session

    async def find_by_token_hash(self, token_hash: str) -> UserSession:
        stmt = select(UserSession).where(UserSession.token_hash == token_hash)
        async with self._read("find session"):
            result = await self.db.execute(stmt)
            session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError("session not found")
        return session

    async def delete_expired(self, now: dt.datetime | None = None) -> int:
        """Purge sessions that expired before ``now``; returns the number removed."""
        cutoff = now or utcnow()
        stmt = delete(UserSession).where(UserSession.expires_at < cutoff).execution_options(synchronize_session=False)
        async with self._write("delete expired sessions"):
            result = await self.db.execute(stmt)
            await self.db.commit()
        removed = result.rowcount or 0
        if removed:
            logger.info("Purged %d expired sessions", removed)
        return removed
