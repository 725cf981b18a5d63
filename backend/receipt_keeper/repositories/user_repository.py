"""Persistence for user accounts."""

from __future__ import annotations

import logging
import uuid
from typing import Protocol

from sqlalchemy import select, update

from receipt_keeper.core.exceptions import NotFoundError, ValidationFailedError
from receipt_keeper.models.tables import User, unix_now, utcnow
from .base import SQLRepository

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    async def create(self, user: User) -> User: ...

    async def find_by_email(self, email: str) -> User: ...

    async def find_by_id(self, user_id: int) -> User: ...

    async def find_by_uuid(self, user_uuid: str) -> User: ...

    async def update(self, user: User) -> User: ...


class SQLUserRepository(SQLRepository):
    """``UserRepository`` backed by an ``AsyncSession``."""

    async def create(self, user: User) -> User:
        """Insert ``user``; id, UUID and timestamps are generated on insert.

        Raises:
            DuplicateKeyError: if the email is already registered.
            StoreError: for any other store failure.
        """
        async with self._write("create user", duplicate_message="email already registered"):
            self.db.add(user)
            await self.db.commit()
        await self.db.refresh(user)
        return user

    async def find_by_email(self, email: str) -> User:
        async with self._read("find user by email"):
            result = await self.db.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def find_by_id(self, user_id: int) -> User:
        async with self._read("find user by id"):
            result = await self.db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def find_by_uuid(self, user_uuid: str) -> User:
        try:
            parsed = uuid.UUID(str(user_uuid))
        except ValueError as exc:
            raise ValidationFailedError(f"invalid user uuid: {user_uuid!r}") from exc
        async with self._read("find user by uuid"):
            result = await self.db.execute(select(User).where(User.uuid == parsed))
            user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("user not found")
        return user

    async def update(self, user: User) -> User:
        """Write ``email`` and ``full_name`` back and refresh the update timestamps.

        Other columns are never touched.
        """
        now = utcnow()
        now_unix = unix_now()
        user.updated_at = now
        user.updated_at_unix = now_unix
        stmt = (
            update(User)
            .where(User.id == user.id)
            .values(
                email=user.email,
                full_name=user.full_name,
                updated_at=now,
                updated_at_unix=now_unix,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._write("update user", duplicate_message="email already registered"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("user not found")
            await self.db.commit()
        return user
