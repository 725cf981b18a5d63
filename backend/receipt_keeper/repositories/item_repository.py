"""Persistence for receipt line items."""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError

from receipt_keeper.core.exceptions import NotFoundError, StoreError, ValidationFailedError
from receipt_keeper.models.tables import Item
from .base import SQLRepository

logger = logging.getLogger(__name__)


class ItemRepository(Protocol):
    async def create(self, item: Item) -> Item: ...

    async def create_batch(self, items: Sequence[Item]) -> List[Item]: ...

    async def find_by_receipt_id(self, receipt_id: int) -> List[Item]: ...

    async def find_by_id(self, item_id: int) -> Item: ...

    async def update(self, item: Item) -> Item: ...

    async def delete(self, item_id: int) -> None: ...


class SQLItemRepository(SQLRepository):
    """``ItemRepository`` backed by an ``AsyncSession``."""

    async def create(self, item: Item) -> Item:
        async with self._write("create item"):
            self.db.add(item)
            await self.db.commit()
        await self.db.refresh(item)
        return item

    async def create_batch(self, items: Sequence[Item]) -> List[Item]:
        """Insert every item in a single transaction.

        Either all rows are committed or none are: the first failing insert
        rolls the whole batch back and is reported as ``StoreError``.
        """
        if not items:
            raise ValidationFailedError("at least one item is required")
        batch = list(items)
        try:
            self.db.add_all(batch)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.warning("Rolled back batch of %d items: %s", len(batch), exc)
            raise StoreError(f"failed to insert items: {exc}") from exc
        logger.debug("Inserted %d items for receipt %s", len(batch), batch[0].receipt_id)
        return batch

    async def find_by_receipt_id(self, receipt_id: int) -> List[Item]:
        stmt = select(Item).where(Item.receipt_id == receipt_id).order_by(Item.id.asc())
        async with self._read("find items by receipt"):
            result = await self.db.execute(stmt)
            return list(result.scalars().all())

    async def find_by_id(self, item_id: int) -> Item:
        async with self._read("find item by id"):
            result = await self.db.execute(select(Item).where(Item.id == item_id))
            item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundError("item not found")
        return item

    async def update(self, item: Item) -> Item:
        stmt = (
            update(Item)
            .where(Item.id == item.id)
            .values(
                name=item.name,
                unit_price=item.unit_price,
                quantity=item.quantity,
                price=item.price,
                total=item.total,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._write("update item"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("item not found")
            await self.db.commit()
        return item

    async def delete(self, item_id: int) -> None:
        async with self._write("delete item"):
            result = await self.db.execute(delete(Item).where(Item.id == item_id))
            if result.rowcount == 0:
                raise NotFoundError("item not found")
            await self.db.commit()
