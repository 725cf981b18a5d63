"""Persistence for receipts: CRUD, paginated listing and spending stats.

Listing is ordered newest upload first with the id as a tie-break, and
the total count comes from a separate ``COUNT`` over the same filter so
it is independent of the requested page.  Statistics only consider
receipts in the ``completed`` state.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import List, Protocol, Tuple

from sqlalchemy import delete, func, select, update

from receipt_keeper.core.exceptions import NotFoundError, ValidationFailedError
from receipt_keeper.models.enums import ReceiptStatus
from receipt_keeper.models.tables import Receipt, unix_now, utcnow
from .base import SQLRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptStats:
    total_receipts: int = 0
    total_spending: float = 0.0
    total_discount: float = 0.0
    average_spending: float = 0.0
    net_spending: float = 0.0


class ReceiptRepository(Protocol):
    async def create(self, receipt: Receipt) -> Receipt: ...

    async def find_by_id(self, receipt_id: int) -> Receipt: ...

    async def find_by_uuid(self, receipt_uuid: str) -> Receipt: ...

    async def find_by_user_id(self, user_id: int, page: int, limit: int) -> Tuple[List[Receipt], int]: ...

    async def update(self, receipt: Receipt) -> Receipt: ...

    async def delete(self, receipt_id: int) -> None: ...

    async def soft_delete(self, receipt_id: int) -> None: ...

    async def get_stats_by_user_id(self, user_id: int) -> ReceiptStats: ...


def check_page(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationFailedError("page must be at least 1")
    if limit < 1:
        raise ValidationFailedError("limit must be at least 1")


class SQLReceiptRepository(SQLRepository):
    """``ReceiptRepository`` backed by an ``AsyncSession``."""

    async def create(self, receipt: Receipt) -> Receipt:
        async with self._write("create receipt"):
            self.db.add(receipt)
            await self.db.commit()
        await self.db.refresh(receipt)
        return receipt

    async def find_by_id(self, receipt_id: int) -> Receipt:
        async with self._read("find receipt by id"):
            result = await self.db.execute(select(Receipt).where(Receipt.id == receipt_id))
            receipt = result.scalar_one_or_none()
        if receipt is None:
            raise NotFoundError("receipt not found")
        return receipt

    async def find_by_uuid(self, receipt_uuid: str) -> Receipt:
        try:
            parsed = uuid.UUID(str(receipt_uuid))
        except ValueError as exc:
            raise ValidationFailedError(f"invalid receipt uuid: {receipt_uuid!r}") from exc
        async with self._read("find receipt by uuid"):
            result = await self.db.execute(select(Receipt).where(Receipt.uuid == parsed))
            receipt = result.scalar_one_or_none()
        if receipt is None:
            raise NotFoundError("receipt not found")
        return receipt

    async def find_by_user_id(self, user_id: int, page: int, limit: int) -> Tuple[List[Receipt], int]:
        """Return one page of ``user_id``'s receipts and the user's total count.

        Receipts of every status are included.
        """
        check_page(page, limit)
        count_stmt = select(func.count(Receipt.id)).where(Receipt.user_id == user_id)
        page_stmt = (
            select(Receipt)
            .where(Receipt.user_id == user_id)
            .order_by(Receipt.upload_date.desc(), Receipt.id.desc())
            .limit(limit)
            .offset((page - 1) * limit)
        )
        async with self._read("count receipts"):
            total = (await self.db.execute(count_stmt)).scalar_one()
        async with self._read("list receipts"):
            receipts = list((await self.db.execute(page_stmt)).scalars().all())
        return receipts, int(total)

    async def update(self, receipt: Receipt) -> Receipt:
        """Persist the mutable receipt fields and refresh the update timestamps.

        Image reference, filename, owner and upload date are left alone.
        """
        now = utcnow()
        now_unix = unix_now()
        receipt.updated_at = now
        receipt.updated_at_unix = now_unix
        stmt = (
            update(Receipt)
            .where(Receipt.id == receipt.id)
            .values(
                store_name=receipt.store_name,
                address=receipt.address,
                phone=receipt.phone,
                date=receipt.date,
                status=receipt.status,
                total_items=receipt.total_items,
                total_spending=receipt.total_spending,
                total_discount=receipt.total_discount,
                updated_at=now,
                updated_at_unix=now_unix,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._write("update receipt"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("receipt not found")
            await self.db.commit()
        return receipt

    async def delete(self, receipt_id: int) -> None:
        """Remove the receipt row; its items go with it through the FK cascade."""
        stmt = delete(Receipt).where(Receipt.id == receipt_id).execution_options(synchronize_session=False)
        async with self._write("delete receipt"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("receipt not found")
            await self.db.commit()
        logger.info("Deleted receipt %s", receipt_id)

    async def soft_delete(self, receipt_id: int) -> None:
        stmt = (
            update(Receipt)
            .where(Receipt.id == receipt_id)
            .values(status=ReceiptStatus.DELETED, updated_at=utcnow(), updated_at_unix=unix_now())
        )
        async with self._write("soft delete receipt"):
            result = await self.db.execute(stmt)
            if result.rowcount == 0:
                raise NotFoundError("receipt not found")
            await self.db.commit()
        logger.info("Marked receipt %s as deleted", receipt_id)

    async def get_stats_by_user_id(self, user_id: int) -> ReceiptStats:
        """Aggregate the user's completed receipts; zeros when there are none."""
        stmt = select(
            func.count(Receipt.id),
            func.coalesce(func.sum(Receipt.total_spending), 0.0),
            func.coalesce(func.sum(Receipt.total_discount), 0.0),
            func.coalesce(func.avg(Receipt.total_spending), 0.0),
        ).where(Receipt.user_id == user_id, Receipt.status == ReceiptStatus.COMPLETED)
        async with self._read("get receipt stats"):
            count, spending, discount, average = (await self.db.execute(stmt)).one()
        total_spending = float(spending or 0)
        total_discount = float(discount or 0)
        return ReceiptStats(
            total_receipts=int(count or 0),
            total_spending=total_spending,
            total_discount=total_discount,
            average_spending=float(average or 0),
            net_spending=total_spending - total_discount,
        )
