"""Receipt orchestration and ownership checks.

Every operation that targets a single receipt follows the same shape:
load it by id (``NotFoundError`` if absent), compare its owner with the
requesting user (``UnauthorizedError`` on mismatch), then act.  The
service never reaches the store directly; it only talks to the receipt
and item repositories.

Receipt totals are caller-supplied and stored as given; they are never
recomputed from the items.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from receipt_keeper.core.config import DELETE_MODES
from receipt_keeper.core.exceptions import ReceiptKeeperError, UnauthorizedError, ValidationFailedError
from receipt_keeper.models.enums import ReceiptStatus
from receipt_keeper.models.schemas import ReceiptCreate, ReceiptUpdate
from receipt_keeper.models.tables import Item, Receipt
from receipt_keeper.repositories.item_repository import ItemRepository
from receipt_keeper.repositories.receipt_repository import ReceiptRepository, ReceiptStats
from receipt_keeper.utils.helpers import parse_iso_datetime
from receipt_keeper.utils.sanitization import none_if_blank

logger = logging.getLogger(__name__)


@dataclass
class ReceiptWithItems:
    receipt: Receipt
    items: List[Item] = field(default_factory=list)


def parse_receipt_date(value: Optional[str]):
    """Parse the optional receipt date, rejecting anything unparseable."""
    if value is None or not value.strip():
        return None
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise ValidationFailedError(f"invalid receipt date: {value!r}")
    return parsed


class ReceiptService:
    def __init__(
        self,
        receipts: ReceiptRepository,
        items: ItemRepository,
        delete_mode: str = "hard",
    ) -> None:
        if delete_mode not in DELETE_MODES:
            raise ValueError(f"delete_mode must be one of {DELETE_MODES}")
        self.receipts = receipts
        self.items = items
        self.delete_mode = delete_mode

    async def _load_owned(self, receipt_id: int, user_id: int) -> Receipt:
        receipt = await self.receipts.find_by_id(receipt_id)
        if receipt.user_id != user_id:
            logger.warning("User %s denied access to receipt %s", user_id, receipt_id)
            raise UnauthorizedError("you do not have access to this receipt")
        return receipt

    async def _discard(self, receipt_id: int) -> None:
        """Remove a receipt whose items could not be stored."""
        try:
            await self.receipts.delete(receipt_id)
        except ReceiptKeeperError:
            logger.exception("Failed to remove receipt %s after its items were rejected", receipt_id)
        else:
            logger.warning("Removed receipt %s after its items were rejected", receipt_id)

    async def create_receipt(
        self,
        user_id: int,
        request: ReceiptCreate,
        image_ref: str,
        filename: str,
        file_size: int,
    ) -> ReceiptWithItems:
        """Store a completed receipt and its items for ``user_id``.

        The date is parsed before anything is written, so an invalid date
        leaves the store untouched.  If the items cannot be stored the
        receipt row is removed again before the error propagates.
        """
        receipt_date = parse_receipt_date(request.date)
        receipt = Receipt(
            user_id=user_id,
            store_name=none_if_blank(request.store_name),
            address=none_if_blank(request.address),
            phone=request.phone,
            date=receipt_date,
            image_url=image_ref,
            original_filename=filename,
            file_size=file_size,
            status=ReceiptStatus.COMPLETED,
            total_items=request.total_items,
            total_spending=request.total_spending,
            total_discount=request.total_discount,
        )
        receipt = await self.receipts.create(receipt)
        # A failed batch rolls the session back and expires the receipt
        receipt_id = receipt.id

        items: List[Item] = []
        if request.items:
            try:
                items = await self.items.create_batch(
                    [
                        Item(
                            receipt_id=receipt_id,
                            name=entry.name,
                            unit_price=entry.unit_price,
                            quantity=entry.quantity,
                            price=entry.price,
                            total=entry.total,
                        )
                        for entry in request.items
                    ]
                )
            except ReceiptKeeperError:
                await self._discard(receipt_id)
                raise
        logger.info("Created receipt %s for user %s with %d items", receipt_id, user_id, len(items))
        return ReceiptWithItems(receipt=receipt, items=items)

    async def get_receipt_by_id(self, receipt_id: int, user_id: int) -> ReceiptWithItems:
        receipt = await self._load_owned(receipt_id, user_id)
        items = await self.items.find_by_receipt_id(receipt.id)
        return ReceiptWithItems(receipt=receipt, items=items)

    async def get_receipts_by_user_id(self, user_id: int, page: int, limit: int) -> Tuple[List[Receipt], int]:
        return await self.receipts.find_by_user_id(user_id, page, limit)

    async def update_receipt(self, receipt_id: int, user_id: int, request: ReceiptUpdate) -> ReceiptWithItems:
        """Apply the fields present in ``request`` to the receipt.

        Absent fields are left alone; ``None`` or an empty string clears a
        nullable field.  Items, image and status are never changed here.
        """
        receipt = await self._load_owned(receipt_id, user_id)
        sent = request.model_fields_set
        if "store_name" in sent:
            receipt.store_name = none_if_blank(request.store_name)
        if "address" in sent:
            receipt.address = none_if_blank(request.address)
        if "phone" in sent:
            receipt.phone = request.phone
        if "date" in sent:
            receipt.date = parse_receipt_date(request.date)
        # Totals are not nullable; null means "leave as is"
        for name in ("total_items", "total_spending", "total_discount"):
            value = getattr(request, name)
            if name in sent and value is not None:
                setattr(receipt, name, value)

        receipt = await self.receipts.update(receipt)
        logger.info("Updated receipt %s", receipt_id)
        return await self.get_receipt_by_id(receipt_id, user_id)

    async def delete_receipt(self, receipt_id: int, user_id: int) -> None:
        await self._load_owned(receipt_id, user_id)
        if self.delete_mode == "soft":
            await self.receipts.soft_delete(receipt_id)
        else:
            await self.receipts.delete(receipt_id)
        logger.info("Deleted receipt %s (%s) for user %s", receipt_id, self.delete_mode, user_id)

    async def get_stats_by_user_id(self, user_id: int) -> ReceiptStats:
        return await self.receipts.get_stats_by_user_id(user_id)
