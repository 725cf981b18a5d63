from __future__ import annotations

import pytest

from receipt_keeper.core.exceptions import NotFoundError, StoreError, ValidationFailedError
from receipt_keeper.models.tables import Item
from receipt_keeper.repositories.item_repository import SQLItemRepository
from receipt_keeper.repositories.receipt_repository import SQLReceiptRepository

from factories import make_receipt


def _item(receipt_id: int, name, price: int = 100) -> Item:
    return Item(receipt_id=receipt_id, name=name, unit_price=price, quantity=1, price=price, total=price)


@pytest.fixture
def items(db) -> SQLItemRepository:
    return SQLItemRepository(db)


@pytest.mark.asyncio
async def test_create_batch_persists_in_insertion_order(db, alice, items):
    receipt = await SQLReceiptRepository(db).create(make_receipt(alice.id))
    created = await items.create_batch([_item(receipt.id, n) for n in ("milk", "bread", "eggs")])
    assert all(i.id is not None for i in created)

    stored = await items.find_by_receipt_id(receipt.id)
    assert [i.name for i in stored] == ["milk", "bread", "eggs"]
    assert all(i.receipt_id == receipt.id for i in stored)


@pytest.mark.asyncio
async def test_create_batch_is_all_or_nothing(db, alice, items):
    receipt = await SQLReceiptRepository(db).create(make_receipt(alice.id))
    receipt_id = receipt.id
    # name is NOT NULL; the second insert fails
    batch = [_item(receipt_id, "ok"), _item(receipt_id, None), _item(receipt_id, "also ok")]
    with pytest.raises(StoreError):
        await items.create_batch(batch)
    assert await items.find_by_receipt_id(receipt_id) == []


@pytest.mark.asyncio
async def test_create_batch_rejects_empty_input(items):
    with pytest.raises(ValidationFailedError):
        await items.create_batch([])


@pytest.mark.asyncio
async def test_find_by_receipt_id_without_items_is_empty(db, alice, items):
    receipt = await SQLReceiptRepository(db).create(make_receipt(alice.id))
    assert await items.find_by_receipt_id(receipt.id) == []


@pytest.mark.asyncio
async def test_single_item_crud(db, alice, items):
    receipt = await SQLReceiptRepository(db).create(make_receipt(alice.id))
    item = await items.create(_item(receipt.id, "coffee", price=350))
    assert (await items.find_by_id(item.id)).name == "coffee"

    item.name = "decaf"
    item.quantity = 2
    item.total = 700
    item_id = item.id
    await items.update(item)
    db.expire_all()
    found = await items.find_by_id(item_id)
    assert (found.name, found.quantity, found.total) == ("decaf", 2, 700)

    await items.delete(item_id)
    with pytest.raises(NotFoundError):
        await items.find_by_id(item_id)


@pytest.mark.asyncio
async def test_missing_item_raises_not_found(items):
    with pytest.raises(NotFoundError):
        await items.find_by_id(1)
    with pytest.raises(NotFoundError):
        await items.update(Item(id=77, receipt_id=1, name="ghost", unit_price=0, quantity=1, price=0, total=0))
    with pytest.raises(NotFoundError):
        await items.delete(77)
