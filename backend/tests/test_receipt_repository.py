from __future__ import annotations

import pytest

from receipt_keeper.core.exceptions import NotFoundError, ValidationFailedError
from receipt_keeper.models.enums import ReceiptStatus
from receipt_keeper.models.tables import Item
from receipt_keeper.repositories.item_repository import SQLItemRepository
from receipt_keeper.repositories.receipt_repository import ReceiptStats, SQLReceiptRepository

from factories import make_receipt


@pytest.mark.asyncio
async def test_create_and_find_by_id(db, alice):
    repo = SQLReceiptRepository(db)
    receipt = await repo.create(make_receipt(alice.id, store_name="Shop", total_spending=12.5))
    assert receipt.id is not None
    assert receipt.uuid is not None

    found = await repo.find_by_id(receipt.id)
    assert found.store_name == "Shop"
    assert found.status == ReceiptStatus.COMPLETED
    assert (await repo.find_by_uuid(str(receipt.uuid))).id == receipt.id


@pytest.mark.asyncio
async def test_find_missing_receipt_raises_not_found(db):
    with pytest.raises(NotFoundError):
        await SQLReceiptRepository(db).find_by_id(404)


@pytest.mark.asyncio
async def test_find_by_user_id_paginates_newest_first(db, alice, bob):
    repo = SQLReceiptRepository(db)
    for minutes in range(5):
        await repo.create(make_receipt(alice.id, minutes=minutes, store_name=f"store-{minutes}"))
    await repo.create(make_receipt(bob.id, minutes=10))

    first, total = await repo.find_by_user_id(alice.id, page=1, limit=2)
    assert total == 5
    assert [r.store_name for r in first] == ["store-4", "store-3"]

    last, total_again = await repo.find_by_user_id(alice.id, page=3, limit=2)
    assert total_again == 5
    assert [r.store_name for r in last] == ["store-0"]

    beyond, total_beyond = await repo.find_by_user_id(alice.id, page=9, limit=2)
    assert beyond == []
    assert total_beyond == 5


@pytest.mark.asyncio
async def test_find_by_user_id_breaks_ties_by_id(db, alice):
    repo = SQLReceiptRepository(db)
    older = await repo.create(make_receipt(alice.id))
    newer = await repo.create(make_receipt(alice.id))
    page, _ = await repo.find_by_user_id(alice.id, page=1, limit=10)
    assert [r.id for r in page] == [newer.id, older.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (-1, 5)])
async def test_find_by_user_id_rejects_non_positive_paging(db, alice, page, limit):
    with pytest.raises(ValidationFailedError):
        await SQLReceiptRepository(db).find_by_user_id(alice.id, page=page, limit=limit)


@pytest.mark.asyncio
async def test_update_rewrites_mutable_fields(db, alice):
    repo = SQLReceiptRepository(db)
    receipt = await repo.create(make_receipt(alice.id, store_name="Old", phone=123))
    receipt.store_name = "New"
    receipt.phone = None
    receipt.total_discount = 3.0
    before = receipt.updated_at_unix
    receipt_id, alice_id = receipt.id, alice.id
    await repo.update(receipt)

    db.expire_all()
    found = await repo.find_by_id(receipt_id)
    assert found.store_name == "New"
    assert found.phone is None
    assert found.total_discount == 3.0
    assert found.image_url == f"{alice_id}/img.png"
    assert found.updated_at_unix >= before


@pytest.mark.asyncio
async def test_update_unknown_receipt_raises_not_found(db, alice):
    ghost = make_receipt(alice.id, id=999)
    with pytest.raises(NotFoundError):
        await SQLReceiptRepository(db).update(ghost)


@pytest.mark.asyncio
async def test_hard_delete_cascades_items(db, alice):
    repo = SQLReceiptRepository(db)
    items = SQLItemRepository(db)
    receipt = await repo.create(make_receipt(alice.id))
    receipt_id = receipt.id
    await items.create_batch([
        Item(receipt_id=receipt_id, name="a", unit_price=1, quantity=1, price=1, total=1),
        Item(receipt_id=receipt_id, name="b", unit_price=2, quantity=1, price=2, total=2),
    ])

    await repo.delete(receipt_id)

    with pytest.raises(NotFoundError):
        await repo.find_by_id(receipt_id)
    assert await items.find_by_receipt_id(receipt_id) == []
    with pytest.raises(NotFoundError):
        await repo.delete(receipt_id)


@pytest.mark.asyncio
async def test_soft_delete_marks_deleted_and_keeps_row(db, alice):
    repo = SQLReceiptRepository(db)
    receipt = await repo.create(make_receipt(alice.id))
    receipt_id, alice_id = receipt.id, alice.id
    await repo.soft_delete(receipt_id)

    db.expire_all()
    found = await repo.find_by_id(receipt_id)
    assert found.status == ReceiptStatus.DELETED
    _, total = await repo.find_by_user_id(alice_id, page=1, limit=10)
    assert total == 1
    with pytest.raises(NotFoundError):
        await repo.soft_delete(4242)


@pytest.mark.asyncio
async def test_stats_are_zero_without_completed_receipts(db, alice):
    repo = SQLReceiptRepository(db)
    await repo.create(make_receipt(alice.id, status=ReceiptStatus.PENDING, total_spending=99.0))
    stats = await repo.get_stats_by_user_id(alice.id)
    assert stats == ReceiptStats(
        total_receipts=0,
        total_spending=0.0,
        total_discount=0.0,
        average_spending=0.0,
        net_spending=0.0,
    )


@pytest.mark.asyncio
async def test_stats_aggregate_completed_receipts_only(db, alice, bob):
    repo = SQLReceiptRepository(db)
    await repo.create(make_receipt(alice.id, total_spending=10.0, total_discount=1.0))
    await repo.create(make_receipt(alice.id, total_spending=30.0, total_discount=3.0))
    await repo.create(make_receipt(alice.id, status=ReceiptStatus.FAILED, total_spending=500.0))
    await repo.create(make_receipt(bob.id, total_spending=1000.0))

    stats = await repo.get_stats_by_user_id(alice.id)
    assert stats.total_receipts == 2
    assert stats.total_spending == pytest.approx(40.0)
    assert stats.total_discount == pytest.approx(4.0)
    assert stats.average_spending == pytest.approx(20.0)
    assert stats.net_spending == pytest.approx(36.0)
