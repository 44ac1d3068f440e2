import asyncio
import json

import pytest

from hostel_orders.core.exceptions import PersistenceError
from hostel_orders.core.security import hash_pin
from hostel_orders.database import DocumentStore
from conftest import ADMIN_PIN


async def test_initialize_bootstraps_document(store):
    assert await store.initialize() is True
    assert await store.initialize() is False

    document = await store.load()
    assert len(document.menu) == 11
    assert document.orders == []
    assert document.sessions == []
    assert document.students == []
    assert document.admin.id == "admin-1"
    assert document.admin.pin_hash == hash_pin(ADMIN_PIN)
    assert document.meta.next_order_id == 1001


async def test_document_is_stored_with_camel_case_keys(store):
    await store.initialize()

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert set(raw) == {"menu", "orders", "sessions", "students", "admins", "meta"}
    assert raw["meta"] == {"nextOrderId": 1001}
    assert raw["menu"][0] == {
        "id": "m1",
        "name": "Classic Masala Maggi",
        "category": "Maggi",
        "price": 45,
        "inStock": True,
    }
    assert "pinHash" in raw["admins"][0]


async def test_load_bootstraps_on_first_use(store):
    assert not store.path.exists()
    document = await store.load()
    assert store.path.exists()
    assert document.meta.next_order_id == 1001


async def test_transaction_persists_on_clean_exit(store):
    async with store.transaction() as document:
        document.meta.next_order_id = 5000

    assert (await store.load()).meta.next_order_id == 5000
    assert not store.path.with_name("db.json.tmp").exists()


async def test_transaction_discards_changes_on_error(store):
    await store.initialize()

    with pytest.raises(RuntimeError):
        async with store.transaction() as document:
            document.meta.next_order_id = 5000
            raise RuntimeError("boom")

    assert (await store.load()).meta.next_order_id == 1001


async def test_save_replaces_whole_document(store):
    document = await store.load()
    document.menu = document.menu[:2]
    await store.save(document)

    assert [item.id for item in (await store.load()).menu] == ["m1", "m2"]


async def test_corrupt_document_raises_persistence_error(store):
    store.path.parent.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError):
        await store.load()
    with pytest.raises(PersistenceError):
        await store.initialize()
    assert await store.health_check() is False


async def test_concurrent_transactions_do_not_lose_updates(store):
    await store.initialize()

    async def bump():
        async with store.transaction() as document:
            current = document.meta.next_order_id
            await asyncio.sleep(0)
            document.meta.next_order_id = current + 1

    await asyncio.gather(*(bump() for _ in range(30)))

    assert (await store.load()).meta.next_order_id == 1031


async def test_starting_order_id_is_configurable(tmp_path):
    store = DocumentStore(tmp_path / "other.json", admin_pin="0000", starting_order_id=1)
    document = await store.load()
    assert document.meta.next_order_id == 1
    assert document.admin.pin_hash == hash_pin("0000")
