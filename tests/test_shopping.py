"""Tests for shopping list quick-add and the shared entry lock."""

import threading

import pytest

from pantryscan.db import InventoryDB, ShoppingListDB, ensure_schema


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def shopping(db_path):
    db = ShoppingListDB(db_path=db_path)
    yield db
    db.close()


def test_add_creates_custom_entry(shopping):
    entry_id, created = shopping.add_or_increment("Paper Towels", 2)
    assert created is True
    items = shopping.get_active_items()
    assert items == [
        {"id": entry_id, "item_id": None, "name": "Paper Towels",
         "quantity": 2.0, "is_purchased": 0}
    ]


def test_add_increments_same_name(shopping):
    first, _ = shopping.add_or_increment("Milk")
    second, created = shopping.add_or_increment("  MILK ", 2)
    assert created is False
    assert second == first
    assert shopping.get_active_items()[0]["quantity"] == 3.0


def test_add_links_inventory_record(db_path, shopping):
    inventory = InventoryDB(db_path=db_path)
    item_id = inventory.insert("Eggs", 0)
    inventory.close()

    shopping.add_or_increment("eggs")
    entry = shopping.get_active_items()[0]
    assert entry["item_id"] == item_id
    assert entry["name"] == "Eggs"


def test_add_blank_name_rejected(shopping):
    with pytest.raises(ValueError):
        shopping.add_or_increment("   ")


def test_mark_purchased_by_name(db_path, shopping):
    inventory = InventoryDB(db_path=db_path)
    inventory.insert("Butter", 1)
    inventory.close()

    shopping.add_or_increment("Butter")
    shopping.add_or_increment("Bread")
    assert shopping.mark_purchased_by_name("butter") == 1
    assert [e["name"] for e in shopping.get_active_items()] == ["Bread"]
    assert shopping.mark_purchased_by_name("Cheese") == 0


def test_concurrent_quick_add_creates_one_entry(db_path):
    """Parallel quick-adds of one name never insert duplicate rows."""
    ensure_schema(db_path).close()
    workers = 8
    barrier = threading.Barrier(workers)
    errors: list[Exception] = []

    def add():
        db = ShoppingListDB(db_path=db_path)
        try:
            barrier.wait()
            db.add_or_increment("Oat Milk", 1)
        except Exception as e:
            errors.append(e)
        finally:
            db.close()

    threads = [threading.Thread(target=add) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    reader = ShoppingListDB(db_path=db_path)
    items = reader.get_active_items()
    reader.close()
    assert len(items) == 1
    assert items[0]["quantity"] == float(workers)


def test_concurrent_inventory_add_or_increment(db_path):
    ensure_schema(db_path).close()
    workers = 6
    barrier = threading.Barrier(workers)

    def add():
        db = InventoryDB(db_path=db_path)
        try:
            barrier.wait()
            db.add_or_increment("Rice", 1)
        finally:
            db.close()

    threads = [threading.Thread(target=add) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    reader = InventoryDB(db_path=db_path)
    items = reader.get_active_items()
    reader.close()
    assert len(items) == 1
    assert items[0]["quantity"] == float(workers)
