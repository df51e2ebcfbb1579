"""Tests for InventoryDB record-store operations."""

import sqlite3
from datetime import date

import pytest

from pantryscan.db.inventory import InventoryDB, normalize_name


@pytest.fixture
def db(tmp_path):
    """Create a temporary InventoryDB."""
    inventory = InventoryDB(db_path=tmp_path / "test.db")
    yield inventory
    inventory.close()


def test_normalize_name():
    assert normalize_name("  Whole   MILK ") == "whole milk"
    assert normalize_name("   ") == ""


def test_insert_and_get_by_id(db):
    dairy = db.find_category("Dairy & Eggs")
    doz = db.find_unit("doz")
    fridge = db.find_location("Refrigerator")
    item_id = db.insert(
        "Eggs",
        12,
        category_id=dairy,
        unit_id=doz,
        location_id=fridge,
        expiry_date=date(2025, 1, 31),
        purchase_date=date(2025, 1, 10),
    )

    record = db.get_by_id(item_id)
    assert record["name"] == "Eggs"
    assert record["quantity"] == 12
    assert record["category"] == "Dairy & Eggs"
    assert record["unit"] == "doz"
    assert record["location"] == "Refrigerator"
    assert record["expiry_date"] == "2025-01-31"
    assert record["purchase_date"] == "2025-01-10"


def test_get_by_id_missing(db):
    assert db.get_by_id(999) is None


class TestFindByName:
    def test_case_and_whitespace_insensitive(self, db):
        item_id = db.insert("Whole Milk", 1)
        assert db.find_by_name("  whole   MILK ")["id"] == item_id

    def test_plural_variants(self, db):
        egg_id = db.insert("Eggs", 6)
        tomato_id = db.insert("tomato", 3)
        assert db.find_by_name("egg")["id"] == egg_id
        assert db.find_by_name("Tomatoes")["id"] == tomato_id

    def test_exact_match_wins(self, db):
        db.insert("Apples", 4)
        exact = db.insert("Apple", 1)
        assert db.find_by_name("apple")["id"] == exact

    def test_no_match(self, db):
        db.insert("Milk", 1)
        assert db.find_by_name("Bread") is None
        assert db.find_by_name("   ") is None


def test_search_by_keyword(db):
    db.insert("Greek Yogurt", 2)
    db.insert("Yogurt", 1)
    db.insert("Milk", 1)

    hits = db.search_by_keyword("yogurt")
    assert [h["name"] for h in hits] == ["Yogurt", "Greek Yogurt"]
    assert db.search_by_keyword("100%") == []


class TestAdjustQuantity:
    def test_increments(self, db):
        item_id = db.insert("Eggs", 6)
        db.adjust_quantity(item_id, 3)
        assert db.get_by_id(item_id)["quantity"] == 9

    def test_never_below_zero(self, db):
        item_id = db.insert("Eggs", 2)
        db.adjust_quantity(item_id, -5)
        assert db.get_by_id(item_id)["quantity"] == 0

    def test_missing_record(self, db):
        with pytest.raises(LookupError):
            db.adjust_quantity(42, 1)


def test_update_expiry_only_fills_empty(db):
    item_id = db.insert("Milk", 1)
    db.update_expiry(item_id, date(2025, 2, 1))
    db.update_expiry(item_id, date(2025, 3, 1))
    assert db.get_by_id(item_id)["expiry_date"] == "2025-02-01"


def test_update_purchase_date_and_barcode(db):
    item_id = db.insert("Milk", 1)
    assert db.get_by_id(item_id)["barcode"] is None
    db.update_purchase_date(item_id, date(2025, 1, 10))
    db.update_barcode(item_id, "0123456789012")
    record = db.get_by_id(item_id)
    assert record["purchase_date"] == "2025-01-10"
    assert record["barcode"] == "0123456789012"


def test_record_purchase(db):
    item_id = db.insert("Coffee", 1)
    db.record_purchase(
        item_id, 2, date(2025, 1, 10), "From receipt scan",
        unit_price=4.5, total_price=9.0,
    )
    purchases = db.get_purchases(item_id)
    assert len(purchases) == 1
    assert purchases[0]["quantity"] == 2
    assert purchases[0]["unit_price"] == 4.5
    assert purchases[0]["total_price"] == 9.0
    assert purchases[0]["notes"] == "From receipt scan"
    assert purchases[0]["purchase_date"] == "2025-01-10"


def test_record_purchase_requires_item(db):
    with pytest.raises(sqlite3.IntegrityError):
        db.record_purchase(999, 1, date(2025, 1, 10))


def test_add_or_increment(db):
    first_id, created = db.add_or_increment("Bananas", 3)
    assert created is True
    second_id, created = db.add_or_increment("banana", 2)
    assert created is False
    assert second_id == first_id
    assert db.get_by_id(first_id)["quantity"] == 5


class TestTransaction:
    def test_rollback_on_error(self, db):
        with pytest.raises(RuntimeError):
            with db.transaction():
                item_id = db.insert("Milk", 1)
                db.record_purchase(item_id, 1, date(2025, 1, 10))
                raise RuntimeError("boom")
        assert db.find_by_name("Milk") is None
        assert db.get_active_items() == []

    def test_commit_on_success(self, db, tmp_path):
        with db.transaction():
            item_id = db.insert("Milk", 1)
            db.record_purchase(item_id, 1, date(2025, 1, 10))

        reader = InventoryDB(db_path=tmp_path / "test.db")
        try:
            assert reader.find_by_name("milk")["id"] == item_id
            assert len(reader.get_purchases(item_id)) == 1
        finally:
            reader.close()


def test_lookup_lists(db):
    categories = db.list_categories()
    assert categories[0] == "Dairy & Eggs"
    assert "Other" in categories
    assert {"id", "name", "abbreviation"} <= set(db.list_units()[0])


def test_find_unit_by_abbreviation_or_name(db):
    assert db.find_unit("KG") == db.find_unit("kilogram")
    assert db.find_unit("parsec") is None


def test_find_category_case_insensitive(db):
    assert db.find_category("dairy & eggs") == db.find_category("Dairy & Eggs")
    assert db.find_category("Dairy") is None


def test_settings(db):
    assert db.get_setting_int("last_scan_item_count") == 0
    db.set_setting_int("last_scan_item_count", 7)
    db.set_setting_int("last_scan_item_count", 9)
    assert db.get_setting_int("last_scan_item_count") == 9
