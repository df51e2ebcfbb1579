"""Tests for the item defaults table."""

import json

import pytest

from pantryscan.defaults import DefaultsTable, ItemDefaults


@pytest.fixture
def table():
    DefaultsTable.reset()
    yield DefaultsTable.instance()
    DefaultsTable.reset()


class TestLookup:
    def test_exact_match(self, table):
        milk = table.lookup("Milk")
        assert milk == ItemDefaults(
            category="Dairy & Eggs", unit="gal", location="Refrigerator", shelf_life_days=7
        )

    def test_longest_contained_keyword(self, table):
        # "eggplant" is longer than "egg" and wins
        assert table.lookup("Japanese eggplant").category == "Vegetables"
        assert table.lookup("Organic Whole Milk").category == "Dairy & Eggs"

    def test_ignores_case_and_padding(self, table):
        assert table.lookup("  BREAD ").unit == "loaf"

    def test_unknown_name(self, table):
        assert table.lookup("Zorblax") is None
        assert table.lookup("") is None


def test_singleton(table):
    assert DefaultsTable.instance() is table


def test_category_defaults(table):
    dairy = table.category_defaults("Dairy & Eggs")
    assert dairy.location == "Refrigerator"
    assert table.category_defaults("Nope") is None


def test_custom_data_file(tmp_path):
    path = tmp_path / "defaults.json"
    path.write_text(json.dumps({
        "version": 1,
        "categories": {},
        "items": [
            {"name": "widget", "category": "Other", "unit": "pcs"},
        ],
    }))
    table = DefaultsTable(path)
    assert table.lookup("Blue Widget") == ItemDefaults(category="Other", unit="pcs")
