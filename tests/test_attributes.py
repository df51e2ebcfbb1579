"""Tests for attribute resolution and quantity handling."""

from datetime import date
from decimal import Decimal

import pytest

from pantryscan.defaults import ItemDefaults
from pantryscan.scan.attributes import (
    coerce_quantity,
    format_quantity,
    match_category,
    parse_price,
    parse_quantity,
    resolve_attributes,
)
from pantryscan.scan.review import MatchCandidate
from pantryscan.vision import Candidate

TODAY = date(2025, 1, 10)
CATEGORIES = ["Dairy & Eggs", "Vegetables", "Other"]

_DEFAULTS = {
    "milk": ItemDefaults("Dairy & Eggs", "gal", "Refrigerator", 7),
    "kale": ItemDefaults("Leafy Greens", "bunch", "Refrigerator", None),
}


def lookup(name):
    return _DEFAULTS.get(name.strip().lower())


def no_defaults(name):
    return None


@pytest.mark.parametrize("raw, expected", [
    (None, Decimal(1)),
    (Decimal(0), Decimal(1)),
    (Decimal(-3), Decimal(1)),
    (Decimal("2.5"), Decimal("2.5")),
])
def test_coerce_quantity(raw, expected):
    assert coerce_quantity(raw) == expected


def test_format_quantity():
    assert format_quantity(Decimal("2.0")) == "2"
    assert format_quantity(Decimal("0.250")) == "0.25"
    assert format_quantity(Decimal(12)) == "12"


def test_parse_quantity():
    assert parse_quantity("3") == Decimal(3)
    assert parse_quantity(" 1.5 ") == Decimal("1.5")
    assert parse_quantity("0") == Decimal(1)
    assert parse_quantity("lots") == Decimal(1)
    assert parse_quantity("NaN") == Decimal(1)


def test_parse_price():
    assert parse_price("4.99") == Decimal("4.99")
    assert parse_price("") is None
    assert parse_price("-1") is None
    assert parse_price("free") is None


def test_match_category_case_insensitive_only():
    assert match_category("dairy & eggs", CATEGORIES) == "Dairy & Eggs"
    assert match_category("Dairy", CATEGORIES) is None
    assert match_category("Dairy & Eggs ", CATEGORIES) is None
    assert match_category(" dairy & eggs", CATEGORIES) is None
    assert match_category(None, CATEGORIES) is None


class TestResolveAttributes:
    def test_candidate_values_win(self):
        candidate = Candidate(
            name="Milk", unit="L", category="dairy & eggs", estimated_shelf_life_days=5
        )
        attrs = resolve_attributes(candidate, None, lookup, CATEGORIES, today=TODAY)
        assert attrs.unit == "L"
        assert attrs.category == "Dairy & Eggs"
        assert attrs.expiry_date == date(2025, 1, 15)
        assert attrs.is_estimated_expiry is True
        assert attrs.storage_location == "Refrigerator"

    def test_falls_back_to_defaults(self):
        attrs = resolve_attributes(Candidate(name="milk"), None, lookup, CATEGORIES, today=TODAY)
        assert attrs.unit == "gal"
        assert attrs.category == "Dairy & Eggs"
        assert attrs.expiry_date == date(2025, 1, 17)
        assert attrs.is_estimated_expiry is True

    def test_existing_match_before_defaults(self):
        match = MatchCandidate(id=1, name="Milk", current_quantity=1, unit="qt", category="Other")
        attrs = resolve_attributes(Candidate(name="Milk"), match, lookup, CATEGORIES, today=TODAY)
        assert attrs.unit == "qt"
        assert attrs.category == "Other"

    def test_unknown_category_never_invented(self):
        candidate = Candidate(name="Kale", category="Leafy Greens")
        attrs = resolve_attributes(candidate, None, lookup, CATEGORIES, today=TODAY)
        assert attrs.category == ""
        assert attrs.unit == "bunch"

    def test_invalid_candidate_category_uses_defaults(self):
        candidate = Candidate(name="Milk", category="Drinks")
        attrs = resolve_attributes(candidate, None, lookup, CATEGORIES, today=TODAY)
        assert attrs.category == "Dairy & Eggs"

    def test_gaps_resolve_to_empty(self):
        attrs = resolve_attributes(
            Candidate(name="Zorblax", unit="  "), None, no_defaults, CATEGORIES, today=TODAY
        )
        assert attrs.unit == ""
        assert attrs.category == ""
        assert attrs.expiry_date is None
        assert attrs.is_estimated_expiry is False
        assert attrs.storage_location is None

    def test_zero_shelf_life_expires_today(self):
        candidate = Candidate(name="Sushi", estimated_shelf_life_days=0)
        attrs = resolve_attributes(candidate, None, no_defaults, CATEGORIES, today=TODAY)
        assert attrs.expiry_date == TODAY

    def test_oversized_shelf_life_leaves_expiry_unset(self):
        candidate = Candidate(name="Honey", estimated_shelf_life_days=10**9)
        attrs = resolve_attributes(candidate, None, lookup, CATEGORIES, today=TODAY)
        assert attrs.expiry_date is None
        assert attrs.is_estimated_expiry is False

    def test_padded_category_falls_back_to_defaults(self):
        candidate = Candidate(name="Milk", category="Dairy & Eggs ")
        attrs = resolve_attributes(candidate, None, no_defaults, CATEGORIES, today=TODAY)
        assert attrs.category == ""
