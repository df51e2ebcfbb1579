"""Attribute resolution: unit, category and expiry through a fallback cascade."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation

from ..defaults import ItemDefaults
from ..vision import Candidate
from .review import MatchCandidate

DefaultsLookup = Callable[[str], ItemDefaults | None]


@dataclass(frozen=True)
class ResolvedAttributes:
    unit: str
    category: str
    expiry_date: date | None
    is_estimated_expiry: bool
    storage_location: str | None = None


def coerce_quantity(quantity: Decimal | None) -> Decimal:
    """Missing, zero or negative quantities become 1."""
    if quantity is None or quantity <= 0:
        return Decimal(1)
    return quantity


def format_quantity(quantity: Decimal) -> str:
    """Render a quantity without a trailing fraction for whole numbers.

    >>> format_quantity(Decimal("2.0"))
    '2'
    >>> format_quantity(Decimal("0.250"))
    '0.25'
    """
    if quantity == quantity.to_integral_value():
        return str(int(quantity))
    return format(quantity.normalize(), "f")


def parse_quantity(text: str) -> Decimal:
    """Parse a user-typed quantity; unparsable or non-positive input is 1."""
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError, AttributeError):
        return Decimal(1)
    if not value.is_finite():
        return Decimal(1)
    return coerce_quantity(value)


def parse_price(text: str) -> Decimal | None:
    """Parse a user-typed price; blank, invalid or negative input is None."""
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, ValueError, AttributeError):
        return None
    if not value.is_finite() or value < 0:
        return None
    return value


def match_category(name: str | None, categories: list[str]) -> str | None:
    """The live category whose name equals ``name`` ignoring case.

    Only case is ignored; surrounding whitespace makes a different name.
    """
    if not name or not name.strip():
        return None
    wanted = name.casefold()
    for category in categories:
        if category.casefold() == wanted:
            return category
    return None


def resolve_attributes(
    candidate: Candidate,
    existing_match: MatchCandidate | None,
    defaults_lookup: DefaultsLookup,
    categories: list[str],
    today: date | None = None,
) -> ResolvedAttributes:
    """Resolve unit, category and expiry for a candidate.

    Each field takes the first non-empty value of: the vision model, the
    matched inventory record, the defaults table. Categories must exist in
    the live ``categories`` list and are never invented. Gaps resolve to
    ``""`` or ``None``.
    """
    today = today or date.today()
    defaults = defaults_lookup(candidate.name)

    unit = ""
    for source in (
        candidate.unit,
        existing_match.unit if existing_match else None,
        defaults.unit if defaults else None,
    ):
        if source and source.strip():
            unit = source.strip()
            break

    category = ""
    for source in (
        candidate.category,
        existing_match.category if existing_match else None,
        defaults.category if defaults else None,
    ):
        matched = match_category(source, categories)
        if matched is not None:
            category = matched
            break

    shelf_life = candidate.estimated_shelf_life_days
    if shelf_life is None and defaults is not None:
        shelf_life = defaults.shelf_life_days
    expiry = None
    if shelf_life is not None:
        try:
            expiry = today + timedelta(days=shelf_life)
        except OverflowError:
            expiry = None

    return ResolvedAttributes(
        unit=unit,
        category=category,
        expiry_date=expiry,
        is_estimated_expiry=expiry is not None,
        storage_location=defaults.location if defaults else None,
    )
