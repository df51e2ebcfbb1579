"""Commit engine: applies reviewed items to the inventory store one at a time."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from .attributes import parse_price, parse_quantity
from .review import MatchType, ReviewItem

if TYPE_CHECKING:
    from ..db import InventoryDB, ShoppingListDB
    from ..defaults import DefaultsTable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
StopCheck = Callable[[], bool]


class CommitError(Exception):
    """A single review item could not be written."""


@dataclass
class CommitResult:
    committed: list[ReviewItem] = field(default_factory=list)
    failures: list[tuple[ReviewItem, Exception]] = field(default_factory=list)
    stopped: bool = False

    @property
    def succeeded_count(self) -> int:
        return len(self.committed)

    def category_tally(self) -> dict[str, int]:
        """Committed items per category; blank categories count as "Other"."""
        tally: dict[str, int] = {}
        for item in self.committed:
            category = item.category.strip() or "Other"
            tally[category] = tally.get(category, 0) + 1
        return tally


class CommitEngine:
    """Writes active review items to the store sequentially.

    Each item runs in its own store transaction. A failing item is rolled
    back, logged and recorded in ``CommitResult.failures``; the remaining
    items are still written.
    """

    def __init__(
        self,
        store: InventoryDB,
        note: str = "",
        *,
        shopping: ShoppingListDB | None = None,
        defaults: DefaultsTable | None = None,
        location_id: int | None = None,
        today: date | None = None,
    ) -> None:
        self._store = store
        self._note = note
        self._shopping = shopping
        self._defaults = defaults
        self._location_id = location_id
        self._today = today

    async def commit(
        self,
        items: list[ReviewItem],
        on_progress: ProgressCallback | None = None,
        should_stop: StopCheck | None = None,
    ) -> CommitResult:
        """Write every active item in ``items``.

        ``on_progress(n, total)`` is called after each attempt.
        ``should_stop`` is polled between items; once it returns True the
        loop ends without starting another item.
        """
        active = [item for item in items if item.is_active]
        total = len(active)
        result = CommitResult()

        for index, item in enumerate(active):
            if should_stop is not None and should_stop():
                logger.info("Commit stopped after %d of %d items", index, total)
                result.stopped = True
                break
            try:
                self._commit_item(item)
            except Exception as e:
                logger.warning("Failed to save item: %s", item.name, exc_info=True)
                result.failures.append((item, e))
            else:
                result.committed.append(item)
                self._clear_shopping_entry(item)
            if on_progress is not None:
                on_progress(index + 1, total)
            await asyncio.sleep(0)

        logger.info(
            "Committed %d of %d items (%d failed)",
            result.succeeded_count, total, len(result.failures),
        )
        return result

    def _commit_item(self, item: ReviewItem) -> None:
        today = self._today or date.today()
        quantity = parse_quantity(item.quantity)
        total_price = parse_price(item.price)
        unit_price = total_price / quantity if total_price is not None else None

        with self._store.transaction():
            if item.match_type is MatchType.UPDATE_EXISTING:
                if item.matched_record_id is None:
                    raise CommitError(f"{item.name!r} has no matched record")
                item_id = item.matched_record_id
                self._store.adjust_quantity(item_id, float(quantity))
                if item.expiry_date is not None:
                    self._store.update_expiry(item_id, item.expiry_date)
                self._store.update_purchase_date(item_id, today)
                if item.barcode.strip():
                    self._store.update_barcode(item_id, item.barcode.strip())
            else:
                item_id = self._store.insert(
                    item.name,
                    float(quantity),
                    category_id=self._category_id(item),
                    unit_id=self._unit_id(item),
                    location_id=self._storage_location_id(item),
                    expiry_date=item.expiry_date,
                    purchase_date=today,
                    barcode=item.barcode.strip() or None,
                )
            self._store.record_purchase(
                item_id,
                float(quantity),
                today,
                self._note,
                unit_price=_to_float(unit_price),
                total_price=_to_float(total_price),
            )

    def _lookup_defaults(self, item: ReviewItem):
        if self._defaults is None:
            return None
        return self._defaults.lookup(item.name)

    def _category_id(self, item: ReviewItem) -> int | None:
        if item.category.strip():
            return self._store.find_category(item.category)
        defaults = self._lookup_defaults(item)
        if defaults is not None and defaults.category:
            return self._store.find_category(defaults.category)
        return None

    def _unit_id(self, item: ReviewItem) -> int | None:
        if item.unit.strip():
            return self._store.find_unit(item.unit)
        defaults = self._lookup_defaults(item)
        if defaults is not None and defaults.unit:
            return self._store.find_unit(defaults.unit)
        return None

    def _storage_location_id(self, item: ReviewItem) -> int | None:
        # An area's location wins over the item's default location.
        if self._location_id is not None:
            return self._location_id
        if item.storage_location:
            return self._store.find_location(item.storage_location)
        return None

    def _clear_shopping_entry(self, item: ReviewItem) -> None:
        if self._shopping is None:
            return
        try:
            self._shopping.mark_purchased_by_name(item.name)
        except Exception:
            logger.warning(
                "Failed to update shopping list for %s", item.name, exc_info=True
            )


def _to_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None
