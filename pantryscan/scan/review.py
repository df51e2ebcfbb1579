"""Editable review items and the identity-keyed review model."""

from __future__ import annotations

import enum
import itertools
from dataclasses import dataclass, replace
from datetime import date

from ..vision import Confidence


class MatchType(str, enum.Enum):
    CREATE_NEW = "create_new"
    UPDATE_EXISTING = "update_existing"
    SKIP = "skip"


@dataclass(frozen=True)
class MatchCandidate:
    """An existing inventory record an item could be merged into."""

    id: int
    name: str
    current_quantity: float
    unit: str | None = None
    category: str | None = None


@dataclass(frozen=True)
class ReviewItem:
    """The user-editable projection of one candidate."""

    name: str
    quantity: str = "1"
    unit: str = ""
    category: str = ""
    confidence: Confidence = Confidence.MEDIUM
    match_type: MatchType = MatchType.CREATE_NEW
    matched_record_id: int | None = None
    candidate_records: tuple[MatchCandidate, ...] = ()
    expiry_date: date | None = None
    is_estimated_expiry: bool = False
    dup_warning: str | None = None
    unit_conflict: str | None = None
    storage_location: str | None = None
    price: str = ""
    barcode: str = ""
    is_reviewed: bool = False

    @property
    def is_active(self) -> bool:
        """True if the item takes part in a commit."""
        return self.match_type is not MatchType.SKIP and bool(self.name.strip())


_key_counter = itertools.count(1)


class ReviewModel:
    """Review items stored by stable key, addressed by position at the edges.

    Commands take a position as shown to the user and translate it to the
    item's key before mutating, so a stale position after a removal can
    only miss, never hit a different item. Out-of-range positions are
    ignored.
    """

    def __init__(self) -> None:
        self._items: dict[int, ReviewItem] = {}
        self._order: list[int] = []

    @classmethod
    def from_items(cls, items: list[ReviewItem]) -> ReviewModel:
        model = cls()
        for item in items:
            model.append(item)
        return model

    def __len__(self) -> int:
        return len(self._order)

    def __bool__(self) -> bool:
        return bool(self._order)

    @property
    def items(self) -> list[ReviewItem]:
        return [self._items[k] for k in self._order]

    def active_items(self) -> list[ReviewItem]:
        return [item for item in self.items if item.is_active]

    def append(self, item: ReviewItem) -> int:
        key = next(_key_counter)
        self._items[key] = item
        self._order.append(key)
        return key

    def key_at(self, index: int) -> int | None:
        if 0 <= index < len(self._order):
            return self._order[index]
        return None

    def index_of(self, key: int) -> int | None:
        try:
            return self._order.index(key)
        except ValueError:
            return None

    def get(self, key: int) -> ReviewItem | None:
        return self._items.get(key)

    def replace_item(self, key: int, **changes) -> ReviewItem | None:
        """Apply field changes to the item with this key, if it still exists."""
        item = self._items.get(key)
        if item is None:
            return None
        updated = replace(item, **changes)
        self._items[key] = updated
        return updated

    def update_at(self, index: int, **changes) -> ReviewItem | None:
        key = self.key_at(index)
        if key is None:
            return None
        return self.replace_item(key, **changes)

    def update_all(self, **changes) -> None:
        for key in self._order:
            self.replace_item(key, **changes)

    def remove_at(self, index: int) -> ReviewItem | None:
        key = self.key_at(index)
        if key is None:
            return None
        self._order.remove(key)
        return self._items.pop(key)

    def change_match_type(
        self, index: int, match_type: MatchType, record_id: int | None = None
    ) -> ReviewItem | None:
        """Switch an item's disposition.

        ``UPDATE_EXISTING`` needs a record from the item's candidate list:
        ``record_id`` if given, else the first candidate. Requests that
        cannot name such a record are ignored.
        """
        key = self.key_at(index)
        if key is None:
            return None
        item = self._items[key]

        if match_type is MatchType.UPDATE_EXISTING:
            candidate_ids = [c.id for c in item.candidate_records]
            if record_id is None:
                record_id = candidate_ids[0] if candidate_ids else None
            if record_id is None or record_id not in candidate_ids:
                return None
            return self.replace_item(
                key, match_type=match_type, matched_record_id=record_id
            )

        return self.replace_item(key, match_type=match_type, matched_record_id=None)
