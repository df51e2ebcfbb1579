"""Attribute defaults table for common grocery and household items (singleton)."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class ItemDefaults:
    """Typical attributes of an item, keyed by a lower-case keyword."""

    category: str
    unit: str | None = None
    location: str | None = None
    shelf_life_days: int | None = None


@dataclass(frozen=True)
class CategoryDefaults:
    location: str | None = None
    unit: str | None = None


_WORD_SPLIT = re.compile(r"[ \-_]")


class DefaultsTable:
    """Singleton accessor for the item defaults data.

    Usage:
        table = DefaultsTable.instance()
        defaults = table.lookup("Organic Whole Milk")
    """

    _instance: DefaultsTable | None = None
    _items: dict[str, ItemDefaults]
    _categories: dict[str, CategoryDefaults]

    def __init__(self, data_path: str | Path | None = None) -> None:
        self._items = {}
        self._categories = {}
        self._load(data_path)

    @classmethod
    def instance(cls) -> DefaultsTable:
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    def _load(self, data_path: str | Path | None) -> None:
        if data_path is None:
            data_path = Path(__file__).parent / "data" / "item_defaults.json"
        with open(data_path, encoding="utf-8") as f:
            raw = json.load(f)

        for name, entry in raw.get("categories", {}).items():
            self._categories[name] = CategoryDefaults(
                location=entry.get("location"),
                unit=entry.get("unit"),
            )

        # Later entries override earlier ones with the same keyword
        for entry in raw["items"]:
            self._items[entry["name"].lower()] = ItemDefaults(
                category=entry["category"],
                unit=entry.get("unit"),
                location=entry.get("location"),
                shelf_life_days=entry.get("shelf_life_days"),
            )

    def lookup(self, item_name: str) -> ItemDefaults | None:
        """Look up an item name and return its defaults.

        Case-insensitive. Tries an exact match first, then the longest
        keyword contained in the name, then a keyword containing the name
        (names of 3+ characters), then word-by-word with a naive
        plural-to-singular fallback.
        """
        name = item_name.strip().lower()
        if not name:
            return None

        if name in self._items:
            return self._items[name]

        best: ItemDefaults | None = None
        best_length = 0
        for keyword, defaults in self._items.items():
            if keyword in name and len(keyword) > best_length:
                best = defaults
                best_length = len(keyword)
        if best is not None:
            return best

        if len(name) >= 3:
            for keyword, defaults in self._items.items():
                if name in keyword:
                    return defaults

        words = [w for w in _WORD_SPLIT.split(name) if len(w) >= 3]
        for word in words:
            if word in self._items:
                return self._items[word]
            if word.endswith("s") and len(word) >= 4 and word[:-1] in self._items:
                return self._items[word[:-1]]

        return None

    def category_defaults(self, category: str) -> CategoryDefaults | None:
        """Default location and unit for a category name."""
        return self._categories.get(category)

