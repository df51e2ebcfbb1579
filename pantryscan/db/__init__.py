"""SQLite record store for inventory items, purchases and the shopping list."""

from .inventory import InventoryDB, normalize_name
from .locking import ENTRY_LOCK
from .schema import ensure_schema
from .shopping import ShoppingListDB

__all__ = [
    "ENTRY_LOCK",
    "InventoryDB",
    "ShoppingListDB",
    "ensure_schema",
    "normalize_name",
]
