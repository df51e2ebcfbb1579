"""Database schema definitions and migration helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_VERSION = 1

_DDL = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    sort_order INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS units (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    abbreviation TEXT NOT NULL UNIQUE,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS storage_locations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    sort_order INTEGER NOT NULL DEFAULT 0,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    name_key TEXT NOT NULL,
    quantity REAL NOT NULL DEFAULT 0.0,
    category_id INTEGER REFERENCES categories(id),
    unit_id INTEGER REFERENCES units(id),
    location_id INTEGER REFERENCES storage_locations(id),
    expiry_date TEXT,
    purchase_date TEXT,
    barcode TEXT,
    is_active INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_items_name_key ON items(name_key);
CREATE INDEX IF NOT EXISTS idx_items_expiry ON items(expiry_date);

CREATE TABLE IF NOT EXISTS purchase_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id INTEGER NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    quantity REAL NOT NULL,
    unit_price REAL,
    total_price REAL,
    purchase_date TEXT NOT NULL,
    notes TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_purchase_item ON purchase_history(item_id);

CREATE TABLE IF NOT EXISTS shopping_list (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    item_id INTEGER REFERENCES items(id) ON DELETE SET NULL,
    custom_name TEXT,
    name_key TEXT NOT NULL,
    quantity REAL NOT NULL DEFAULT 1.0,
    is_purchased INTEGER NOT NULL DEFAULT 0,
    purchased_at TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
);

CREATE INDEX IF NOT EXISTS idx_shopping_name_key ON shopping_list(name_key);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER NOT NULL
);
"""

DEFAULT_CATEGORIES: list[str] = [
    "Dairy & Eggs",
    "Meat & Poultry",
    "Seafood",
    "Fruits",
    "Vegetables",
    "Bread & Bakery",
    "Grains & Pasta",
    "Canned Goods",
    "Condiments & Sauces",
    "Spices & Seasonings",
    "Snacks",
    "Beverages",
    "Frozen Foods",
    "Baking Supplies",
    "Oils & Vinegars",
    "International Foods",
    "Baby Food",
    "Pet Food",
    "Other",
]

DEFAULT_UNITS: list[tuple[str, str]] = [
    ("Pieces", "pcs"),
    ("Pack", "pack"),
    ("Bag", "bag"),
    ("Box", "box"),
    ("Bottle", "bottle"),
    ("Can", "can"),
    ("Jar", "jar"),
    ("Container", "cont"),
    ("Carton", "carton"),
    ("Bunch", "bunch"),
    ("Head", "head"),
    ("Loaf", "loaf"),
    ("Dozen", "doz"),
    ("Pound", "lb"),
    ("Ounce", "oz"),
    ("Kilogram", "kg"),
    ("Gram", "g"),
    ("Liter", "L"),
    ("Milliliter", "ml"),
    ("Gallon", "gal"),
    ("Quart", "qt"),
    ("Pint", "pt"),
]

DEFAULT_LOCATIONS: list[str] = [
    "Refrigerator",
    "Freezer",
    "Pantry",
    "Counter",
    "Spice Rack",
    "Wine Cooler",
]


def _seed(conn: sqlite3.Connection) -> None:
    conn.executemany(
        "INSERT OR IGNORE INTO categories (name, sort_order) VALUES (?, ?)",
        [(name, i) for i, name in enumerate(DEFAULT_CATEGORIES)],
    )
    conn.executemany(
        "INSERT OR IGNORE INTO units (name, abbreviation) VALUES (?, ?)",
        DEFAULT_UNITS,
    )
    conn.executemany(
        "INSERT OR IGNORE INTO storage_locations (name, sort_order) VALUES (?, ?)",
        [(name, i) for i, name in enumerate(DEFAULT_LOCATIONS)],
    )


def ensure_schema(db_path: str | Path) -> sqlite3.Connection:
    """Open (or create) the database and ensure the schema is up to date.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        An open sqlite3.Connection with the schema applied.
    """
    db_path = Path(db_path).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    # Check current schema version
    try:
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        current_version = row["version"] if row else 0
    except sqlite3.OperationalError:
        current_version = 0

    if current_version < _SCHEMA_VERSION:
        conn.executescript(_DDL)
        _seed(conn)
        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (_SCHEMA_VERSION,),
        )
        conn.commit()

    return conn
