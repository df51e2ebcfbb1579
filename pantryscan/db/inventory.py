"""Inventory record store: items, purchase history, lookup tables and settings."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from .locking import ENTRY_LOCK
from .schema import ensure_schema

_RECORD_SELECT = """
SELECT i.id, i.name, i.name_key, i.quantity, i.expiry_date, i.purchase_date,
       i.barcode,
       i.category_id, c.name AS category,
       i.unit_id, u.abbreviation AS unit,
       i.location_id, l.name AS location
  FROM items i
  LEFT JOIN categories c ON c.id = i.category_id
  LEFT JOIN units u ON u.id = i.unit_id
  LEFT JOIN storage_locations l ON l.id = i.location_id
"""


def normalize_name(name: str) -> str:
    """Lower-case a name and collapse runs of whitespace."""
    return " ".join(name.split()).lower()


def _name_variants(key: str) -> list[str]:
    """The key plus simple singular/plural spellings of it."""
    variants = [key, key + "s", key + "es"]
    if key.endswith("es") and len(key) > 3:
        variants.append(key[:-2])
    if key.endswith("s") and len(key) > 2:
        variants.append(key[:-1])
    return variants


def _iso(d: date | str | None) -> str | None:
    if d is None or isinstance(d, str):
        return d
    return d.isoformat()


class InventoryDB:
    """Manages the items and purchase_history tables."""

    def __init__(self, db_path: str | Path = "~/.config/pantryscan/inventory.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def _commit(self) -> None:
        if self._tx_depth == 0:
            self._get_conn().commit()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group several writes; commit on success, roll back on any exception."""
        conn = self._get_conn()
        self._tx_depth += 1
        try:
            yield
        except BaseException:
            self._tx_depth -= 1
            if self._tx_depth == 0:
                conn.rollback()
            raise
        self._tx_depth -= 1
        if self._tx_depth == 0:
            conn.commit()

    # ── Record lookups ───────────────────────────────────────────────

    def find_by_name(self, name: str) -> dict | None:
        """Return the best active record for a name, or None.

        Matching is case- and whitespace-insensitive and accepts a plain
        ``s``/``es`` plural difference. An exact match wins.
        """
        key = normalize_name(name)
        if not key:
            return None
        variants = _name_variants(key)
        placeholders = ", ".join("?" for _ in variants)
        row = self._get_conn().execute(
            f"""{_RECORD_SELECT}
                WHERE i.is_active = 1 AND i.name_key IN ({placeholders})
                ORDER BY CASE WHEN i.name_key = ? THEN 0 ELSE 1 END, i.id
                LIMIT 1""",
            (*variants, key),
        ).fetchone()
        return dict(row) if row else None

    def get_by_id(self, item_id: int) -> dict | None:
        row = self._get_conn().execute(
            f"{_RECORD_SELECT} WHERE i.id = ?", (item_id,)
        ).fetchone()
        return dict(row) if row else None

    def search_by_keyword(self, keyword: str, limit: int = 5) -> list[dict]:
        """Active records whose name contains the keyword, exact match first."""
        key = normalize_name(keyword)
        if not key:
            return []
        escaped = key.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        rows = self._get_conn().execute(
            f"""{_RECORD_SELECT}
                WHERE i.is_active = 1 AND i.name_key LIKE ? ESCAPE '\\'
                ORDER BY CASE WHEN i.name_key = ? THEN 0 ELSE 1 END, i.name
                LIMIT ?""",
            (f"%{escaped}%", key, limit),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_active_items(self) -> list[dict]:
        """Return all active records ordered by name."""
        rows = self._get_conn().execute(
            f"{_RECORD_SELECT} WHERE i.is_active = 1 ORDER BY i.name_key"
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Record writes ────────────────────────────────────────────────

    def insert(
        self,
        name: str,
        quantity: float,
        *,
        category_id: int | None = None,
        unit_id: int | None = None,
        location_id: int | None = None,
        expiry_date: date | str | None = None,
        purchase_date: date | str | None = None,
        barcode: str | None = None,
    ) -> int:
        """Insert a new record and return its id."""
        with ENTRY_LOCK:
            cur = self._get_conn().execute(
                """INSERT INTO items
                   (name, name_key, quantity, category_id, unit_id, location_id,
                    expiry_date, purchase_date, barcode)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    name.strip(),
                    normalize_name(name),
                    quantity,
                    category_id,
                    unit_id,
                    location_id,
                    _iso(expiry_date),
                    _iso(purchase_date),
                    barcode or None,
                ),
            )
            self._commit()
        return cur.lastrowid

    def add_or_increment(
        self,
        name: str,
        quantity: float,
        **fields,
    ) -> tuple[int, bool]:
        """Increment the record with this name, or insert one.

        Returns:
            ``(item_id, created)``.
        """
        with ENTRY_LOCK:
            existing = self.find_by_name(name)
            if existing is not None:
                self.adjust_quantity(existing["id"], quantity)
                return existing["id"], False
            return self.insert(name, quantity, **fields), True

    def adjust_quantity(self, item_id: int, delta: float) -> None:
        """Add ``delta`` to a record's quantity, never going below zero.

        Raises:
            LookupError: If no record has this id.
        """
        cur = self._get_conn().execute(
            """UPDATE items
               SET quantity = MAX(0, quantity + ?),
                   updated_at = datetime('now', 'localtime')
               WHERE id = ?""",
            (delta, item_id),
        )
        if cur.rowcount == 0:
            raise LookupError(f"No inventory item with id {item_id}")
        self._commit()

    def update_expiry(self, item_id: int, expiry: date | str) -> None:
        """Set the expiry date only if the record has none yet."""
        self._get_conn().execute(
            """UPDATE items
               SET expiry_date = ?, updated_at = datetime('now', 'localtime')
               WHERE id = ? AND expiry_date IS NULL""",
            (_iso(expiry), item_id),
        )
        self._commit()

    def update_purchase_date(self, item_id: int, purchased: date | str | None) -> None:
        self._get_conn().execute(
            """UPDATE items
               SET purchase_date = ?, updated_at = datetime('now', 'localtime')
               WHERE id = ?""",
            (_iso(purchased), item_id),
        )
        self._commit()

    def update_barcode(self, item_id: int, barcode: str) -> None:
        self._get_conn().execute(
            """UPDATE items
               SET barcode = ?, updated_at = datetime('now', 'localtime')
               WHERE id = ?""",
            (barcode, item_id),
        )
        self._commit()

    def record_purchase(
        self,
        item_id: int,
        quantity: float,
        purchase_date: date | str,
        note: str = "",
        *,
        unit_price: float | None = None,
        total_price: float | None = None,
    ) -> int:
        """Append a purchase-history entry and return its id."""
        cur = self._get_conn().execute(
            """INSERT INTO purchase_history
               (item_id, quantity, unit_price, total_price, purchase_date, notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (item_id, quantity, unit_price, total_price, _iso(purchase_date), note),
        )
        self._commit()
        return cur.lastrowid

    def get_purchases(self, item_id: int) -> list[dict]:
        rows = self._get_conn().execute(
            "SELECT * FROM purchase_history WHERE item_id = ? ORDER BY id",
            (item_id,),
        ).fetchall()
        return [dict(r) for r in rows]

    # ── Live lookup lists ────────────────────────────────────────────

    def list_categories(self) -> list[str]:
        rows = self._get_conn().execute(
            "SELECT name FROM categories WHERE is_active = 1 ORDER BY sort_order, name"
        ).fetchall()
        return [r["name"] for r in rows]

    def list_units(self) -> list[dict]:
        rows = self._get_conn().execute(
            "SELECT id, name, abbreviation FROM units WHERE is_active = 1 ORDER BY id"
        ).fetchall()
        return [dict(r) for r in rows]

    def find_category(self, name: str) -> int | None:
        """Case-insensitive category lookup by name."""
        row = self._get_conn().execute(
            "SELECT id FROM categories WHERE LOWER(name) = LOWER(?) AND is_active = 1",
            (name.strip(),),
        ).fetchone()
        return row["id"] if row else None

    def find_unit(self, text: str) -> int | None:
        """Unit id by abbreviation, then by name (both case-insensitive)."""
        conn = self._get_conn()
        text = text.strip()
        row = conn.execute(
            "SELECT id FROM units WHERE LOWER(abbreviation) = LOWER(?) AND is_active = 1",
            (text,),
        ).fetchone()
        if row is None:
            row = conn.execute(
                "SELECT id FROM units WHERE LOWER(name) = LOWER(?) AND is_active = 1",
                (text,),
            ).fetchone()
        return row["id"] if row else None

    def find_location(self, name: str) -> int | None:
        row = self._get_conn().execute(
            "SELECT id FROM storage_locations WHERE LOWER(name) = LOWER(?) AND is_active = 1",
            (name.strip(),),
        ).fetchone()
        return row["id"] if row else None

    # ── Settings ─────────────────────────────────────────────────────

    def get_setting_int(self, key: str, default: int = 0) -> int:
        row = self._get_conn().execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return default
        try:
            return int(row["value"])
        except ValueError:
            return default

    def set_setting_int(self, key: str, value: int) -> None:
        self._get_conn().execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, str(value)),
        )
        self._commit()
