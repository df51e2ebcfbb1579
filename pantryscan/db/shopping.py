"""Shopping list storage with quick-add."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .inventory import normalize_name
from .locking import ENTRY_LOCK
from .schema import ensure_schema


class ShoppingListDB:
    """Manages the shopping_list table."""

    def __init__(self, db_path: str | Path = "~/.config/pantryscan/inventory.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _find_active(self, key: str) -> sqlite3.Row | None:
        return self._get_conn().execute(
            """SELECT s.* FROM shopping_list s
               LEFT JOIN items i ON i.id = s.item_id
               WHERE s.is_purchased = 0
                 AND (s.name_key = ? OR (i.name_key = ? AND i.is_active = 1))
               ORDER BY s.id
               LIMIT 1""",
            (key, key),
        ).fetchone()

    def add_or_increment(self, name: str, quantity: float = 1.0) -> tuple[int, bool]:
        """Add an item to the shopping list, or bump an active entry of that name.

        Entries are linked to the inventory record of the same name when one
        exists, otherwise stored under a custom name.

        Returns:
            ``(entry_id, created)``.

        Raises:
            ValueError: If the name is blank.
        """
        key = normalize_name(name)
        if not key:
            raise ValueError("Shopping list item name must not be blank")

        conn = self._get_conn()
        with ENTRY_LOCK:
            existing = self._find_active(key)
            if existing is not None:
                conn.execute(
                    """UPDATE shopping_list
                       SET quantity = quantity + ?,
                           updated_at = datetime('now', 'localtime')
                       WHERE id = ?""",
                    (quantity, existing["id"]),
                )
                conn.commit()
                return existing["id"], False

            item = conn.execute(
                "SELECT id FROM items WHERE name_key = ? AND is_active = 1 ORDER BY id LIMIT 1",
                (key,),
            ).fetchone()
            cur = conn.execute(
                """INSERT INTO shopping_list (item_id, custom_name, name_key, quantity)
                   VALUES (?, ?, ?, ?)""",
                (item["id"] if item else None, None if item else name.strip(), key, quantity),
            )
            conn.commit()
            return cur.lastrowid, True

    def mark_purchased_by_name(self, name: str) -> int:
        """Mark active entries with this name as purchased.

        Returns:
            Number of entries updated.
        """
        key = normalize_name(name)
        if not key:
            return 0
        conn = self._get_conn()
        with ENTRY_LOCK:
            cur = conn.execute(
                """UPDATE shopping_list
                   SET is_purchased = 1,
                       purchased_at = datetime('now', 'localtime'),
                       updated_at = datetime('now', 'localtime')
                   WHERE is_purchased = 0
                     AND (name_key = ?
                          OR item_id IN (SELECT id FROM items WHERE name_key = ?))""",
                (key, key),
            )
            conn.commit()
        return cur.rowcount

    def get_active_items(self) -> list[dict]:
        """Active entries with their display name."""
        rows = self._get_conn().execute(
            """SELECT s.id, s.item_id, COALESCE(i.name, s.custom_name) AS name,
                      s.quantity, s.is_purchased
               FROM shopping_list s
               LEFT JOIN items i ON i.id = s.item_id
               WHERE s.is_purchased = 0
               ORDER BY s.id"""
        ).fetchall()
        return [dict(r) for r in rows]
