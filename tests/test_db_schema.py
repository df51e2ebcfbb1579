"""Tests for database schema creation and seeding."""

from pantryscan.db.schema import (
    _SCHEMA_VERSION,
    DEFAULT_CATEGORIES,
    DEFAULT_LOCATIONS,
    DEFAULT_UNITS,
    ensure_schema,
)


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates all tables."""
    conn = ensure_schema(tmp_path / "test.db")

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert {
        "categories",
        "units",
        "storage_locations",
        "items",
        "purchase_history",
        "shopping_list",
        "settings",
        "schema_version",
    } <= table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    """Schema creates parent directories if they don't exist."""
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_sets_version(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    row = conn.execute("SELECT version FROM schema_version").fetchone()
    assert row["version"] == _SCHEMA_VERSION
    conn.close()


def test_ensure_schema_seeds_lookup_tables(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    categories = [r["name"] for r in conn.execute("SELECT name FROM categories")]
    units = conn.execute("SELECT COUNT(*) AS n FROM units").fetchone()["n"]
    locations = [r["name"] for r in conn.execute("SELECT name FROM storage_locations")]
    assert sorted(categories) == sorted(DEFAULT_CATEGORIES)
    assert units == len(DEFAULT_UNITS)
    assert sorted(locations) == sorted(DEFAULT_LOCATIONS)
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice doesn't error or duplicate seed rows."""
    db_path = tmp_path / "test.db"
    conn1 = ensure_schema(db_path)
    conn1.close()
    conn2 = ensure_schema(db_path)
    count = conn2.execute("SELECT COUNT(*) AS n FROM categories").fetchone()["n"]
    assert count == len(DEFAULT_CATEGORIES)
    versions = conn2.execute("SELECT COUNT(*) AS n FROM schema_version").fetchone()["n"]
    assert versions == 1
    conn2.close()


def test_foreign_keys_enabled(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()
