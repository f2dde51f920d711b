"""Tests for embedsync.infrastructure.db — SQLite schema and connection management."""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

import pytest

from embedsync.infrastructure.db import create_schema, get_meta, open_db, set_meta

if TYPE_CHECKING:
    from pathlib import Path


class TestOpenDb:
    """Tests for open_db() connection factory."""

    def test_creates_db_file(self, tmp_path: Path) -> None:
        db_path = tmp_path / ".embedsync" / "embeddings.db"
        db_path.parent.mkdir(parents=True)
        conn = open_db(db_path)
        conn.close()
        assert db_path.exists()

    def test_wal_mode_enabled(self, tmp_path: Path) -> None:
        conn = open_db(tmp_path / "test.db")
        result = conn.execute("PRAGMA journal_mode").fetchone()
        assert result is not None
        assert result[0] == "wal"
        conn.close()

    def test_foreign_keys_per_connection(self, tmp_path: Path) -> None:
        """Each new connection must re-enable foreign_keys."""
        db_path = tmp_path / "test.db"
        conn1 = open_db(db_path)
        conn1.close()
        conn2 = open_db(db_path)
        result = conn2.execute("PRAGMA foreign_keys").fetchone()
        assert result is not None
        assert result[0] == 1
        conn2.close()

    def test_returns_row_factory(self, tmp_path: Path) -> None:
        conn = open_db(tmp_path / "test.db")
        assert conn.row_factory == sqlite3.Row
        conn.close()


class TestCreateSchema:
    """Tests for create_schema() — tables, constraints, cascades."""

    def test_all_tables_exist(self, conn: sqlite3.Connection) -> None:
        tables = {
            row[0]
            for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
        }
        assert {"page", "page_section", "meta"}.issubset(tables)

    def test_idempotent(self, conn: sqlite3.Connection) -> None:
        create_schema(conn)
        create_schema(conn)

    def test_page_path_unique(self, conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO page (path) VALUES (?)", ("a.md",))
        conn.commit()
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute("INSERT INTO page (path) VALUES (?)", ("a.md",))

    def test_checksum_nullable(self, conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO page (path, checksum) VALUES (?, NULL)", ("a.md",))
        row = conn.execute("SELECT checksum FROM page WHERE path = 'a.md'").fetchone()
        assert row["checksum"] is None

    def test_sections_cascade_with_page(self, conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO page (path) VALUES (?)", ("a.md",))
        page_id = conn.execute("SELECT id FROM page").fetchone()[0]
        conn.execute(
            "INSERT INTO page_section (page_id, slug, content) VALUES (?, ?, ?)",
            (page_id, "intro", "Hello"),
        )
        conn.execute("DELETE FROM page WHERE id = ?", (page_id,))
        assert conn.execute("SELECT count(*) FROM page_section").fetchone()[0] == 0

    def test_parent_set_null_on_delete(self, conn: sqlite3.Connection) -> None:
        conn.execute("INSERT INTO page (path) VALUES (?)", ("b.md",))
        parent_id = conn.execute("SELECT id FROM page WHERE path = 'b.md'").fetchone()[0]
        conn.execute(
            "INSERT INTO page (path, parent_page_id) VALUES (?, ?)",
            ("b/c.md", parent_id),
        )
        conn.execute("DELETE FROM page WHERE id = ?", (parent_id,))
        row = conn.execute("SELECT parent_page_id FROM page WHERE path = 'b/c.md'").fetchone()
        assert row["parent_page_id"] is None

    def test_section_requires_page(self, conn: sqlite3.Connection) -> None:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO page_section (page_id, slug, content) VALUES (?, ?, ?)",
                (999, "x", "y"),
            )


class TestMeta:
    def test_get_missing_returns_default(self, conn: sqlite3.Connection) -> None:
        assert get_meta(conn, "nope") is None
        assert get_meta(conn, "nope", "fallback") == "fallback"

    def test_set_then_overwrite(self, conn: sqlite3.Connection) -> None:
        set_meta(conn, "last_refresh_at", "2024-01-01")
        set_meta(conn, "last_refresh_at", "2024-02-02")
        assert get_meta(conn, "last_refresh_at") == "2024-02-02"
