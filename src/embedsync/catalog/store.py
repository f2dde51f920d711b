"""Catalog store: page and section persistence on top of SQLite.

Every mutating helper commits immediately.  A page's unit of work is not
wrapped in a transaction; the NULL checksum written by :func:`upsert_page`
is what marks a page as incomplete until :func:`set_checksum` runs.
"""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import sqlite3
    from collections.abc import Sequence
    from datetime import datetime


class PageState(enum.Enum):
    """Completeness of a stored page relative to its current source."""

    PENDING = "pending"  # checksum is NULL: inserted or purged, never committed
    STALE = "stale"
    FRESH = "fresh"


@dataclass(frozen=True)
class PageRow:
    """A row of the ``page`` table."""

    id: int
    path: str
    checksum: str | None
    parent_page_id: int | None
    version: str | None = None

    def state(self, checksum: str) -> PageState:
        """Classify this row against a freshly computed *checksum*."""
        if self.checksum is None:
            return PageState.PENDING
        if self.checksum != checksum:
            return PageState.STALE
        return PageState.FRESH


def _row_to_page(row: sqlite3.Row | None) -> PageRow | None:
    if row is None:
        return None
    return PageRow(
        id=row["id"],
        path=row["path"],
        checksum=row["checksum"],
        parent_page_id=row["parent_page_id"],
        version=row["version"],
    )


def _dump_meta(meta: dict[str, Any]) -> str:
    # Front matter may carry dates; store them as ISO strings.
    return json.dumps(meta, ensure_ascii=False, default=str)


# ---------------------------------------------------------------------------
# Point lookups
# ---------------------------------------------------------------------------


def get_page_by_path(conn: sqlite3.Connection, path: str) -> PageRow | None:
    """Return the page stored for *path*, or ``None``."""
    row = conn.execute(
        "SELECT id, path, checksum, parent_page_id, version FROM page WHERE path = ? LIMIT 1",
        (path,),
    ).fetchone()
    return _row_to_page(row)


def get_page_by_id(conn: sqlite3.Connection, page_id: int | None) -> PageRow | None:
    """Return the page with primary key *page_id*, or ``None``."""
    if page_id is None:
        return None
    row = conn.execute(
        "SELECT id, path, checksum, parent_page_id, version FROM page WHERE id = ? LIMIT 1",
        (page_id,),
    ).fetchone()
    return _row_to_page(row)


def find_page_id(conn: sqlite3.Connection, path: str | None) -> int | None:
    """Resolve a page path to its id; ``None`` when no such page exists yet."""
    if path is None:
        return None
    row = conn.execute("SELECT id FROM page WHERE path = ? LIMIT 1", (path,)).fetchone()
    return None if row is None else int(row[0])


# ---------------------------------------------------------------------------
# Page mutations
# ---------------------------------------------------------------------------


def update_parent(conn: sqlite3.Connection, page_id: int, parent_id: int | None) -> None:
    """Point *page_id* at a new parent page (or none)."""
    conn.execute("UPDATE page SET parent_page_id = ? WHERE id = ?", (parent_id, page_id))
    conn.commit()


def touch_page(
    conn: sqlite3.Connection,
    page_id: int,
    *,
    page_type: str,
    source: str,
    meta: dict[str, Any],
    version: str,
    refreshed_at: datetime,
) -> None:
    """Refresh the metadata columns of an unchanged page.

    Checksum and sections are left alone.
    """
    conn.execute(
        "UPDATE page SET type = ?, source = ?, meta = ?, version = ?, last_refresh = ? "
        "WHERE id = ?",
        (page_type, source, _dump_meta(meta), version, refreshed_at.isoformat(), page_id),
    )
    conn.commit()


def upsert_page(
    conn: sqlite3.Connection,
    path: str,
    *,
    page_type: str,
    source: str,
    meta: dict[str, Any],
    parent_id: int | None,
    version: str,
    refreshed_at: datetime,
) -> int:
    """Insert or fully overwrite the page for *path* and return its id.

    The checksum is always written as NULL.  On conflict the overwritten
    columns are exactly: checksum, type, source, meta, parent_page_id,
    version, last_refresh.
    """
    conn.execute(
        "INSERT INTO page (checksum, path, type, source, meta, parent_page_id, "
        "version, last_refresh) VALUES (NULL, ?, ?, ?, ?, ?, ?, ?) "
        "ON CONFLICT(path) DO UPDATE SET checksum = excluded.checksum, "
        "type = excluded.type, source = excluded.source, meta = excluded.meta, "
        "parent_page_id = excluded.parent_page_id, version = excluded.version, "
        "last_refresh = excluded.last_refresh",
        (
            path,
            page_type,
            source,
            _dump_meta(meta),
            parent_id,
            version,
            refreshed_at.isoformat(),
        ),
    )
    conn.commit()
    page_id = conn.execute("SELECT id FROM page WHERE path = ?", (path,)).fetchone()[0]
    return int(page_id)


def set_checksum(conn: sqlite3.Connection, page_id: int, checksum: str) -> None:
    """Mark a page as complete by storing its content checksum."""
    conn.execute("UPDATE page SET checksum = ? WHERE id = ?", (checksum, page_id))
    conn.commit()


def sweep_stale_pages(conn: sqlite3.Connection, version: str) -> int:
    """Delete every page not stamped with *version*.  Returns the count.

    Sections go with their page (``ON DELETE CASCADE``).
    """
    cursor = conn.execute(
        "DELETE FROM page WHERE version IS NULL OR version <> ?",
        (version,),
    )
    conn.commit()
    return cursor.rowcount


# ---------------------------------------------------------------------------
# Section mutations
# ---------------------------------------------------------------------------


def delete_sections(conn: sqlite3.Connection, page_id: int) -> int:
    """Purge every section of *page_id*.  Returns the number removed."""
    cursor = conn.execute("DELETE FROM page_section WHERE page_id = ?", (page_id,))
    conn.commit()
    return cursor.rowcount


def insert_section(
    conn: sqlite3.Connection,
    page_id: int,
    *,
    slug: str,
    heading: str,
    content: str,
    token_count: int,
    embedding: Sequence[float],
) -> int:
    """Store one embedded section and return its id."""
    cursor = conn.execute(
        "INSERT INTO page_section (page_id, slug, heading, content, token_count, embedding) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (page_id, slug, heading, content, token_count, json.dumps(list(embedding))),
    )
    conn.commit()
    return int(cursor.lastrowid or 0)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def count_pages(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT count(*) FROM page").fetchone()[0])


def count_sections(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT count(*) FROM page_section").fetchone()[0])


def list_pending_pages(conn: sqlite3.Connection) -> list[str]:
    """Paths of pages still waiting for a successful regeneration."""
    rows = conn.execute(
        "SELECT path FROM page WHERE checksum IS NULL ORDER BY path"
    ).fetchall()
    return [row[0] for row in rows]


def load_sections(conn: sqlite3.Connection, page_id: int) -> list[dict[str, Any]]:
    """Sections of *page_id* in insertion order, embeddings decoded."""
    rows = conn.execute(
        "SELECT id, slug, heading, content, token_count, embedding FROM page_section "
        "WHERE page_id = ? ORDER BY id",
        (page_id,),
    ).fetchall()
    return [
        {
            "id": row["id"],
            "slug": row["slug"],
            "heading": row["heading"],
            "content": row["content"],
            "token_count": row["token_count"],
            "embedding": json.loads(row["embedding"]) if row["embedding"] else [],
        }
        for row in rows
    ]
