"""Catalog domain — pages, sections, and their SQLite persistence."""

from embedsync.catalog.store import (
    PageRow,
    PageState,
    count_pages,
    count_sections,
    delete_sections,
    find_page_id,
    get_page_by_id,
    get_page_by_path,
    insert_section,
    list_pending_pages,
    load_sections,
    set_checksum,
    sweep_stale_pages,
    touch_page,
    update_parent,
    upsert_page,
)

__all__ = [
    "PageRow",
    "PageState",
    "count_pages",
    "count_sections",
    "delete_sections",
    "find_page_id",
    "get_page_by_id",
    "get_page_by_path",
    "insert_section",
    "list_pending_pages",
    "load_sections",
    "set_checksum",
    "sweep_stale_pages",
    "touch_page",
    "update_parent",
    "upsert_page",
]
