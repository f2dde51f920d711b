"""Infrastructure domain — database layer and logging setup."""

from embedsync.infrastructure.db import (
    SCHEMA_VERSION,
    create_schema,
    get_meta,
    open_db,
    set_meta,
)
from embedsync.infrastructure.logs import configure_logging

__all__ = [
    "SCHEMA_VERSION",
    "configure_logging",
    "create_schema",
    "get_meta",
    "open_db",
    "set_meta",
]
