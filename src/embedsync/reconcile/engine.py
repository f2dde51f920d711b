"""Reconciliation engine: bring one page of the catalog in line with its source.

For every source the engine picks one of two paths:

* **unchanged** — the stored checksum matches and no refresh is forced.
  Only metadata (and, if it moved, the parent link) is rewritten; no
  embedding calls are made.
* **changed / new / forced** — old sections are purged, the page row is
  upserted with a NULL checksum, every section is embedded and stored, and
  only then is the checksum written back.

A NULL checksum therefore always means "needs regeneration": a failure at
any point of the second path leaves the page in that state for the next run.
"""

from __future__ import annotations

import enum
import logging
import sqlite3
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from embedsync.catalog.store import (
    PageState,
    delete_sections,
    find_page_id,
    get_page_by_id,
    get_page_by_path,
    insert_section,
    set_checksum,
    touch_page,
    update_parent,
    upsert_page,
)
from embedsync.embeddings.provider import EmbeddingError, normalize_input
from embedsync.sources.markdown import SourceLoadError

if TYPE_CHECKING:
    from datetime import datetime

    from embedsync.catalog.store import PageRow
    from embedsync.embeddings.provider import Embedding, EmbeddingProvider
    from embedsync.sources.markdown import LoadedSource, Section

logger = logging.getLogger(__name__)

# Store errors that mean the connection itself is gone; these abort the run.
CONNECTION_ERRORS: tuple[type[Exception], ...] = (
    sqlite3.ProgrammingError,
    sqlite3.InterfaceError,
)

# How much of a failing section to show in the log.
_FAILED_INPUT_PREFIX = 40


class PageSource(Protocol):
    """What the engine needs from a discovered source."""

    type: str
    source: str
    path: str
    parent_path: str | None

    def load(self) -> LoadedSource: ...


class OutcomeStatus(enum.Enum):
    INSERTED = "inserted"
    RESYNCED = "resynced"
    UNCHANGED = "unchanged"
    REPARENTED = "reparented"
    FAILED = "failed"


class ErrorKind(enum.Enum):
    SOURCE_LOAD = "source_load"
    EMBEDDING = "embedding"
    STORE = "store"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class SourceOutcome:
    """Result of reconciling one source."""

    path: str
    status: OutcomeStatus
    sections_embedded: int = 0
    tokens_used: int = 0
    error_kind: ErrorKind | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


class ReconcileEngine:
    """Applies the per-source decision procedure against one connection.

    Parameters
    ----------
    conn:
        Open catalog connection, schema created.
    provider:
        Embedding provider used for changed sections.
    version:
        Token of the current run, stamped on every page touched.
    refreshed_at:
        Timestamp of the current run.
    should_refresh:
        Regenerate every page regardless of its checksum.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        provider: EmbeddingProvider,
        *,
        version: str,
        refreshed_at: datetime,
        should_refresh: bool = False,
    ) -> None:
        self.conn = conn
        self.provider = provider
        self.version = version
        self.refreshed_at = refreshed_at
        self.should_refresh = should_refresh

    def process(self, source: PageSource) -> SourceOutcome:
        """Reconcile *source*; any failure becomes a ``FAILED`` outcome.

        Connection-level store errors are re-raised and abort the run.
        """
        try:
            return self._reconcile(source)
        except CONNECTION_ERRORS:
            raise
        except SourceLoadError as exc:
            return self._failed(source, ErrorKind.SOURCE_LOAD, exc)
        except EmbeddingError as exc:
            return self._failed(source, ErrorKind.EMBEDDING, exc)
        except sqlite3.Error as exc:
            return self._failed(source, ErrorKind.STORE, exc)
        except Exception as exc:
            logger.debug("[%s] unexpected failure", source.path, exc_info=True)
            return self._failed(source, ErrorKind.UNEXPECTED, exc)

    def _failed(self, source: PageSource, kind: ErrorKind, exc: Exception) -> SourceOutcome:
        logger.error(
            "Page '%s' or one/multiple of its page sections failed to store properly. "
            "Page has been marked with null checksum to indicate that it needs to be "
            "re-generated.",
            source.path,
        )
        logger.error("[%s] %s: %s", source.path, kind.value, exc)
        return SourceOutcome(
            path=source.path,
            status=OutcomeStatus.FAILED,
            error_kind=kind,
            error=str(exc),
        )

    def _reconcile(self, source: PageSource) -> SourceOutcome:
        loaded = source.load()
        existing = get_page_by_path(self.conn, source.path)

        if (
            not self.should_refresh
            and existing is not None
            and existing.state(loaded.checksum) is PageState.FRESH
        ):
            return self._refresh_metadata(source, loaded, existing)

        return self._resync(source, loaded, existing)

    def _refresh_metadata(
        self,
        source: PageSource,
        loaded: LoadedSource,
        existing: PageRow,
    ) -> SourceOutcome:
        status = OutcomeStatus.UNCHANGED
        current_parent = get_page_by_id(self.conn, existing.parent_page_id)
        current_parent_path = current_parent.path if current_parent is not None else None

        if current_parent_path != source.parent_path:
            logger.info(
                "[%s] Parent page has changed. Updating to '%s'...",
                source.path,
                source.parent_path,
            )
            parent_id = find_page_id(self.conn, source.parent_path)
            update_parent(self.conn, existing.id, parent_id)
            if parent_id != existing.parent_page_id:
                status = OutcomeStatus.REPARENTED

        touch_page(
            self.conn,
            existing.id,
            page_type=source.type,
            source=source.source,
            meta=loaded.meta,
            version=self.version,
            refreshed_at=self.refreshed_at,
        )
        return SourceOutcome(path=source.path, status=status)

    def _resync(
        self,
        source: PageSource,
        loaded: LoadedSource,
        existing: PageRow | None,
    ) -> SourceOutcome:
        if existing is not None:
            logger.info(
                "[%s] %s old page sections and their embeddings",
                source.path,
                "Refresh flag set, removing" if self.should_refresh else "Docs have changed, removing",
            )
            delete_sections(self.conn, existing.id)

        parent_id = find_page_id(self.conn, source.parent_path)
        page_id = upsert_page(
            self.conn,
            source.path,
            page_type=source.type,
            source=source.source,
            meta=loaded.meta,
            parent_id=parent_id,
            version=self.version,
            refreshed_at=self.refreshed_at,
        )

        logger.info(
            "[%s] Adding %d page sections (with embeddings)",
            source.path,
            len(loaded.sections),
        )
        tokens = 0
        for section in loaded.sections:
            tokens += self._store_section(source.path, page_id, section)

        set_checksum(self.conn, page_id, loaded.checksum)

        return SourceOutcome(
            path=source.path,
            status=OutcomeStatus.INSERTED if existing is None else OutcomeStatus.RESYNCED,
            sections_embedded=len(loaded.sections),
            tokens_used=tokens,
        )

    def _store_section(self, path: str, page_id: int, section: Section) -> int:
        text = normalize_input(section.content)
        try:
            embedding = self._embed(text)
            insert_section(
                self.conn,
                page_id,
                slug=section.slug,
                heading=section.heading,
                content=section.content,
                token_count=embedding.token_count,
                embedding=embedding.vector,
            )
        except Exception:
            logger.error(
                "Failed to generate embeddings for '%s' page section starting with '%s...'",
                path,
                text[:_FAILED_INPUT_PREFIX],
            )
            raise
        return embedding.token_count

    def _embed(self, text: str) -> Embedding:
        try:
            return self.provider.embed(text)
        except EmbeddingError:
            raise
        except Exception as exc:
            # Any provider exception counts as an embedding failure.
            msg = f"Embedding provider raised {type(exc).__name__}: {exc}"
            raise EmbeddingError(msg) from exc
