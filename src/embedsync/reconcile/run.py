"""Run coordinator: one refresh of the embedding catalog."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from embedsync import __version__
from embedsync.catalog.store import sweep_stale_pages
from embedsync.embeddings.provider import EmbeddingConfig, OpenAIEmbeddingProvider
from embedsync.infrastructure.db import SCHEMA_VERSION, create_schema, open_db, set_meta
from embedsync.reconcile.engine import OutcomeStatus, ReconcileEngine, SourceOutcome
from embedsync.sources.markdown import MarkdownSource
from embedsync.sources.walker import discover

if TYPE_CHECKING:
    from embedsync.config import RunConfig
    from embedsync.embeddings.provider import EmbeddingProvider

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Summary of one refresh run."""

    version: str
    refreshed_at: datetime
    pages_discovered: int = 0
    pages_removed: int = 0
    outcomes: list[SourceOutcome] = field(default_factory=list)

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)

    @property
    def failed(self) -> list[SourceOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def tokens_used(self) -> int:
        return sum(outcome.tokens_used for outcome in self.outcomes)

    @property
    def sections_embedded(self) -> int:
        return sum(outcome.sections_embedded for outcome in self.outcomes)


def new_run_token() -> tuple[str, datetime]:
    """Allocate a fresh version token and timestamp for a run."""
    return uuid.uuid4().hex, datetime.now(tz=timezone.utc)


def generate_embeddings(
    config: RunConfig,
    *,
    provider: EmbeddingProvider | None = None,
) -> RunReport:
    """Reconcile the docs tree in *config* against the catalog.

    Sources are processed one at a time in discovery order.  A failing
    source is recorded in the report and the run moves on; after every
    source has been seen, pages not stamped with this run's version are
    deleted.

    Parameters
    ----------
    config:
        Run configuration.
    provider:
        Embedding provider; defaults to the OpenAI HTTP client built from
        ``config.api_key`` and ``config.model``.

    Returns
    -------
    RunReport
        Per-source outcomes and sweep count.
    """
    if provider is None:
        provider = OpenAIEmbeddingProvider(
            EmbeddingConfig(api_key=config.api_key, model=config.model)
        )

    config.db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = open_db(config.db_path)
    try:
        create_schema(conn)

        version, refreshed_at = new_run_token()
        report = RunReport(version=version, refreshed_at=refreshed_at)

        sources = [
            MarkdownSource(config.docs_root, entry)
            for entry in discover(
                config.docs_root,
                extensions=config.extensions,
                ignored=config.ignored_files,
            )
        ]
        report.pages_discovered = len(sources)
        logger.info("Discovered %d pages", len(sources))

        if config.should_refresh:
            logger.info("Refresh flag set, re-generating all pages")
        else:
            logger.info("Checking which pages are new or have changed")

        engine = ReconcileEngine(
            conn,
            provider,
            version=version,
            refreshed_at=refreshed_at,
            should_refresh=config.should_refresh,
        )
        for source in sources:
            report.outcomes.append(engine.process(source))

        logger.info("Removing old pages and their sections")
        report.pages_removed = sweep_stale_pages(conn, version)

        set_meta(conn, "last_refresh_version", version)
        set_meta(conn, "last_refresh_at", refreshed_at.isoformat())
        set_meta(conn, "embedsync_version", __version__)
        set_meta(conn, "schema_version", SCHEMA_VERSION)

        logger.info("Embedding generation complete")
    finally:
        conn.close()

    return report
