"""embedsync CLI entry point."""

from __future__ import annotations

import json
import sqlite3
import sys
from pathlib import Path

import click

from embedsync import __version__


@click.group()
@click.version_option(version=__version__, prog_name="embedsync")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """embedsync - keep documentation embeddings in sync with the docs tree."""
    from embedsync.infrastructure.logs import configure_logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


@main.command()
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--docs-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Documentation directory (default: from config.yml or 'docs/').",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Catalog database (default: .embedsync/embeddings.db).",
)
@click.option(
    "--refresh",
    "should_refresh",
    is_flag=True,
    default=False,
    help="Regenerate every page, ignoring stored checksums.",
)
@click.option(
    "--openai-key",
    envvar="OPENAI_API_KEY",
    default=None,
    help="Embedding API key (default: $OPENAI_API_KEY).",
)
@click.option("--model", default=None, help="Embedding model name.")
def refresh(
    *,
    project: Path | None,
    docs_root: Path | None,
    db_path: Path | None,
    should_refresh: bool,
    openai_key: str | None,
    model: str | None,
) -> None:
    """Embed new and changed pages, and drop pages that disappeared.

    Unchanged pages only get their metadata refreshed.  Use --refresh to
    regenerate everything.
    """
    from embedsync.config import ConfigError, load_config
    from embedsync.embeddings.provider import EmbeddingError
    from embedsync.reconcile.engine import OutcomeStatus
    from embedsync.reconcile.run import generate_embeddings

    project_root = project or Path.cwd()

    try:
        config = load_config(
            project_root,
            docs_root=docs_root,
            db_path=db_path,
            api_key=openai_key,
            model=model,
            should_refresh=should_refresh,
        )
        report = generate_embeddings(config)
    except (ConfigError, EmbeddingError, sqlite3.Error, OSError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Discovered: {report.pages_discovered}")
    click.echo(f"Inserted:   {report.count(OutcomeStatus.INSERTED)}")
    click.echo(f"Resynced:   {report.count(OutcomeStatus.RESYNCED)}")
    click.echo(f"Unchanged:  {report.count(OutcomeStatus.UNCHANGED)}")
    click.echo(f"Reparented: {report.count(OutcomeStatus.REPARENTED)}")
    click.echo(f"Failed:     {len(report.failed)}")
    click.echo(f"Removed:    {report.pages_removed}")
    click.echo(f"Sections:   {report.sections_embedded}")
    click.echo(f"Tokens:     {report.tokens_used}")
    if report.failed:
        click.echo("")
        for outcome in report.failed:
            kind = outcome.error_kind.value if outcome.error_kind else "error"
            click.echo(f"  [ERR] {outcome.path} ({kind}): {outcome.error}")


def _resolve_db_path(project_root: Path, db_path: Path | None) -> Path:
    if db_path is not None:
        return db_path
    from embedsync.config import CONFIG_DIR, DEFAULT_DB_NAME, read_config_file

    raw = read_config_file(project_root)
    value = raw.get("db_path")
    if isinstance(value, str) and value:
        return project_root / value
    return project_root / CONFIG_DIR / DEFAULT_DB_NAME


@main.command()
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Catalog database (default: .embedsync/embeddings.db).",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def status(*, project: Path | None, db_path: Path | None, output_json: bool) -> None:
    """Show catalog statistics and pages waiting for regeneration."""
    from embedsync.catalog.store import count_pages, count_sections, list_pending_pages
    from embedsync.config import ConfigError
    from embedsync.infrastructure.db import get_meta, open_db

    project_root = project or Path.cwd()
    try:
        resolved = _resolve_db_path(project_root, db_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not resolved.exists():
        click.echo("Error: database not found. Run `embedsync refresh` first.", err=True)
        sys.exit(1)

    conn = open_db(resolved)
    try:
        pages_count = count_pages(conn)
        sections_count = count_sections(conn)
        pending = list_pending_pages(conn)
        tokens_total: int = conn.execute(
            "SELECT coalesce(sum(token_count), 0) FROM page_section"
        ).fetchone()[0]
        last_refresh = get_meta(conn, "last_refresh_at", "never")
        last_version = get_meta(conn, "last_refresh_version", "")
        version = get_meta(conn, "embedsync_version", "unknown")
    finally:
        conn.close()

    if output_json:
        data = {
            "version": version,
            "last_refresh": last_refresh,
            "last_refresh_version": last_version,
            "pages_count": pages_count,
            "sections_count": sections_count,
            "tokens_total": tokens_total,
            "pending_pages": pending,
        }
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    from rich.console import Console
    from rich.panel import Panel
    from rich.table import Table

    console = Console()
    console.print(Panel(
        f"Last refresh: {last_refresh}",
        title=f"embedsync v{version}",
        border_style="blue",
    ))
    console.print()

    summary = Table(title="Catalog", show_header=False, box=None, padding=(0, 1))
    summary.add_column("metric", style="cyan")
    summary.add_column("value", justify="right")
    summary.add_row("Pages", str(pages_count))
    summary.add_row("Sections", str(sections_count))
    summary.add_row("Tokens", str(tokens_total))
    summary.add_row("Pending pages", str(len(pending)))
    console.print(summary)

    if pending:
        console.print()
        pending_table = Table(title="Needs regeneration", show_header=False, box=None)
        pending_table.add_column("path", style="yellow")
        for path in pending:
            pending_table.add_row(path)
        console.print(pending_table)
