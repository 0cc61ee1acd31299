"""Journal commands: write, search, recent, read, backfill."""

from __future__ import annotations

import sys

import click

from reverie.core.utils.async_helpers import run_async_safely

from .common import CliContext


def _emit(reply: str) -> None:
    """Print a tool reply; replies starting with ``Error`` exit non-zero."""
    if reply.startswith("Error"):
        click.echo(reply, err=True)
        sys.exit(1)
    click.echo(reply)


@click.command()
@click.option("--user", default=None, help="Observations about the user.")
@click.option("--project-notes", default=None, help="Project learnings.")
@click.option("--reflections", default=None, help="Session retrospective.")
@click.pass_obj
def write(ctx: CliContext, user: str | None, project_notes: str | None, reflections: str | None) -> None:
    """Record a journal entry made of one or more sections."""
    args = {"user": user, "project_notes": project_notes, "reflections": reflections}
    _emit(ctx.tools["process_thoughts"].execute({k: v for k, v in args.items() if v is not None}))


@click.command()
@click.argument("query")
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--section", "sections", multiple=True, help="Only entries with a matching section (repeatable).")
@click.option("--project", default=None, help="Only entries tagged with this project.")
@click.pass_obj
def search(ctx: CliContext, query: str, limit: int, sections: tuple[str, ...], project: str | None) -> None:
    """Semantic search over journal entries."""
    args = {"query": query, "limit": limit, "sections": list(sections) or None, "project": project}
    _emit(ctx.tools["search_journal"].execute(args))


@click.command()
@click.option("--days", default=None, type=int, help="Days to look back. Defaults to search.recent_days.")
@click.option("--limit", default=10, show_default=True, type=int)
@click.option("--project", default=None, help="Only entries tagged with this project.")
@click.pass_obj
def recent(ctx: CliContext, days: int | None, limit: int, project: str | None) -> None:
    """List recent entries, newest first."""
    if days is None:
        days = ctx.search_config.recent_days
    _emit(ctx.tools["list_recent_entries"].execute({"days": days, "limit": limit, "project": project}))


@click.command()
@click.argument("path")
@click.pass_obj
def read(ctx: CliContext, path: str) -> None:
    """Print the raw content of an entry."""
    _emit(ctx.tools["read_journal_entry"].execute({"path": path}))


@click.command()
@click.pass_obj
def backfill(ctx: CliContext) -> None:
    """Create vector records for entries that lack one."""
    created = run_async_safely(ctx.writer.generate_missing_embeddings())
    click.echo(f"Created {created} missing embedding(s).")
