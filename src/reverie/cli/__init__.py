"""Reverie CLI: write, search and maintain the journal from a terminal."""

import click

from reverie import __version__

from .common import setup


@click.group()
@click.version_option(version=__version__, package_name="reverie")
@click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None, help="YAML/JSON config file.")
@click.option("-v", "--verbose", is_flag=True, help="Log progress to stderr.")
@click.pass_context
def main(ctx: click.Context, config_file: str | None, verbose: bool) -> None:
    """Reverie: a private journal with semantic search."""
    ctx.obj = setup(config_file, verbose)


# Register subcommands
from .journal_cmd import backfill, read, recent, search, write

main.add_command(write)
main.add_command(search)
main.add_command(recent)
main.add_command(read)
main.add_command(backfill)
