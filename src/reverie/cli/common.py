"""Shared setup logic for CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

from reverie.core.config import Config, get_config
from reverie.core.utils.logging import setup_logging, setup_logging_from_config


@dataclass
class CliContext:
    """Lazily builds the journal services so ``--help`` never loads a model."""

    config: Config

    @cached_property
    def search_config(self):
        from reverie.journal.config import SearchConfig

        return SearchConfig.from_config(self.config)

    @cached_property
    def writer(self):
        from reverie.journal.store import JournalWriter

        return JournalWriter(config=self.config)

    @cached_property
    def service(self):
        from reverie.journal.search import SearchService

        return SearchService(config=self.config, search_config=self.search_config)

    @cached_property
    def tools(self):
        from reverie.journal.tools import create_journal_tools

        return {tool.name: tool for tool in create_journal_tools(self.writer, self.service)}


def setup(config_file: str | None, verbose: bool) -> CliContext:
    """Load config and configure logging for one CLI invocation."""
    config = Config(config_file=config_file) if config_file else get_config()
    if verbose:
        setup_logging(level="INFO", log_file=config.get("logging.file") or None)
    else:
        setup_logging_from_config(config)
    return CliContext(config=config)
