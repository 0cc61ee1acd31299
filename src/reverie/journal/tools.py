"""Journal tools: the write/search/read/list contract exposed to agents.

Each tool validates its arguments with a pydantic model before touching the
filesystem, runs the async journal API to completion, and renders a plain-text
reply. Failures come back as ``Error: ...`` strings rather than exceptions.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import pydantic
from loguru import logger
from pydantic import AliasChoices, BaseModel, Field, model_validator

from reverie.core.utils.async_helpers import run_async_safely

from .models import DateRange, SearchOptions, SearchResponse
from .search import SearchService
from .store import JournalWriter


@dataclass
class ToolDefinition:
    """A tool an agent can invoke via function calling."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema
    function: Callable[..., str]
    args_schema: type[BaseModel] | None = None
    permission: str = "read"  # read, write

    @classmethod
    def from_function(
        cls,
        func: Callable[..., str],
        name: str,
        description: str,
        args_schema: type[BaseModel],
        permission: str = "read",
    ) -> ToolDefinition:
        """Create a ToolDefinition whose JSON Schema comes from a pydantic model."""
        schema = args_schema.model_json_schema()
        schema.pop("title", None)
        schema.pop("$defs", None)
        for prop in schema.get("properties", {}).values():
            prop.pop("title", None)
        return cls(
            name=name,
            description=description,
            parameters=schema,
            function=func,
            args_schema=args_schema,
            permission=permission,
        )

    def to_schema(self) -> dict[str, Any]:
        """Name, description and input schema, as tool hosts list them."""
        return {"name": self.name, "description": self.description, "inputSchema": self.parameters}

    def execute(self, arguments: dict[str, Any] | str | None = None) -> str:
        """Validate *arguments* and run the tool, returning its text reply."""
        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments) if arguments.strip() else {}
            except json.JSONDecodeError:
                return f"Error: could not parse arguments: {arguments}"
        arguments = arguments or {}
        if not isinstance(arguments, dict):
            return f"Error: arguments for {self.name} must be an object"

        if self.args_schema is not None:
            try:
                arguments = self.args_schema.model_validate(arguments).model_dump()
            except pydantic.ValidationError as e:
                return f"Error: invalid arguments for {self.name}: {_describe_validation_error(e)}"

        try:
            return self.function(**arguments)
        except Exception as e:
            logger.error(f"Tool {self.name} failed: {e}")
            return f"Error executing {self.name}: {e}"


def _describe_validation_error(error: pydantic.ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


# ── Argument schemas ─────────────────────────────────────────────────


class ProcessThoughtsArgs(BaseModel):
    user: str | None = Field(None, description="Observations about the user - preferences, values, style, domain context")
    project_notes: str | None = Field(
        None,
        validation_alias=AliasChoices("project_notes", "project"),
        description="Project learnings - architecture, decisions, gotchas, failures. Also accepted as `project`.",
    )
    reflections: str | None = Field(None, description="Session retrospective - what worked, what didn't, learnings")

    @model_validator(mode="after")
    def _require_a_section(self):
        if self.user is None and self.project_notes is None and self.reflections is None:
            raise ValueError("At least one section must be provided (user, project_notes or project, or reflections)")
        return self


class SearchJournalArgs(BaseModel):
    query: str = Field(..., min_length=1, description="Natural language search query")
    limit: int = Field(10, ge=1, description="Maximum number of results to return")
    sections: list[str] | None = Field(None, description="Filter by sections: user, project, reflections")
    project: str | None = Field(None, description="Filter by project name")

    @model_validator(mode="after")
    def _query_not_blank(self):
        if not self.query.strip():
            raise ValueError("query must not be blank")
        return self


class ReadEntryArgs(BaseModel):
    path: str = Field(..., min_length=1, description="File path to the journal entry (from search results)")


class ListRecentArgs(BaseModel):
    limit: int = Field(10, ge=1, description="Maximum number of entries to return")
    project: str | None = Field(None, description="Filter by project name; all projects if omitted")
    days: int = Field(30, ge=0, description="Number of days back to search")


# ── Rendering ────────────────────────────────────────────────────────


def _format_results(response: SearchResponse, *, scored: bool) -> str:
    blocks = []
    for i, result in enumerate(response.results, start=1):
        score = f"[Score: {result.score:.3f}] " if scored else ""
        project = f" ({result.project})" if result.project else ""
        blocks.append(
            f"{i}. {score}{result.created_at:%Y-%m-%d}{project}\n"
            f"   Sections: {', '.join(result.sections)}\n"
            f"   Path: {result.path}\n"
            f"   Excerpt: {result.excerpt}\n"
        )
    return "\n".join(blocks)


def _with_warning(text: str, response: SearchResponse) -> str:
    return f"{text}\n\n{response.warning}" if response.warning else text


# ── Tool implementations ─────────────────────────────────────────────


def _process_thoughts(writer: JournalWriter, user=None, project_notes=None, reflections=None) -> str:
    sections = {"user": user, "project_notes": project_notes, "reflections": reflections}
    result = run_async_safely(writer.write_thoughts({k: v for k, v in sections.items() if v is not None}))
    if result.embedding_succeeded:
        return "Thoughts recorded successfully."
    return (
        "Thoughts recorded successfully. "
        "Note: the search embedding could not be generated, so this entry is not searchable until backfilled."
    )


def _search_journal(service: SearchService, query: str, limit: int = 10, sections=None, project=None) -> str:
    options = SearchOptions(limit=limit, sections=sections or None, project=project)
    response = run_async_safely(service.search(query, options))
    if not response.results:
        return _with_warning("No relevant entries found.", response)
    text = f"Found {len(response.results)} relevant entries:\n\n{_format_results(response, scored=True)}"
    return _with_warning(text, response)


def _read_journal_entry(service: SearchService, path: str) -> str:
    content = run_async_safely(service.read_entry(path))
    if content is None:
        return f"Error: Entry not found: {path}"
    return content


def _list_recent_entries(service: SearchService, limit: int = 10, project=None, days: int = 30) -> str:
    start = datetime.now().astimezone() - timedelta(days=days)
    options = SearchOptions(limit=limit, project=project, date_range=DateRange(start=start))
    response = run_async_safely(service.list_recent(options))
    if not response.results:
        return _with_warning(f"No entries found in the last {days} days.", response)
    text = f"Recent entries (last {days} days):\n\n{_format_results(response, scored=False)}"
    return _with_warning(text, response)


def create_journal_tools(writer: JournalWriter, service: SearchService) -> list[ToolDefinition]:
    """Create the process_thoughts, search_journal, read_journal_entry and list_recent_entries tools."""
    return [
        ToolDefinition.from_function(
            func=lambda **kw: _process_thoughts(writer, **kw),
            name="process_thoughts",
            description=(
                "Write to your private journal. Use this to capture learnings and build context "
                "for future sessions. At least one section is required."
            ),
            args_schema=ProcessThoughtsArgs,
            permission="write",
        ),
        ToolDefinition.from_function(
            func=lambda **kw: _search_journal(service, **kw),
            name="search_journal",
            description=(
                "Search through your private journal entries using natural language queries. "
                "Returns semantically similar entries ranked by relevance."
            ),
            args_schema=SearchJournalArgs,
        ),
        ToolDefinition.from_function(
            func=lambda **kw: _read_journal_entry(service, **kw),
            name="read_journal_entry",
            description="Read the full content of a specific journal entry by file path.",
            args_schema=ReadEntryArgs,
        ),
        ToolDefinition.from_function(
            func=lambda **kw: _list_recent_entries(service, **kw),
            name="list_recent_entries",
            description="Get recent journal entries in chronological order.",
            args_schema=ListRecentArgs,
        ),
    ]
