"""Entry store: durable journal writes with best-effort vector records.

Each write is two independent steps: the markdown entry file (must succeed,
or the write fails) and its companion ``.embedding`` record (may fail; the
outcome is reported on the WriteResult, never raised).

Layout::

    <root>/entries/2025-05-31/14-03-22-417851.md
    <root>/entries/2025-05-31/14-03-22-417851.embedding
"""

from __future__ import annotations

import json
import random
import re
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from loguru import logger

from reverie.core.config import Config, get_config
from reverie.core.exceptions import FileIOError, ValidationError
from reverie.core.utils.file_io import frontmatter_value, read_text_async, write_text_async

from .embeddings import ENTRY_SUFFIX, EmbeddingEngine, embedding_path_for, get_embedding_engine, save_vector_record
from .models import EmbeddingStatus, VectorRecord, WriteResult
from .paths import DEFAULT_PROJECT, ProjectDetector, default_detector, detect_project_name, resolve_entries_path
from .text import SECTION_MARKER, extract_searchable_text

DAY_DIR_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
ENTRY_STEM_RE = re.compile(r"^(\d{2})-(\d{2})-(\d{2})-\d{6}$")

# Known section keys and the headings they render under
SECTION_HEADINGS = {
    "user": "User",
    "project_notes": "Project",
    "project": "Project",
    "reflections": "Reflections",
}

_MAX_NAME_ATTEMPTS = 5


def section_heading(key: str) -> str:
    """Heading text for a section key: known keys map to fixed names, others are title-cased."""
    return SECTION_HEADINGS.get(key, key.replace("_", " ").strip().title())


def format_day(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d")


def format_entry_stem(moment: datetime) -> str:
    """``HH-MM-SS-ffffff``: milliseconds scaled to microseconds plus a random component."""
    disambiguator = (moment.microsecond // 1000) * 1000 + random.randint(0, 999)
    return f"{moment:%H-%M-%S}-{disambiguator:06d}"


def format_title(moment: datetime) -> str:
    """Display title such as ``3:04:05 PM - May 31, 2025``."""
    hour = moment.hour % 12 or 12
    return f"{hour}:{moment:%M:%S %p} - {moment:%B} {moment.day}, {moment.year}"


def format_frontmatter(moment: datetime, project: str) -> str:
    """Metadata block. The project is double-quoted so YAML never retypes it (``on``, ``010``)."""
    iso = moment.astimezone().isoformat(timespec="milliseconds")
    return (
        "---\n"
        f'title: "{format_title(moment)}"\n'
        f"date: {iso}\n"
        f"timestamp: {epoch_ms(moment)}\n"
        f"project: {json.dumps(project)}\n"
        "---\n"
    )


def format_entry(content: str, moment: datetime, project: str) -> str:
    """Serialise a plain-content entry."""
    return f"{format_frontmatter(moment, project)}\n{content}\n"


def format_sections(sections: Mapping[str, str | None], moment: datetime, project: str) -> str:
    """Serialise a sectioned entry. Empty or whitespace-only sections are omitted."""
    blocks = [
        f"{SECTION_MARKER}{section_heading(key)}\n\n{value}"
        for key, value in sections.items()
        if value is not None and value.strip()
    ]
    return f"{format_frontmatter(moment, project)}\n" + "\n\n".join(blocks) + "\n"


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def timestamp_from_entry_path(entry_path: Path) -> datetime | None:
    """Recover an entry's creation time (to the second) from its file and day-directory names."""
    stem_match = ENTRY_STEM_RE.match(entry_path.stem)
    day_match = DAY_DIR_RE.match(entry_path.parent.name)
    if not stem_match or not day_match:
        return None
    year, month, day = (int(g) for g in day_match.groups())
    hours, minutes, seconds = (int(g) for g in stem_match.groups())
    try:
        return datetime(year, month, day, hours, minutes, seconds).astimezone()
    except ValueError:
        return None


class JournalWriter:
    """Writes journal entries and their vector records.

    Args:
        engine: Embedding engine. Defaults to the process-wide shared one.
        entries_path: Root of the day directories. Defaults to the resolved entries path.
        working_dir: Directory used for project detection. Defaults to the cwd at write time.
        detector: Repository lookup strategy for project detection.
        config: Configuration source.
    """

    def __init__(
        self,
        engine: EmbeddingEngine | None = None,
        entries_path: str | Path | None = None,
        working_dir: str | Path | None = None,
        detector: ProjectDetector | None = None,
        config: Config | None = None,
    ):
        self.config = config or get_config()
        self.engine = engine or get_embedding_engine(self.config)
        self.entries_path = Path(entries_path) if entries_path else resolve_entries_path(self.config)
        self.working_dir = working_dir
        self.detector = detector

    def _detect_project(self) -> str:
        return detect_project_name(self.working_dir, detector=self.detector or default_detector(self.config))

    async def write_entry(self, content: str) -> WriteResult:
        """Write a plain-content entry."""
        now = datetime.now().astimezone()
        project = self._detect_project()
        return await self._write(format_entry(content, now, project), now, project)

    async def write_thoughts(self, sections: Mapping[str, str | None]) -> WriteResult:
        """
        Write an entry made of named sections.

        Args:
            sections: Section key -> text, rendered in mapping order. Empty
                values are omitted from the file.

        Raises:
            ValidationError: If no sections are supplied.
            FileIOError: If the entry cannot be stored.
        """
        if not sections:
            raise ValidationError("At least one section must be provided")
        now = datetime.now().astimezone()
        project = self._detect_project()
        return await self._write(format_sections(sections, now, project), now, project)

    async def _write(self, formatted: str, moment: datetime, project: str) -> WriteResult:
        day_dir = self.entries_path / format_day(moment)
        self._ensure_directory(day_dir)

        entry_path = await self._write_entry_file(day_dir, moment, formatted)
        status = await self._embed_entry(entry_path, formatted, moment, project)
        return WriteResult(path=entry_path, embedding_status=status, project=project)

    @staticmethod
    def _ensure_directory(dir_path: Path) -> None:
        try:
            dir_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileIOError(f"Failed to create journal directory at {dir_path}: {e}") from e

    @staticmethod
    async def _write_entry_file(day_dir: Path, moment: datetime, formatted: str) -> Path:
        for _ in range(_MAX_NAME_ATTEMPTS):
            entry_path = day_dir / f"{format_entry_stem(moment)}{ENTRY_SUFFIX}"
            try:
                await write_text_async(entry_path, formatted, exclusive=True)
            except FileExistsError:
                logger.debug(f"Entry name collision at {entry_path}, retrying")
                continue
            except OSError as e:
                raise FileIOError(f"Failed to write journal entry at {entry_path}: {e}") from e
            logger.debug(f"Wrote journal entry {entry_path}")
            return entry_path
        raise FileIOError(f"Could not allocate a unique entry name in {day_dir}")

    async def _embed_entry(self, entry_path: Path, content: str, moment: datetime, project: str) -> EmbeddingStatus:
        try:
            extracted = extract_searchable_text(content)
            if not extracted.text.strip():
                return EmbeddingStatus.SKIPPED_EMPTY

            vector = await self.engine.generate_embedding(extracted.text)
            record = VectorRecord(
                embedding=vector,
                text=extracted.text,
                sections=extracted.sections,
                timestamp=epoch_ms(moment),
                path=str(entry_path.resolve()),
                project=project or DEFAULT_PROJECT,
            )
            await save_vector_record(entry_path, record)
            return EmbeddingStatus.CREATED
        except Exception as e:
            logger.warning(f"Failed to generate embedding for {entry_path}: {e}")
            return EmbeddingStatus.FAILED

    async def generate_missing_embeddings(self) -> int:
        """
        Create vector records for entries that lack one.

        Creation time comes from the file and day-directory names (now, if
        unparseable); the project tag from the entry's own metadata (current
        project, if absent). Entries with no searchable text are skipped.

        Returns:
            Number of vector records created.
        """
        if not self.entries_path.is_dir():
            return 0

        created = 0
        for day_dir in sorted(self.entries_path.iterdir()):
            if not DAY_DIR_RE.match(day_dir.name) or not day_dir.is_dir():
                continue

            for entry_path in sorted(day_dir.glob(f"*{ENTRY_SUFFIX}")):
                if embedding_path_for(entry_path).exists():
                    continue

                logger.info(f"Generating missing embedding for {entry_path}")
                try:
                    content = await read_text_async(entry_path)
                except (OSError, ValueError) as e:
                    logger.warning(f"Cannot read {entry_path} for backfill: {e}")
                    continue

                moment = timestamp_from_entry_path(entry_path) or datetime.now().astimezone()
                project = frontmatter_value(content, "project") or self._detect_project()
                status = await self._embed_entry(entry_path, content, moment, project)
                if status is EmbeddingStatus.CREATED:
                    created += 1

        logger.info(f"Backfill created {created} vector record(s) under {self.entries_path}")
        return created
