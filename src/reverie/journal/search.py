"""Semantic search over journal vector records.

There is no index: every query walks the day directories, loads each
``.embedding`` record, filters, scores against the query vector and ranks.
A record that cannot be loaded is skipped and counted; the count surfaces as
a warning on the response instead of failing the query. An entry whose
record does not exist yet is simply not searchable.
"""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from reverie.core.config import Config, get_config
from reverie.core.exceptions import FileIOError, ValidationError
from reverie.core.utils.file_io import read_text_async

from .config import UNSCORED, SearchConfig
from .embeddings import EMBEDDING_SUFFIX, EmbeddingEngine, get_embedding_engine, load_vector_record
from .models import SearchOptions, SearchResponse, SearchResult, VectorRecord
from .paths import resolve_entries_path
from .store import DAY_DIR_RE


def generate_excerpt(text: str, query: str, max_length: int = 200, step: int = 20) -> str:
    """
    Return the window of *text* that mentions the most distinct query words.

    The window is *max_length* characters and slides in *step* increments;
    the first best-scoring window wins. Ellipses mark truncation on either
    side. An empty query yields the leading *max_length* characters.
    """
    if not query or not query.strip():
        return text[:max_length] + ("..." if len(text) > max_length else "")

    query_words = set(query.lower().split())
    text_lower = text.lower()

    best_position = 0
    best_score = 0
    for i in range(0, len(text) - max_length + 1, step):
        window = text_lower[i : i + max_length]
        score = sum(1 for word in query_words if word in window)
        if score > best_score:
            best_score = score
            best_position = i

    excerpt = text[best_position : best_position + max_length]
    if best_position > 0:
        excerpt = "..." + excerpt
    if best_position + max_length < len(text):
        excerpt += "..."
    return excerpt


class SearchService:
    """Read side of the journal: semantic search, recent listings, raw reads.

    Example::

        service = SearchService()
        response = await service.search("lessons about async patterns", SearchOptions(project="reverie"))
        for result in response:
            print(result.score, result.path, result.excerpt)
        if response.warning:
            print(response.warning)
    """

    def __init__(
        self,
        engine: EmbeddingEngine | None = None,
        entries_path: str | Path | None = None,
        config: Config | None = None,
        search_config: SearchConfig | None = None,
    ):
        config = config or get_config()
        self.engine = engine or get_embedding_engine(config)
        self.entries_path = Path(entries_path) if entries_path else resolve_entries_path(config)
        self.config = search_config or SearchConfig.from_config(config)

    async def search(self, query: str, options: SearchOptions | None = None) -> SearchResponse:
        """
        Rank vector records by cosine similarity to *query*.

        Args:
            query: Natural-language query. Must not be blank.
            options: Filters, limit and minimum score.

        Returns:
            SearchResponse sorted by score (descending), never below the minimum score.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query is required and must be a non-empty string")
        options = options or SearchOptions()
        limit = options.limit or self.config.limit
        min_score = self.config.min_score if options.min_score is None else options.min_score

        query_vector = await self.engine.generate_embedding(query)
        records, failed = await self._load_records()

        scored: list[tuple[float, VectorRecord]] = []
        for record in records:
            if not options.matches(record):
                continue
            if len(record.embedding) != len(query_vector):
                logger.warning(
                    f"Skipping {record.path}: embedding has {len(record.embedding)} dimensions, "
                    f"query has {len(query_vector)}"
                )
                failed += 1
                continue
            score = self.engine.cosine_similarity(query_vector, record.embedding)
            if score >= min_score:
                scored.append((score, record))

        # sorted() is stable, so equal scores keep directory order
        scored = sorted(scored, key=lambda pair: pair[0], reverse=True)[:limit]
        results = [
            self._to_result(
                record, score, generate_excerpt(record.text, query, self.config.excerpt_length, self.config.excerpt_step)
            )
            for score, record in scored
        ]
        return SearchResponse(results=results, failed_count=failed)

    async def list_recent(self, options: SearchOptions | None = None) -> SearchResponse:
        """
        List entries newest first, using the same filters as ``search``.

        Every result carries ``UNSCORED`` as its score.
        """
        options = options or SearchOptions()
        limit = options.limit or self.config.limit

        records, failed = await self._load_records()
        matching = [record for record in records if options.matches(record)]
        matching.sort(key=lambda record: record.timestamp, reverse=True)

        results = [
            self._to_result(record, UNSCORED, generate_excerpt(record.text, "", self.config.recent_excerpt_length))
            for record in matching[:limit]
        ]
        return SearchResponse(results=results, failed_count=failed)

    async def read_entry(self, path: str | Path) -> str | None:
        """Return the raw content at *path*, or None if there is no such file."""
        try:
            return await read_text_async(path)
        except FileNotFoundError:
            return None

    async def _load_records(self) -> tuple[list[VectorRecord], int]:
        """Load every vector record under the entries path, counting unusable ones."""
        try:
            day_dirs = sorted(self.entries_path.iterdir())
        except FileNotFoundError:
            # First run: nothing written yet
            return [], 0
        except OSError as e:
            raise FileIOError(f"Failed to read embeddings from {self.entries_path}: {e}") from e

        records: list[VectorRecord] = []
        failed = 0
        for day_dir in day_dirs:
            if not DAY_DIR_RE.match(day_dir.name) or not day_dir.is_dir():
                continue
            try:
                record_paths = sorted(day_dir.glob(f"*{EMBEDDING_SUFFIX}"))
            except OSError as e:
                logger.warning(f"Cannot list {day_dir}: {e}")
                continue

            for record_path in record_paths:
                try:
                    records.append(await load_vector_record(record_path))
                except FileNotFoundError:
                    # Removed between listing and reading
                    continue
                except (OSError, ValueError) as e:
                    logger.warning(f"Failed to load embedding {record_path}: {e}")
                    failed += 1

        return records, failed

    @staticmethod
    def _to_result(record: VectorRecord, score: float, excerpt: str) -> SearchResult:
        return SearchResult(
            path=record.path,
            score=score,
            text=record.text,
            sections=list(record.sections),
            timestamp=record.timestamp,
            excerpt=excerpt,
            project=record.project,
        )
