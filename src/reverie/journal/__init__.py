"""Journal persistence and semantic retrieval.

Entries are markdown files in per-day directories; each has a companion
``.embedding`` vector record that makes it searchable.
"""

from .config import SearchConfig
from .embeddings import EmbeddingEngine, get_embedding_engine
from .models import (
    DateRange,
    EmbeddingStatus,
    SearchableText,
    SearchOptions,
    SearchResponse,
    SearchResult,
    VectorRecord,
    WriteResult,
)
from .paths import detect_project_name, resolve_entries_path, resolve_storage_root
from .search import SearchService
from .store import JournalWriter
from .text import extract_searchable_text

__all__ = [
    "DateRange",
    "EmbeddingEngine",
    "EmbeddingStatus",
    "JournalWriter",
    "SearchConfig",
    "SearchOptions",
    "SearchResponse",
    "SearchResult",
    "SearchService",
    "SearchableText",
    "VectorRecord",
    "WriteResult",
    "detect_project_name",
    "extract_searchable_text",
    "get_embedding_engine",
    "resolve_entries_path",
    "resolve_storage_root",
]
