"""Core data models for the journal write and retrieval paths."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from reverie.core.exceptions import ValidationError


class EmbeddingStatus(Enum):
    """Outcome of producing the companion vector record for an entry."""

    CREATED = "created"
    SKIPPED_EMPTY = "skipped_empty"  # No searchable text; not a failure
    FAILED = "failed"


@dataclass
class SearchableText:
    """Plain text extracted from an entry, plus the section names it came from."""

    text: str
    sections: list[str] = field(default_factory=list)


@dataclass
class VectorRecord:
    """A precomputed embedding stored next to its entry.

    Attributes:
        embedding: The vector produced for ``text``.
        text: Exactly the text that was embedded.
        sections: Section names that contributed text.
        timestamp: Entry creation instant, epoch milliseconds.
        path: Absolute path of the entry file.
        project: Project tag copied from the entry. None for legacy records.
    """

    embedding: list[float]
    text: str
    sections: list[str]
    timestamp: int
    path: str
    project: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.project is None:
            data.pop("project")
        return data

    @classmethod
    def from_dict(cls, data: Any) -> VectorRecord:
        """Build a record from decoded JSON, raising ValueError on any schema mismatch."""
        if not isinstance(data, dict):
            raise ValueError(f"Vector record must be an object, got {type(data).__name__}")

        missing = [key for key in ("embedding", "text", "sections", "timestamp", "path") if key not in data]
        if missing:
            raise ValueError(f"Vector record missing fields: {', '.join(missing)}")

        embedding = data["embedding"]
        if not isinstance(embedding, list) or not embedding:
            raise ValueError("embedding must be a non-empty array")
        if not all(isinstance(x, int | float) and not isinstance(x, bool) for x in embedding):
            raise ValueError("embedding must contain only numbers")

        sections = data["sections"]
        if not isinstance(sections, list) or not all(isinstance(s, str) for s in sections):
            raise ValueError("sections must be an array of strings")

        timestamp = data["timestamp"]
        if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
            raise ValueError("timestamp must be a number")

        if not isinstance(data["text"], str) or not isinstance(data["path"], str):
            raise ValueError("text and path must be strings")

        project = data.get("project")
        if project is not None and not isinstance(project, str):
            raise ValueError("project must be a string when present")

        return cls(
            embedding=[float(x) for x in embedding],
            text=data["text"],
            sections=list(sections),
            timestamp=int(timestamp),
            path=data["path"],
            project=project,
        )


@dataclass
class WriteResult:
    """Outcome of writing one entry.

    The entry file is always durable when a WriteResult exists; the vector
    record is best-effort and reported through ``embedding_status``.
    """

    path: Path
    embedding_status: EmbeddingStatus
    project: str

    @property
    def embedding_path(self) -> Path:
        return self.path.with_suffix(".embedding")

    @property
    def embedding_succeeded(self) -> bool:
        return self.embedding_status is not EmbeddingStatus.FAILED


@dataclass
class DateRange:
    """Inclusive bounds on entry creation time. Either side may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self):
        if self.start and self.end and _epoch_ms(self.start) > _epoch_ms(self.end):
            raise ValidationError("date range start must not be after its end")

    def contains(self, timestamp_ms: int) -> bool:
        if self.start is not None and timestamp_ms < _epoch_ms(self.start):
            return False
        if self.end is not None and timestamp_ms > _epoch_ms(self.end):
            return False
        return True


def _epoch_ms(moment: datetime) -> int:
    # Naive datetimes are interpreted as local time, like entry timestamps
    return int(moment.timestamp() * 1000)


@dataclass
class SearchOptions:
    """Filters and limits shared by ``search`` and ``list_recent``.

    ``None`` for limit/min_score means "use the SearchConfig default".
    """

    limit: int | None = None
    min_score: float | None = None
    sections: list[str] | None = None
    date_range: DateRange | None = None
    project: str | None = None

    def __post_init__(self):
        if self.limit is not None and self.limit < 1:
            raise ValidationError(f"limit must be a positive integer, got {self.limit}")

    def matches(self, record: VectorRecord) -> bool:
        """Apply every supplied filter as a conjunction."""
        if self.project and record.project != self.project:
            return False

        if self.sections:
            wanted = [s.lower() for s in self.sections if s]
            recorded = [s.lower() for s in record.sections]
            if wanted and not any(w in r for w in wanted for r in recorded):
                return False

        if self.date_range and not self.date_range.contains(record.timestamp):
            return False

        return True


@dataclass
class SearchResult:
    """One ranked journal hit.

    Attributes:
        path: Entry file path.
        score: Cosine similarity, or ``UNSCORED`` for chronological listings.
        text: The embedded text of the entry.
        sections: Section names recorded for the entry.
        timestamp: Creation instant, epoch milliseconds.
        excerpt: Best matching window of ``text``.
        project: Project tag, None for legacy records.
    """

    path: str
    score: float
    text: str
    sections: list[str]
    timestamp: int
    excerpt: str
    project: str | None = None

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp / 1000)

    def __repr__(self) -> str:
        return f"SearchResult(path='{self.path}', score={self.score:.3f})"


@dataclass
class SearchResponse:
    """Results plus a non-fatal warning when some vector records could not be loaded."""

    results: list[SearchResult] = field(default_factory=list)
    failed_count: int = 0

    @property
    def warning(self) -> str | None:
        if not self.failed_count:
            return None
        return (
            f"Warning: {self.failed_count} embedding(s) failed to load. "
            "Some entries may not appear in search results."
        )

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self):
        return iter(self.results)
