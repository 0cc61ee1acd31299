"""Configuration dataclasses for journal storage and search.

These are pure data containers with sensible defaults.
Override them from YAML config, env vars, or constructor args.
"""

from __future__ import annotations

from dataclasses import dataclass

from reverie.core.config import Config

# Score attached to chronological listings, where no similarity was computed
UNSCORED = 1.0


@dataclass
class SearchConfig:
    """Settings for search and retrieval.

    Attributes:
        limit: Maximum results returned per query.
        min_score: Minimum cosine similarity for a search hit.
        excerpt_length: Width of the excerpt window in characters.
        excerpt_step: How far the excerpt window slides per step.
        recent_excerpt_length: Prefix length used for chronological listings.
        recent_days: Default look-back window for recent listings.
    """

    limit: int = 10
    min_score: float = 0.1
    excerpt_length: int = 200
    excerpt_step: int = 20
    recent_excerpt_length: int = 150
    recent_days: int = 30

    @classmethod
    def from_config(cls, config: Config) -> SearchConfig:
        defaults = cls()
        return cls(
            limit=int(config.get("search.limit", defaults.limit)),
            min_score=float(config.get("search.min_score", defaults.min_score)),
            excerpt_length=int(config.get("search.excerpt_length", defaults.excerpt_length)),
            excerpt_step=int(config.get("search.excerpt_step", defaults.excerpt_step)),
            recent_excerpt_length=int(config.get("search.recent_excerpt_length", defaults.recent_excerpt_length)),
            recent_days=int(config.get("search.recent_days", defaults.recent_days)),
        )
