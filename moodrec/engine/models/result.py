"""
What one orchestrator run returns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .candidate import (
    SOURCE_TMDB,
    SOURCE_YOUTUBE,
    TYPE_MOVIE,
    TYPE_SONG,
    TYPE_VIDEO,
    CandidateItem,
    MovieItem,
    SongItem,
    VideoItem,
)


class SearchMethod(str, Enum):
    """How the returned candidates were produced."""

    VECTOR_SIMILARITY = "vector_similarity"
    KEYWORD_RERANKED_VECTOR = "keyword_reranked_vector"
    KEYWORD_ONLY = "keyword_only"


class RecommendationResult(BaseModel):
    """Immutable per-request result; total_count is always derived from the buckets."""

    model_config = ConfigDict(frozen=True)

    mood_label: str
    mood_score: Optional[float] = None
    mood_category: Optional[str] = None
    videos: List[VideoItem] = Field(default_factory=list)
    songs: List[SongItem] = Field(default_factory=list)
    movies: List[MovieItem] = Field(default_factory=list)
    search_method: SearchMethod = SearchMethod.KEYWORD_ONLY
    total_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def derive_total_count(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            data["total_count"] = (
                len(data.get("videos") or [])
                + len(data.get("songs") or [])
                + len(data.get("movies") or [])
            )
        return data

    def audit_payload(self) -> dict:
        """JSON-safe payload stored as the audit record."""
        return self.model_dump(mode="json")


BUCKET_KEYS = {
    (SOURCE_YOUTUBE, TYPE_VIDEO): "videos",
    (SOURCE_YOUTUBE, TYPE_SONG): "songs",
    (SOURCE_TMDB, TYPE_MOVIE): "movies",
}


@dataclass
class Buckets:
    """Working per-kind candidate lists while a request is being assembled."""

    videos: List[VideoItem] = field(default_factory=list)
    songs: List[SongItem] = field(default_factory=list)
    movies: List[MovieItem] = field(default_factory=list)

    @classmethod
    def partition(cls, items: Iterable[CandidateItem]) -> "Buckets":
        """Split items by (source, type); items of any other pair are dropped. Order is kept."""
        buckets = cls()
        for item in items:
            name = BUCKET_KEYS.get(item.key)
            if name is not None:
                getattr(buckets, name).append(item)
        return buckets

    def capped(self, limit: int) -> "Buckets":
        return Buckets(self.videos[:limit], self.songs[:limit], self.movies[:limit])

    def merged(self, other: "Buckets") -> "Buckets":
        return Buckets(
            self.videos + other.videos,
            self.songs + other.songs,
            self.movies + other.movies,
        )

    def items(self) -> List[CandidateItem]:
        return [*self.videos, *self.songs, *self.movies]

    @property
    def is_empty(self) -> bool:
        return not (self.videos or self.songs or self.movies)

    def counts(self) -> Dict[str, int]:
        return {"videos": len(self.videos), "songs": len(self.songs), "movies": len(self.movies)}
