"""
Candidate items — one recommendable media entity (video, song, or movie).

Built from catalog search results or from vector-store metadata. Every variant
carries the provider-native id plus an optional similarity once scored.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

SOURCE_YOUTUBE = "youtube"
SOURCE_TMDB = "tmdb"
SOURCE_JOURNAL = "journal"

TYPE_VIDEO = "video"
TYPE_SONG = "song"
TYPE_MOVIE = "movie"
TYPE_ENTRY = "entry"

MEDIA_TYPES = (TYPE_VIDEO, TYPE_SONG, TYPE_MOVIE)


def make_vector_id(source: str, item_type: str, native_id: str) -> str:
    """Deterministic vector id: same (source, type, native_id) always maps to the same id."""
    return f"{source}:{item_type}:{native_id}"


class _CandidateBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    source: str
    native_id: str
    title: str = ""
    description: str = ""
    artwork_url: Optional[str] = None
    similarity: Optional[float] = Field(default=None, ge=-1.0, le=1.0)

    @property
    def item_type(self) -> str:
        return self.kind  # type: ignore[attr-defined]

    @property
    def vector_id(self) -> str:
        return make_vector_id(self.source, self.item_type, self.native_id)

    @property
    def key(self) -> Tuple[str, str]:
        """(source, type) bucket key."""
        return self.source, self.item_type

    def embed_text(self) -> str:
        """Text used to embed this item when it is persisted to the vector store."""
        parts = [self.title, self.description]
        return "\n".join(p for p in parts if p).strip() or self.native_id

    def with_similarity(self, similarity: Optional[float]) -> "_CandidateBase":
        return self.model_copy(update={"similarity": similarity})

    def extra_attributes(self) -> Dict[str, Any]:
        """Variant-specific fields, stored as open attributes in vector metadata."""
        return {}


class VideoItem(_CandidateBase):
    kind: Literal["video"] = "video"
    source: str = SOURCE_YOUTUBE
    channel_title: str = ""
    published_at: str = ""

    def extra_attributes(self) -> Dict[str, Any]:
        return {"channel_title": self.channel_title, "published_at": self.published_at}


class SongItem(_CandidateBase):
    kind: Literal["song"] = "song"
    source: str = SOURCE_YOUTUBE
    channel_title: str = ""
    published_at: str = ""

    def extra_attributes(self) -> Dict[str, Any]:
        return {"channel_title": self.channel_title, "published_at": self.published_at}


class MovieItem(_CandidateBase):
    kind: Literal["movie"] = "movie"
    source: str = SOURCE_TMDB
    release_date: str = ""
    vote_average: Optional[float] = None
    genre_ids: List[int] = Field(default_factory=list)

    @property
    def overview(self) -> str:
        return self.description

    def extra_attributes(self) -> Dict[str, Any]:
        attrs: Dict[str, Any] = {
            "release_date": self.release_date,
            # Pinecone list metadata must be strings
            "genre_ids": [str(g) for g in self.genre_ids],
        }
        if self.vote_average is not None:
            attrs["vote_average"] = self.vote_average
        return attrs


CandidateItem = Annotated[
    Union[VideoItem, SongItem, MovieItem],
    Field(discriminator="kind"),
]
