"""
Vector records and their metadata.

Metadata is a tagged union (media item vs. journal entry) with a narrow set of
mandatory fields plus an open attributes map. It is flattened to a
scalar/list mapping for the backing index (Pinecone rejects nested objects
and nulls) and parsed back on read.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .candidate import (
    MEDIA_TYPES,
    SOURCE_JOURNAL,
    TYPE_ENTRY,
    TYPE_MOVIE,
    TYPE_SONG,
    TYPE_VIDEO,
    MovieItem,
    SongItem,
    VideoItem,
    make_vector_id,
)

MetadataValue = Union[str, int, float, bool, List[str]]

_MEDIA_FIELDS = ("source", "type", "native_id", "title", "description", "artwork_url")
_JOURNAL_FIELDS = ("source", "type", "native_id", "user_id", "created_at")


def _scalar_or_list(value: Any) -> Optional[MetadataValue]:
    if value is None:
        return None
    if isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return str(value)


def _flatten(fields: Dict[str, Any], attributes: Dict[str, Any]) -> Dict[str, MetadataValue]:
    out: Dict[str, MetadataValue] = {}
    for key, value in attributes.items():
        v = _scalar_or_list(value)
        if v is not None:
            out[key] = v
    for key, value in fields.items():
        v = _scalar_or_list(value)
        if v is not None:
            out[key] = v
    return out


class MediaMetadata(BaseModel):
    """Metadata of a recommended media item stored for future vector searches."""

    kind: Literal["media"] = "media"
    source: str
    type: str
    native_id: str
    title: str = ""
    description: str = ""
    artwork_url: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def vector_id(self) -> str:
        return make_vector_id(self.source, self.type, self.native_id)

    def to_flat(self) -> Dict[str, MetadataValue]:
        return _flatten({f: getattr(self, f) for f in _MEDIA_FIELDS}, self.attributes)

    @classmethod
    def from_candidate(cls, item: Union[VideoItem, SongItem, MovieItem]) -> "MediaMetadata":
        return cls(
            source=item.source,
            type=item.item_type,
            native_id=item.native_id,
            title=item.title,
            description=item.description,
            artwork_url=item.artwork_url,
            attributes=item.extra_attributes(),
        )

    def to_candidate(
        self, similarity: Optional[float] = None
    ) -> Optional[Union[VideoItem, SongItem, MovieItem]]:
        """Rebuild the candidate item; None for unknown types."""
        attrs = self.attributes
        common = dict(
            source=self.source,
            native_id=self.native_id,
            title=self.title,
            description=self.description,
            artwork_url=self.artwork_url,
            similarity=similarity,
        )
        if self.type == TYPE_VIDEO:
            return VideoItem(
                channel_title=str(attrs.get("channel_title", "")),
                published_at=str(attrs.get("published_at", "")),
                **common,
            )
        if self.type == TYPE_SONG:
            return SongItem(
                channel_title=str(attrs.get("channel_title", "")),
                published_at=str(attrs.get("published_at", "")),
                **common,
            )
        if self.type == TYPE_MOVIE:
            genre_ids = []
            for g in attrs.get("genre_ids") or []:
                try:
                    genre_ids.append(int(g))
                except (TypeError, ValueError):
                    continue
            vote = attrs.get("vote_average")
            return MovieItem(
                release_date=str(attrs.get("release_date", "")),
                vote_average=float(vote) if vote is not None else None,
                genre_ids=genre_ids,
                **common,
            )
        return None


class JournalMetadata(BaseModel):
    """Metadata of an embedded journal entry."""

    kind: Literal["journal"] = "journal"
    source: str = SOURCE_JOURNAL
    type: str = TYPE_ENTRY
    native_id: str
    user_id: str
    created_at: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def vector_id(self) -> str:
        return make_vector_id(self.source, self.type, self.native_id)

    def to_flat(self) -> Dict[str, MetadataValue]:
        return _flatten({f: getattr(self, f) for f in _JOURNAL_FIELDS}, self.attributes)


VectorMetadata = Union[MediaMetadata, JournalMetadata]


def parse_metadata(flat: Optional[Dict[str, Any]]) -> Optional[VectorMetadata]:
    """Parse flat index metadata back into the tagged union; None if unrecognized."""
    if not flat:
        return None
    source = str(flat.get("source") or "")
    item_type = str(flat.get("type") or "")
    native_id = flat.get("native_id")
    if not source or not item_type or native_id is None:
        return None
    if source == SOURCE_JOURNAL:
        attrs = {k: v for k, v in flat.items() if k not in _JOURNAL_FIELDS}
        return JournalMetadata(
            native_id=str(native_id),
            user_id=str(flat.get("user_id") or ""),
            created_at=flat.get("created_at"),
            attributes=attrs,
        )
    attrs = {k: v for k, v in flat.items() if k not in _MEDIA_FIELDS}
    return MediaMetadata(
        source=source,
        type=item_type,
        native_id=str(native_id),
        title=str(flat.get("title") or ""),
        description=str(flat.get("description") or ""),
        artwork_url=flat.get("artwork_url"),
        attributes=attrs,
    )


def media_only_filter() -> Dict[str, Any]:
    """Metadata filter restricting a query to recommendable media records."""
    return {"type": {"$in": list(MEDIA_TYPES)}}


def item_filter(source: str, item_type: str, native_id: str) -> Dict[str, Any]:
    """Metadata filter matching exactly one stored item."""
    return {
        "$and": [
            {"source": {"$eq": source}},
            {"type": {"$eq": item_type}},
            {"native_id": {"$eq": native_id}},
        ]
    }


class VectorRecord(BaseModel):
    """A vector plus metadata under a globally unique id."""

    id: str
    vector: List[float]
    metadata: Dict[str, MetadataValue] = Field(default_factory=dict)


class VectorMatch(BaseModel):
    """One nearest-neighbour hit: id, score, and raw flat metadata."""

    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def parsed_metadata(self) -> Optional[VectorMetadata]:
        return parse_metadata(self.metadata)
