"""Data models for the recommendation engine."""

from .candidate import (
    CandidateItem,
    MovieItem,
    SongItem,
    VideoItem,
    make_vector_id,
)
from .config import DEFAULT_CONFIG, PipelineConfig, resolve_config
from .journal import AUDIT_RECORD_TYPE, AuditRecord, JournalEntry, utc_now_iso
from .mood import MoodClassification, MoodSignal
from .result import Buckets, RecommendationResult, SearchMethod
from .vector import (
    JournalMetadata,
    MediaMetadata,
    VectorMatch,
    VectorRecord,
    item_filter,
    media_only_filter,
    parse_metadata,
)

__all__ = [
    "AUDIT_RECORD_TYPE",
    "AuditRecord",
    "Buckets",
    "CandidateItem",
    "DEFAULT_CONFIG",
    "JournalEntry",
    "JournalMetadata",
    "MediaMetadata",
    "MoodClassification",
    "MoodSignal",
    "MovieItem",
    "PipelineConfig",
    "RecommendationResult",
    "SearchMethod",
    "SongItem",
    "VectorMatch",
    "VectorRecord",
    "VideoItem",
    "item_filter",
    "make_vector_id",
    "media_only_filter",
    "parse_metadata",
    "resolve_config",
    "utc_now_iso",
]
