"""
Mood-aware recommendation engine.

Thin facade over the pipeline:
- vector_search: nearest stored media to the journal text
- keyword_search: mood-keyed catalog fallback
- rerank: embedding-based ordering of fallback results
- persist: background embedding and audit writes
- orchestrator: RecommendationOrchestrator.get_recommendations

Implementation lives in models/, utils/, and stages/.
"""

from .models import (
    DEFAULT_CONFIG,
    CandidateItem,
    MoodSignal,
    MovieItem,
    PipelineConfig,
    RecommendationResult,
    SearchMethod,
    SongItem,
    VideoItem,
)
from .stages import BackgroundWriter, RecommendationOrchestrator

__all__ = [
    "BackgroundWriter",
    "CandidateItem",
    "DEFAULT_CONFIG",
    "MoodSignal",
    "MovieItem",
    "PipelineConfig",
    "RecommendationOrchestrator",
    "RecommendationResult",
    "SearchMethod",
    "SongItem",
    "VideoItem",
]
