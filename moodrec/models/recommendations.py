"""Response models for recommendations and their audit history."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from ..engine.models.candidate import MovieItem, SongItem, VideoItem
from ..engine.models.result import RecommendationResult, SearchMethod


class RecommendationResponse(BaseModel):
    """Wire shape of RecommendationResult."""

    mood_label: str
    mood_score: Optional[float] = None
    mood_category: Optional[str] = None
    videos: List[VideoItem]
    songs: List[SongItem]
    movies: List[MovieItem]
    search_method: SearchMethod
    total_count: int

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls.model_validate(result.model_dump())


class AuditRecordResponse(BaseModel):
    id: str
    mood_signal_id: str
    type: str
    created_at: str
    result: Dict[str, Any]


class HistoryResponse(BaseModel):
    user_id: str
    records: List[AuditRecordResponse]
