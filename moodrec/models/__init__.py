"""Pydantic request/response models for the API."""

from .journals import (
    JournalCreateRequest,
    JournalCreateResponse,
    JournalListResponse,
    JournalResponse,
    MoodHistoryResponse,
    MoodSignalResponse,
)
from .recommendations import AuditRecordResponse, HistoryResponse, RecommendationResponse

__all__ = [
    "AuditRecordResponse",
    "HistoryResponse",
    "JournalCreateRequest",
    "JournalCreateResponse",
    "JournalListResponse",
    "JournalResponse",
    "MoodHistoryResponse",
    "MoodSignalResponse",
    "RecommendationResponse",
]
