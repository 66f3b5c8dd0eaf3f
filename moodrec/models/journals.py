"""Request/response models for journal entries and mood history."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from ..engine.models.journal import JournalEntry
from ..engine.models.mood import MoodSignal

MAX_JOURNAL_LENGTH = 20000


class JournalCreateRequest(BaseModel):
    """Request body for POST /api/journals."""

    user_id: str = Field(min_length=1)
    content: str = Field(min_length=1, max_length=MAX_JOURNAL_LENGTH)

    @field_validator("user_id", "content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class JournalResponse(BaseModel):
    id: str
    user_id: str
    content: str
    vector_id: Optional[str] = None
    mood: Optional[str] = None
    created_at: str

    @classmethod
    def from_entry(cls, entry: JournalEntry) -> "JournalResponse":
        return cls.model_validate(entry.model_dump())


class MoodSignalResponse(BaseModel):
    id: str
    label: str
    score: Optional[float] = None
    category: Optional[str] = None
    journal_id: str = ""
    embedded: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_signal(cls, signal: MoodSignal) -> "MoodSignalResponse":
        return cls(
            id=signal.id,
            label=signal.label,
            score=signal.score,
            category=signal.category,
            journal_id=signal.source_id,
            embedded=signal.has_vector,
            created_at=signal.created_at,
        )


class JournalCreateResponse(BaseModel):
    journal: JournalResponse
    mood: MoodSignalResponse


class JournalListResponse(BaseModel):
    user_id: str
    journals: List[JournalResponse]


class MoodHistoryResponse(BaseModel):
    user_id: str
    moods: List[MoodSignalResponse]
