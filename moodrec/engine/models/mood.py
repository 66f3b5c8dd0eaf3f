"""
Mood models for the classified mood of a journal entry.

MoodSignal is produced upstream (journal ingestion + classifier) and only read
by the orchestrator, which always uses the most recent one per user.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MoodClassification(BaseModel):
    """Raw classifier output: {label, score, category}."""

    label: str = "Neutral"
    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    category: Optional[str] = None


class MoodSignal(BaseModel):
    """
    Structured mood of one journal entry.

    source_vector_id is set when the journal text was embedded at creation
    time; the orchestrator only attempts vector search when it is present.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    label: str
    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    category: Optional[str] = None
    source_text: str = ""
    source_id: str = ""
    source_vector_id: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator("label")
    @classmethod
    def label_not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        return v or "Neutral"

    @property
    def has_vector(self) -> bool:
        return bool(self.source_vector_id)
