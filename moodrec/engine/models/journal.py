"""
Journal entries and recommendation audit records as held by a mood store.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

AUDIT_RECORD_TYPE = "Mood-Based-Media"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class JournalEntry(BaseModel):
    """
    One free-text journal entry.

    vector_id is set once its text is embedded; mood holds the label of the
    latest classification of this entry.
    """

    id: str
    user_id: str
    content: str
    vector_id: Optional[str] = None
    mood: Optional[str] = None
    created_at: str = Field(default_factory=utc_now_iso)


class AuditRecord(BaseModel):
    """Stored copy of a recommendation result, keyed by the mood signal it was computed for."""

    id: str
    user_id: str
    mood_signal_id: str
    type: str = AUDIT_RECORD_TYPE
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: str = Field(default_factory=utc_now_iso)
