"""
Mood Store abstraction.

Supplies the latest mood signal per user and the journal text behind it, and
records recommendation results for audit. Implementations: in-memory (tests,
local runs), JSON file, Firestore (production). Swap via config.
"""

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from ..engine.models.journal import AuditRecord, JournalEntry, utc_now_iso
from ..engine.models.mood import MoodClassification, MoodSignal

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class MoodStore(Protocol):
    """Protocol for mood/journal persistence. Implement for memory, JSON file, or Firestore."""

    async def find_latest_mood_signal(self, user_id: str) -> Optional[MoodSignal]:
        """Most recent mood signal for the user, or None if the user has none."""
        ...

    async def find_journal_text(self, source_id: str) -> Optional[str]:
        """Text of the journal entry a mood signal was derived from."""
        ...

    async def create_audit_record(
        self, user_id: str, mood_signal_id: str, payload: Dict[str, Any]
    ) -> str:
        """Store a recommendation result. Returns the record id."""
        ...

    async def create_journal(self, user_id: str, content: str) -> JournalEntry:
        ...

    async def find_journal(self, journal_id: str) -> Optional[JournalEntry]:
        """Journal entry by id, or None."""
        ...

    async def set_journal_vector_id(self, user_id: str, journal_id: str, vector_id: str) -> None:
        ...

    async def set_journal_mood(self, user_id: str, journal_id: str, mood: str) -> None:
        """Record the label of the latest classification on the journal."""
        ...

    async def create_mood_signal(
        self,
        user_id: str,
        classification: MoodClassification,
        journal: JournalEntry,
    ) -> MoodSignal:
        ...

    async def list_journals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[JournalEntry]:
        """Journals for the user, newest first."""
        ...

    async def list_mood_signals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[MoodSignal]:
        """Mood signals for the user, newest first."""
        ...

    async def list_audit_records(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[AuditRecord]:
        """Audit records for the user, newest first."""
        ...


def _new_id() -> str:
    return uuid.uuid4().hex[:20]


def build_mood_signal(
    user_id: str,
    classification: MoodClassification,
    journal: JournalEntry,
    signal_id: Optional[str] = None,
) -> MoodSignal:
    """MoodSignal for a classified journal entry, carrying its text and vector id."""
    return MoodSignal(
        id=signal_id or _new_id(),
        user_id=user_id,
        label=classification.label,
        score=classification.score,
        category=classification.category,
        source_text=journal.content,
        source_id=journal.id,
        source_vector_id=journal.vector_id,
        created_at=utc_now_iso(),
    )


class InMemoryMoodStore:
    """
    Mood store kept in process memory.

    Records are kept in insertion order, so "latest" is the last one written
    for the user even when timestamps collide.
    """

    def __init__(self):
        self._journals: Dict[str, JournalEntry] = {}
        self._moods: List[MoodSignal] = []
        self._audits: List[AuditRecord] = []
        self._lock = threading.Lock()

    # Hook for persistent subclasses; called after every write.
    def _changed(self) -> None:
        pass

    async def find_latest_mood_signal(self, user_id: str) -> Optional[MoodSignal]:
        for signal in reversed(self._moods):
            if signal.user_id == user_id:
                return signal
        return None

    async def find_journal_text(self, source_id: str) -> Optional[str]:
        journal = self._journals.get(source_id)
        return journal.content if journal else None

    async def find_journal(self, journal_id: str) -> Optional[JournalEntry]:
        return self._journals.get(journal_id)

    async def create_audit_record(
        self, user_id: str, mood_signal_id: str, payload: Dict[str, Any]
    ) -> str:
        record = AuditRecord(
            id=_new_id(), user_id=user_id, mood_signal_id=mood_signal_id, payload=payload
        )
        with self._lock:
            self._audits.append(record)
            self._changed()
        return record.id

    async def create_journal(self, user_id: str, content: str) -> JournalEntry:
        content = (content or "").strip()
        if not content:
            raise ValueError("Journal content cannot be empty")
        journal = JournalEntry(id=_new_id(), user_id=user_id, content=content)
        with self._lock:
            self._journals[journal.id] = journal
            self._changed()
        return journal

    def _update_journal(self, user_id: str, journal_id: str, **fields) -> None:
        with self._lock:
            journal = self._journals.get(journal_id)
            if journal is None or journal.user_id != user_id:
                raise KeyError(f"Journal not found: {journal_id}")
            self._journals[journal_id] = journal.model_copy(update=fields)
            self._changed()

    async def set_journal_vector_id(self, user_id: str, journal_id: str, vector_id: str) -> None:
        self._update_journal(user_id, journal_id, vector_id=vector_id)

    async def set_journal_mood(self, user_id: str, journal_id: str, mood: str) -> None:
        self._update_journal(user_id, journal_id, mood=mood)

    async def create_mood_signal(
        self,
        user_id: str,
        classification: MoodClassification,
        journal: JournalEntry,
    ) -> MoodSignal:
        signal = build_mood_signal(user_id, classification, journal)
        with self._lock:
            self._moods.append(signal)
            self._changed()
        return signal

    async def list_journals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[JournalEntry]:
        journals = [j for j in self._journals.values() if j.user_id == user_id]
        return list(reversed(journals))[:limit]

    async def list_mood_signals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[MoodSignal]:
        signals = [s for s in self._moods if s.user_id == user_id]
        return list(reversed(signals))[:limit]

    async def list_audit_records(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[AuditRecord]:
        records = [r for r in self._audits if r.user_id == user_id]
        return list(reversed(records))[:limit]

    # Direct seeding for tests and fixtures.
    def add_mood_signal(self, signal: MoodSignal) -> None:
        with self._lock:
            self._moods.append(signal)
            self._changed()

    def add_journal(self, journal: JournalEntry) -> None:
        with self._lock:
            self._journals[journal.id] = journal
            self._changed()


class JsonMoodStore(InMemoryMoodStore):
    """Mood store backed by a JSON file (e.g. data/moods.json), rewritten after every change."""

    def __init__(self, path: Union[Path, str]):
        super().__init__()
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("[mood_store] could not read %s, starting empty: %s", self._path, e)
            return
        for j in data.get("journals", []):
            journal = JournalEntry.model_validate(j)
            self._journals[journal.id] = journal
        self._moods = [MoodSignal.model_validate(m) for m in data.get("moods", [])]
        self._audits = [AuditRecord.model_validate(a) for a in data.get("recommendations", [])]
        logger.info(
            "[mood_store] loaded %s journals=%d moods=%d recommendations=%d",
            self._path, len(self._journals), len(self._moods), len(self._audits),
        )

    def _changed(self) -> None:
        out = {
            "journals": [j.model_dump(mode="json") for j in self._journals.values()],
            "moods": [m.model_dump(mode="json") for m in self._moods],
            "recommendations": [a.model_dump(mode="json") for a in self._audits],
        }
        with open(self._path, "w") as f:
            json.dump(out, f, indent=2)
