"""
Journal ingestion: store the entry, embed it, classify its mood, and record
the resulting mood signal.

Embedding at creation time is what lets the recommendation pipeline take the
vector path for this entry later; if it fails, the signal is stored without
a vector id and recommendations fall back to catalog search.
"""

import asyncio
import logging
from typing import NamedTuple, Optional

from ..engine.models.candidate import SOURCE_JOURNAL, TYPE_ENTRY, make_vector_id
from ..engine.models.journal import JournalEntry
from ..engine.models.mood import MoodSignal
from ..engine.models.vector import JournalMetadata
from ..errors import JournalNotFound, StoreError
from ..events import EventSink, LoggingEventSink, PipelineEvent
from .mood_classifier import FALLBACK, MoodClassifier
from .mood_store import MoodStore
from .vector_store import VectorStoreAdapter

logger = logging.getLogger(__name__)


def journal_vector_id(journal_id: str) -> str:
    return make_vector_id(SOURCE_JOURNAL, TYPE_ENTRY, journal_id)


class JournalIngestResult(NamedTuple):
    journal: JournalEntry
    mood_signal: MoodSignal


class JournalService:
    def __init__(
        self,
        store: MoodStore,
        vector_store: Optional[VectorStoreAdapter] = None,
        classifier: Optional[MoodClassifier] = None,
        events: Optional[EventSink] = None,
    ):
        self.store = store
        self.vector_store = vector_store
        self.classifier = classifier
        self._events = events or LoggingEventSink(logger)

    async def _embed_journal(self, journal: JournalEntry) -> JournalEntry:
        if self.vector_store is None:
            return journal
        vector_id = journal_vector_id(journal.id)
        metadata = JournalMetadata(
            native_id=journal.id, user_id=journal.user_id, created_at=journal.created_at
        )
        try:
            await self.vector_store.upsert(vector_id, journal.content, metadata)
            await self.store.set_journal_vector_id(journal.user_id, journal.id, vector_id)
        except StoreError as e:
            self._events.emit(PipelineEvent(
                name="journal.embed_failed",
                level=logging.WARNING,
                fields={"journal_id": journal.id},
                error=e,
            ))
            return journal
        return journal.model_copy(update={"vector_id": vector_id})

    async def _classify(self, journal: JournalEntry):
        if self.classifier is None:
            return FALLBACK
        try:
            return await self.classifier.classify(journal.content)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._events.emit(PipelineEvent(
                name="journal.classify_failed",
                level=logging.WARNING,
                fields={"journal_id": journal.id},
                error=e,
            ))
            return FALLBACK

    async def _record_mood(self, journal: JournalEntry, classification) -> JournalIngestResult:
        signal = await self.store.create_mood_signal(journal.user_id, classification, journal)
        await self.store.set_journal_mood(journal.user_id, journal.id, signal.label)
        journal = journal.model_copy(update={"mood": signal.label})
        logger.info(
            "[journal] user=%s journal=%s mood=%s vector=%s",
            journal.user_id, journal.id, signal.label, journal.vector_id,
        )
        return JournalIngestResult(journal=journal, mood_signal=signal)

    async def create_entry(self, user_id: str, content: str) -> JournalIngestResult:
        """
        Create a journal entry and its mood signal.

        Raises:
            ValueError: empty content
        """
        journal = await self.store.create_journal(user_id, content)
        journal, classification = await asyncio.gather(
            self._embed_journal(journal), self._classify(journal)
        )
        return await self._record_mood(journal, classification)

    async def analyze_entry(self, journal_id: str) -> JournalIngestResult:
        """
        Classify an existing journal entry again and record a new mood signal.

        The new signal becomes the user's latest mood. An entry that was never
        embedded is embedded again alongside the classification.

        Raises:
            JournalNotFound: no journal with that id
        """
        journal = await self.store.find_journal(journal_id)
        if journal is None:
            raise JournalNotFound(journal_id)
        if journal.vector_id:
            classification = await self._classify(journal)
        else:
            journal, classification = await asyncio.gather(
                self._embed_journal(journal), self._classify(journal)
            )
        return await self._record_mood(journal, classification)
