"""
Recommendation orchestrator — vector attempt, keyword fallback, re-rank, persist.

    Start → VectorAttempt → (results) → Persist → Done
                          → (skipped / failed / empty) → KeywordAttempt
                                                       → Rerank (when the source text has a vector)
                                                       → Persist → Done

Only NoMoodSignal and AllSourcesUnavailable leave get_recommendations; every
other failure is absorbed, reported as a PipelineEvent, and treated as "this
source produced nothing".
"""

import asyncio
import logging
from typing import Optional, Sequence

from ...errors import AllSourcesUnavailable, NoMoodSignal
from ...events import EventSink, LoggingEventSink, PipelineEvent
from ..models.config import PipelineConfig, resolve_config
from ..models.mood import MoodSignal
from ..models.result import Buckets, RecommendationResult, SearchMethod
from .keyword_search import keyword_search
from .persist import BackgroundWriter, schedule_persist
from .rerank import rerank
from .vector_search import vector_search

logger = logging.getLogger(__name__)


class RecommendationOrchestrator:
    """
    Usage:
        orchestrator = RecommendationOrchestrator(
            mood_store, vector_store, [youtube, tmdb], config=PipelineConfig()
        )
        result = await orchestrator.get_recommendations("user-1")
    """

    def __init__(
        self,
        mood_store,
        vector_store=None,
        catalogs: Sequence = (),
        config: Optional[PipelineConfig] = None,
        events: Optional[EventSink] = None,
        writer: Optional[BackgroundWriter] = None,
    ):
        self.mood_store = mood_store
        self.vector_store = vector_store
        self.catalogs = list(catalogs)
        self.config = resolve_config(config)
        self.events = events or LoggingEventSink(logger)
        self.writer = writer or BackgroundWriter(self.events, timeout=self.config.persist_timeout)

    def _emit(self, name: str, level: int = logging.INFO, error: Optional[BaseException] = None, **fields):
        self.events.emit(PipelineEvent(name=name, level=level, fields=fields, error=error))

    async def _source_text(self, signal: MoodSignal) -> str:
        """The journal text behind the signal: inline, else looked up by source id."""
        if signal.source_text.strip():
            return signal.source_text
        if not signal.source_id:
            return ""
        try:
            text = await self.mood_store.find_journal_text(signal.source_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._emit("source_text.lookup_failed", logging.WARNING, e, source_id=signal.source_id)
            return ""
        return (text or "").strip()

    def _has_source_vector(self, signal: MoodSignal, source_text: str) -> bool:
        return self.vector_store is not None and signal.has_vector and bool(source_text)

    async def _vector_attempt(self, signal: MoodSignal, source_text: str, causes: list) -> Optional[Buckets]:
        if not self._has_source_vector(signal, source_text):
            self._emit(
                "vector.skipped",
                user_id=signal.user_id,
                has_vector=signal.has_vector,
                has_text=bool(source_text),
            )
            return None
        try:
            buckets = await vector_search(self.vector_store, source_text, self.config)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            causes.append(e)
            self._emit("vector.failed", logging.WARNING, e, user_id=signal.user_id)
            return None
        if buckets.is_empty:
            self._emit("vector.empty", user_id=signal.user_id)
            return None
        return buckets

    async def get_recommendations(self, user_id: str) -> RecommendationResult:
        """
        Ranked videos, songs, and movies for the user's latest mood.

        Raises:
            NoMoodSignal: the user has no mood signal yet
            AllSourcesUnavailable: the vector attempt did not produce results
                and every catalog adapter failed
        """
        cfg = self.config
        signal = await self.mood_store.find_latest_mood_signal(user_id)
        if signal is None:
            raise NoMoodSignal(user_id)

        source_text = await self._source_text(signal)
        causes: list = []

        buckets = await self._vector_attempt(signal, source_text, causes)
        if buckets is not None:
            method = SearchMethod.VECTOR_SIMILARITY
        else:
            outcome = await keyword_search(self.catalogs, signal, cfg, self.events)
            if outcome.all_failed:
                raise AllSourcesUnavailable(causes + outcome.errors)
            buckets = outcome.buckets
            method = SearchMethod.KEYWORD_ONLY
            if self._has_source_vector(signal, source_text) and not buckets.is_empty:
                buckets, scored = await rerank(buckets, self.vector_store, source_text, cfg, self.events)
                if scored:
                    method = SearchMethod.KEYWORD_RERANKED_VECTOR

        result = RecommendationResult(
            mood_label=signal.label,
            mood_score=signal.score,
            mood_category=signal.category,
            videos=buckets.videos,
            songs=buckets.songs,
            movies=buckets.movies,
            search_method=method,
        )
        logger.info(
            "[orchestrator] user=%s mood=%s method=%s total=%d",
            user_id, signal.label, method.value, result.total_count,
        )

        # Items found by the vector attempt are already stored.
        schedule_persist(
            self.writer,
            signal,
            result,
            cfg,
            vector_store=self.vector_store if method != SearchMethod.VECTOR_SIMILARITY else None,
            mood_store=self.mood_store,
        )
        return result
