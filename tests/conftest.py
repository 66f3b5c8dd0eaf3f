"""
Shared fakes and fixtures.

Every external collaborator (embedding provider, vector store, catalogs,
classifier) has an in-process fake here so tests never touch the network.
"""

import asyncio
import hashlib
from typing import Dict, List, Optional, Sequence

import pytest

from moodrec.engine.models import (
    MediaMetadata,
    MoodClassification,
    MoodSignal,
    MovieItem,
    PipelineConfig,
    SongItem,
    VectorMatch,
    VideoItem,
)
from moodrec.errors import ProviderError, StoreError
from moodrec.events import CollectingEventSink
from moodrec.services import InMemoryMoodStore

FAKE_DIMENSIONS = 8


class FakeEmbeddingProvider:
    """Deterministic embeddings: explicit vectors when given, else derived from a hash of the text."""

    dimensions = FAKE_DIMENSIONS

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, fail_on: Sequence[str] = (), delay: float = 0.0):
        self.vectors = dict(vectors or {})
        self.fail_on = set(fail_on)
        self.delay = delay
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        if self.delay:
            await asyncio.sleep(self.delay)
        if text in self.fail_on:
            raise ProviderError(f"embedding refused for {text!r}")
        if text in self.vectors:
            return list(self.vectors[text])
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [b / 255.0 + 0.01 for b in digest[:FAKE_DIMENSIONS]]


def _filter_native_id(filter: Optional[dict]) -> Optional[str]:
    """native_id from an item_filter(...) clause, None for any other filter."""
    if not filter or "$and" not in filter:
        return None
    for clause in filter["$and"]:
        if "native_id" in clause:
            return clause["native_id"]["$eq"]
    return None


class FakeVectorStore:
    """
    Stand-in for VectorStoreAdapter.

    Media queries (no item filter) return `media_matches` or raise
    `media_error`. Per-item queries return `item_scores[native_id]` when
    present, nothing otherwise; ids in `fail_ids` raise StoreError.
    """

    def __init__(
        self,
        media_matches: Optional[List[VectorMatch]] = None,
        media_error: Optional[BaseException] = None,
        media_delay: float = 0.0,
        item_scores: Optional[Dict[str, float]] = None,
        fail_ids: Sequence[str] = (),
        fallback_similarity: float = 0.5,
    ):
        self.media_matches = list(media_matches or [])
        self.media_error = media_error
        self.media_delay = media_delay
        self.item_scores = dict(item_scores or {})
        self.fail_ids = set(fail_ids)
        self.fallback_similarity = fallback_similarity
        self.query_calls: List[tuple] = []
        self.similarity_calls: List[tuple] = []
        self.upserts: List[tuple] = []

    async def query(self, text, top_k, filter=None):
        self.query_calls.append((text, top_k, filter))
        native_id = _filter_native_id(filter)
        if native_id is None:
            if self.media_delay:
                await asyncio.sleep(self.media_delay)
            if self.media_error is not None:
                raise self.media_error
            return self.media_matches[:top_k]
        if native_id in self.fail_ids:
            raise StoreError(f"query failed for {native_id}")
        if native_id in self.item_scores:
            return [VectorMatch(id=native_id, score=self.item_scores[native_id], metadata={})]
        return []

    async def similarity(self, reference_text, other_text):
        self.similarity_calls.append((reference_text, other_text))
        return self.fallback_similarity

    async def upsert(self, vector_id, text, metadata=None):
        self.upserts.append((vector_id, text, metadata))
        return True


class FakeCatalog:
    """Catalog adapter returning fixed items, or raising `error`, optionally after a delay."""

    def __init__(self, name: str, items=None, error: Optional[BaseException] = None, delay: float = 0.0):
        self.name = name
        self.items = list(items or [])
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    async def fetch_by_mood(self, label, category=None, max_results=10):
        self.calls.append((label, category, max_results))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.items)


class FakeClassifier:
    def __init__(self, result: Optional[MoodClassification] = None, error: Optional[BaseException] = None):
        self.result = result or MoodClassification(label="Happy", score=0.9, category="Positive")
        self.error = error
        self.calls: List[str] = []
        self.is_available = True

    async def classify(self, text):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.result


def make_video(native_id: str, title: str = "", similarity=None) -> VideoItem:
    return VideoItem(native_id=native_id, title=title or f"video {native_id}", similarity=similarity)


def make_song(native_id: str, title: str = "", similarity=None) -> SongItem:
    return SongItem(native_id=native_id, title=title or f"song {native_id}", similarity=similarity)


def make_movie(native_id: str, title: str = "", similarity=None) -> MovieItem:
    return MovieItem(native_id=native_id, title=title or f"movie {native_id}", similarity=similarity)


def media_match(item, score: float) -> VectorMatch:
    """VectorMatch as the store would return it for a persisted item."""
    return VectorMatch(id=item.vector_id, score=score, metadata=MediaMetadata.from_candidate(item).to_flat())


def make_signal(
    user_id: str = "user-1",
    label: str = "Sad",
    source_text: str = "Rough day, nothing went right.",
    source_vector_id: Optional[str] = None,
    signal_id: str = "mood-1",
    source_id: str = "journal-1",
) -> MoodSignal:
    return MoodSignal(
        id=signal_id,
        user_id=user_id,
        label=label,
        score=0.8,
        category="Negative",
        source_text=source_text,
        source_id=source_id,
        source_vector_id=source_vector_id,
        created_at="2026-01-01T00:00:00Z",
    )


@pytest.fixture
def events():
    return CollectingEventSink()


@pytest.fixture
def mood_store():
    return InMemoryMoodStore()


@pytest.fixture
def fast_config():
    """Pipeline config with short timeouts so timeout paths run quickly."""
    return PipelineConfig(vector_timeout=0.2, catalog_timeout=0.2, rerank_timeout=0.2, persist_timeout=0.5)
