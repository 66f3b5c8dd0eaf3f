"""
Embedding Cache

In-process cache of embeddings keyed by a content hash of the input text.
Avoids calling the embedding provider twice for the same text within a
process lifetime.

Cache key: SHA-256 hex digest of the UTF-8 text. Same text always maps to the
same key, and an entry is never replaced once written, so a cached vector is
never stale.

No eviction, no persistence, no cross-process sharing: this is a
de-duplication layer, not a correctness-critical store.
"""

import asyncio
import hashlib
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from .embedding_generator import EmbeddingProvider


def content_hash(text: str) -> str:
    """Stable key for a text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _consume_exception(task: "asyncio.Task") -> None:
    # Mark retrieved so a failure nobody awaited does not warn at GC time
    if not task.cancelled():
        task.exception()


@dataclass
class EmbeddingCacheStats:
    """Counters exposed on the health endpoint."""

    size: int
    hits: int
    misses: int


class EmbeddingCache:
    """
    Content-addressed embedding cache in front of an EmbeddingProvider.

    Usage:
        cache = EmbeddingCache(provider)
        vector = await cache.get_or_compute("hello")   # provider called
        vector = await cache.get_or_compute("hello")   # served from cache

    Concurrent callers asking for the same text share one in-flight
    computation. It runs as its own task, so a caller that is cancelled
    (e.g. by its own timeout) leaves the computation running for the others.
    Should two computations for one key still complete, the first stored
    vector wins and both callers get it.
    """

    def __init__(self, provider: EmbeddingProvider):
        self._provider = provider
        self._entries: Dict[str, List[float]] = {}
        self._inflight: Dict[str, "asyncio.Task[List[float]]"] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def provider(self) -> EmbeddingProvider:
        return self._provider

    def get(self, text: str) -> Optional[List[float]]:
        """Return the cached vector for text, or None. Never calls the provider."""
        return self._entries.get(content_hash(text))

    def __contains__(self, text: str) -> bool:
        return content_hash(text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def _store(self, key: str, vector: List[float]) -> List[float]:
        with self._lock:
            return self._entries.setdefault(key, vector)

    async def get_or_compute(self, text: str) -> List[float]:
        """
        Return the embedding for text, computing it on a miss.

        Raises whatever the provider raises (ProviderError, ValueError); a
        failed computation is not cached.
        """
        key = content_hash(text)
        cached = self._entries.get(key)
        if cached is not None:
            self._hits += 1
            return cached

        loop = asyncio.get_running_loop()
        task = self._inflight.get(key)
        if task is not None and task.get_loop() is loop:
            self._hits += 1
        else:
            self._misses += 1
            task = loop.create_task(self._compute(key, text))
            task.add_done_callback(_consume_exception)
            self._inflight[key] = task
        return await asyncio.shield(task)

    async def _compute(self, key: str, text: str) -> List[float]:
        try:
            vector = await self._provider.embed(text)
            return self._store(key, list(vector))
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    def stats(self) -> EmbeddingCacheStats:
        return EmbeddingCacheStats(size=len(self._entries), hits=self._hits, misses=self._misses)

