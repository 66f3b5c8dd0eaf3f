"""
Vector Store abstraction.

VectorIndex is the raw backend (vectors in, matches out). Implementations:
Pinecone (cloud) and an in-memory index (local runs and tests). Swap via
config.

VectorStoreAdapter wraps a backend with the embedding cache to offer
text-in operations: exists / upsert (write-once) / query / delete.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol, Union

from ..engine.models.vector import (
    JournalMetadata,
    MediaMetadata,
    VectorMatch,
    VectorRecord,
)
from ..engine.utils.similarity import clamp_similarity, cosine_similarity
from ..errors import ProviderError, StoreError
from ..events import EventSink, LoggingEventSink, PipelineEvent
from .embedding_cache import EmbeddingCache

logger = logging.getLogger(__name__)

MetadataInput = Union[MediaMetadata, JournalMetadata, Dict[str, Any]]


class VectorIndex(Protocol):
    """Protocol for the vector backend. Implement for Pinecone (cloud) or in-memory (local)."""

    async def upsert(self, records: List[VectorRecord]) -> None:
        """Write records (overwrites by id)."""
        ...

    async def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """Nearest neighbours with metadata, best first."""
        ...

    async def fetch(self, ids: List[str]) -> Dict[str, VectorRecord]:
        """Records for the ids that exist."""
        ...

    async def delete(self, ids: List[str]) -> None:
        """Remove records by id."""
        ...


def _flat_metadata(metadata: Optional[MetadataInput]) -> Dict[str, Any]:
    if metadata is None:
        return {}
    if isinstance(metadata, (MediaMetadata, JournalMetadata)):
        return metadata.to_flat()
    return {k: v for k, v in metadata.items() if v is not None}


class VectorStoreAdapter:
    """
    Text-in/vector-out operations over a VectorIndex.

    Usage:
        store = VectorStoreAdapter(PineconeIndex(...), EmbeddingCache(provider))
        await store.upsert("tmdb:movie:550", "Fight Club ...", MediaMetadata(...))
        matches = await store.query("journal text", top_k=20)
    """

    def __init__(
        self,
        index: VectorIndex,
        cache: EmbeddingCache,
        events: Optional[EventSink] = None,
    ):
        if cache is None:
            raise ValueError("cache is required")
        self._index = index
        self._cache = cache
        self._events = events or LoggingEventSink(logger)

    @property
    def index(self) -> VectorIndex:
        return self._index

    @property
    def cache(self) -> EmbeddingCache:
        return self._cache

    async def embed(self, text: str) -> List[float]:
        """Embedding for text via the cache."""
        return await self._cache.get_or_compute(text)

    async def exists(self, vector_id: str) -> bool:
        """
        Probe the backend for vector_id.

        A backend error counts as "does not exist" (fail open toward
        re-computation); it is reported as an event, not raised.
        """
        try:
            found = await self._index.fetch([vector_id])
            return vector_id in found
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._events.emit(PipelineEvent(
                name="vector_store.exists_failed",
                level=logging.WARNING,
                fields={"id": vector_id},
                error=e,
            ))
            return False

    async def upsert(
        self,
        vector_id: str,
        text: str,
        metadata: Optional[MetadataInput] = None,
    ) -> bool:
        """
        Embed text and write it under vector_id, unless vector_id already exists.

        Returns:
            True if a write happened, False if the id was already stored.

        Raises:
            StoreError: embedding or backend write failed
        """
        if await self.exists(vector_id):
            logger.debug("[vector] upsert skipped, already stored id=%s", vector_id)
            return False
        try:
            vector = await self.embed(text)
        except (ProviderError, ValueError) as e:
            raise StoreError(f"Embedding failed for {vector_id!r}: {e}") from e
        record = VectorRecord(id=vector_id, vector=vector, metadata=_flat_metadata(metadata))
        try:
            await self._index.upsert([record])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise StoreError(f"Upsert failed for {vector_id!r}: {type(e).__name__}: {e}") from e
        logger.debug("[vector] upserted id=%s dims=%d", vector_id, len(vector))
        return True

    async def query(
        self,
        text: str,
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """
        Nearest neighbours of text's embedding, in the order the backend returns them.

        Raises:
            ValueError: top_k < 1
            StoreError: embedding or backend query failed
        """
        if top_k < 1:
            raise ValueError(f"top_k must be >= 1, got {top_k}")
        try:
            vector = await self.embed(text)
        except (ProviderError, ValueError) as e:
            raise StoreError(f"Embedding failed for query: {e}") from e
        try:
            matches = await self._index.query(vector, top_k, filter=filter)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise StoreError(f"Query failed: {type(e).__name__}: {e}") from e
        logger.debug("[vector] query top_k=%d filter=%s returned=%d", top_k, filter, len(matches))
        return matches

    async def delete(self, vector_id: str) -> None:
        """Remove one record. Raises StoreError on failure."""
        try:
            await self._index.delete([vector_id])
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise StoreError(f"Delete failed for {vector_id!r}: {type(e).__name__}: {e}") from e

    async def similarity(self, reference_text: str, other_text: str) -> float:
        """
        Cosine similarity between two texts' cached embeddings.

        Raises:
            StoreError: either embedding failed
        """
        try:
            ref_vec, other_vec = await asyncio.gather(
                self.embed(reference_text), self.embed(other_text)
            )
        except (ProviderError, ValueError) as e:
            raise StoreError(f"Embedding failed for similarity: {e}") from e
        return clamp_similarity(cosine_similarity(ref_vec, other_vec))
