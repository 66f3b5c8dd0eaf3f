"""
Pinecone vector index for journal and media embeddings.

Requires pinecone[asyncio] (pip install 'pinecone[asyncio]'). The sync client
is only used to resolve the index host (and create the index on first use);
every data-plane call goes through IndexAsyncio.
"""

import asyncio
import logging
import os
import re
from typing import Any, Dict, List, Optional

from pinecone import Pinecone, ServerlessSpec

from ..engine.models.vector import VectorMatch, VectorRecord

logger = logging.getLogger(__name__)

PINECONE_ASYNC_REQUIRED_MSG = (
    "Pinecone asyncio support is required. Install with: pip install 'pinecone[asyncio]'"
)

# Default dimension for OpenAI text-embedding-3-small
DEFAULT_DIMENSION = 1536

# Pinecone upsert request size limit is ~2MB; 100 vectors of 1536 floats is well under it
UPSERT_BATCH_SIZE = 100


def _sanitize(s: str) -> str:
    """Sanitize for Pinecone namespace: no spaces, limited chars."""
    return re.sub(r"[^a-zA-Z0-9_-]", "_", (s or "").replace(".", "_")) or "default"


def _field(obj: Any, name: str) -> Any:
    """Read a field from an SDK object or a plain dict."""
    value = getattr(obj, name, None)
    if value is None and isinstance(obj, dict):
        value = obj.get(name)
    return value


def _reraise_if_async_missing(e: Exception) -> None:
    err_msg = str(e).lower()
    if "asyncio" in err_msg or "additional dependencies" in err_msg:
        raise ImportError(PINECONE_ASYNC_REQUIRED_MSG) from e


class PineconeIndex:
    """
    VectorIndex backed by a Pinecone serverless index (cosine metric).

    Uses PINECONE_API_KEY from env. Index name from PINECONE_INDEX or default.
    All records live in one namespace; record type is carried in metadata.
    """

    DEFAULT_INDEX_NAME = "moodrec-media"
    DEFAULT_NAMESPACE = "moodrec"

    def __init__(
        self,
        api_key: Optional[str] = None,
        index_name: Optional[str] = None,
        namespace: Optional[str] = None,
        dimension: int = DEFAULT_DIMENSION,
        cloud: str = "aws",
        region: str = "us-east-1",
    ):
        self._api_key = (api_key or os.environ.get("PINECONE_API_KEY") or "").strip()
        if not self._api_key:
            raise ValueError("PINECONE_API_KEY is required for PineconeIndex")
        self._index_name = (index_name or os.environ.get("PINECONE_INDEX") or self.DEFAULT_INDEX_NAME).strip()
        self._namespace = _sanitize(namespace or self.DEFAULT_NAMESPACE)
        self._dimension = dimension
        self._cloud = cloud
        self._region = region
        self._client: Optional[Pinecone] = None
        self._index_host: Optional[str] = None

    @property
    def client(self) -> Pinecone:
        if self._client is None:
            self._client = Pinecone(api_key=self._api_key)
        return self._client

    @property
    def index_name(self) -> str:
        return self._index_name

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def is_available(self) -> bool:
        try:
            self.client.list_indexes()
            return True
        except Exception:
            return False

    def _resolve_index_host(self) -> str:
        """Resolve (and if needed create) the index; cached. Blocking: run off the event loop."""
        if self._index_host is not None:
            return self._index_host
        logger.info("[pinecone] resolving index host for %r", self._index_name)
        try:
            if not self.client.has_index(self._index_name):
                logger.info("[pinecone] creating index %r dim=%d", self._index_name, self._dimension)
                self.client.create_index(
                    name=self._index_name,
                    dimension=self._dimension,
                    metric="cosine",
                    spec=ServerlessSpec(cloud=self._cloud, region=self._region),
                )
            desc = self.client.describe_index(self._index_name)
            host = _field(desc, "host")
            if not host:
                raise ValueError(
                    f"Pinecone index {self._index_name!r} has no host; check index exists and API key."
                )
        except Exception as e:
            logger.error("[pinecone] host resolution failed: %s", e)
            raise RuntimeError(
                f"Could not resolve Pinecone index host for {self._index_name!r}: {e}"
            ) from e
        self._index_host = host
        logger.info("[pinecone] index host resolved: %r", host)
        return host

    async def _host(self) -> str:
        if self._index_host is not None:
            return self._index_host
        return await asyncio.to_thread(self._resolve_index_host)

    async def upsert(self, records: List[VectorRecord]) -> None:
        """Upsert records by id, in batches."""
        if not records:
            return
        host = await self._host()
        vectors = [
            {"id": r.id, "values": [float(x) for x in r.vector], "metadata": r.metadata}
            for r in records
        ]
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                for i in range(0, len(vectors), UPSERT_BATCH_SIZE):
                    batch = vectors[i : i + UPSERT_BATCH_SIZE]
                    await idx.upsert(vectors=batch, namespace=self._namespace)
        except Exception as e:
            _reraise_if_async_missing(e)
            raise
        logger.debug("[pinecone] upserted %d vectors namespace=%r", len(vectors), self._namespace)

    async def query(
        self,
        vector: List[float],
        top_k: int,
        filter: Optional[Dict[str, Any]] = None,
    ) -> List[VectorMatch]:
        """
        Query approximate NN by vector. Matches come back best first, with metadata.
        """
        if not vector:
            return []
        host = await self._host()
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                result = await idx.query(
                    vector=[float(x) for x in vector],
                    top_k=top_k,
                    namespace=self._namespace,
                    filter=filter,
                    include_values=False,
                    include_metadata=True,
                )
        except Exception as e:
            _reraise_if_async_missing(e)
            raise
        matches = _field(result, "matches") or []
        out: List[VectorMatch] = []
        for m in matches:
            mid = _field(m, "id")
            mscore = _field(m, "score")
            if mid and mscore is not None:
                out.append(VectorMatch(
                    id=str(mid),
                    score=max(-1.0, min(1.0, float(mscore))),
                    metadata=dict(_field(m, "metadata") or {}),
                ))
        logger.debug("[pinecone] query top_k=%d returned=%d", top_k, len(out))
        return out

    async def fetch(self, ids: List[str]) -> Dict[str, VectorRecord]:
        """Fetch records by id; missing ids are simply absent from the result."""
        if not ids:
            return {}
        host = await self._host()
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                fetched = await idx.fetch(ids=ids, namespace=self._namespace)
        except Exception as e:
            _reraise_if_async_missing(e)
            raise
        out: Dict[str, VectorRecord] = {}
        for vid, record in (_field(fetched, "vectors") or {}).items():
            if not record:
                continue
            values = _field(record, "values")
            if values is None:
                continue
            out[vid] = VectorRecord(
                id=vid,
                vector=list(values),
                metadata=dict(_field(record, "metadata") or {}),
            )
        return out

    async def delete(self, ids: List[str]) -> None:
        if not ids:
            return
        host = await self._host()
        try:
            async with self.client.IndexAsyncio(host=host) as idx:
                await idx.delete(ids=ids, namespace=self._namespace)
        except Exception as e:
            _reraise_if_async_missing(e)
            raise
