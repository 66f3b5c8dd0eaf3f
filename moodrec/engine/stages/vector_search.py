"""
Vector attempt — nearest stored media items to the journal text.

Queries the vector store with the mood signal's source text, restricted to
media records, and partitions the matches into videos / songs / movies.
"""

import logging
from typing import List

from ..models.config import PipelineConfig
from ..models.result import Buckets
from ..models.vector import MediaMetadata, VectorMatch, media_only_filter
from ..utils.concurrency import with_timeout
from ..utils.similarity import round_similarity

logger = logging.getLogger(__name__)


def buckets_from_matches(matches: List[VectorMatch], config: PipelineConfig) -> Buckets:
    """
    Turn vector matches into capped buckets, keeping backend order.

    Matches without media metadata (journal entries, unknown types) are skipped.
    """
    items = []
    for match in matches:
        meta = match.parsed_metadata()
        if not isinstance(meta, MediaMetadata):
            continue
        item = meta.to_candidate(round_similarity(match.score, config.similarity_decimals))
        if item is not None:
            items.append(item)
    return Buckets.partition(items).capped(config.bucket_cap)


async def vector_search(store, source_text: str, config: PipelineConfig) -> Buckets:
    """
    Run the vector attempt.

    Raises:
        StoreError: embedding or query failed
        asyncio.TimeoutError: the query exceeded config.vector_timeout
    """
    matches = await with_timeout(
        store.query(source_text, top_k=config.vector_top_k, filter=media_only_filter()),
        config.vector_timeout,
    )
    buckets = buckets_from_matches(matches, config)
    logger.info("[vector_search] matches=%d buckets=%s", len(matches), buckets.counts())
    return buckets
