"""
Re-ranker — orders catalog results by semantic closeness to the journal text.

For every item the reference is always the mood signal's source text: the
store is asked for the nearest record restricted to that one item
(top_k=1, filter on source/type/native_id) and the top score becomes the
item's similarity. Items not indexed yet are scored by cosine similarity of
the two cached embeddings instead. A failure while scoring one item gives it
similarity 0.0 and leaves the rest of the bucket untouched.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

from ...events import EventSink, PipelineEvent
from ..models.config import PipelineConfig
from ..models.result import Buckets
from ..models.vector import item_filter
from ..utils.concurrency import gather_bounded, with_timeout
from ..utils.similarity import round_similarity

logger = logging.getLogger(__name__)

FAILED_SCORE = 0.0


async def score_item(store, source_text: str, item) -> float:
    """Similarity of one candidate to the source text."""
    matches = await store.query(
        source_text,
        top_k=1,
        filter=item_filter(item.source, item.item_type, item.native_id),
    )
    if matches:
        return matches[0].score
    return await store.similarity(source_text, item.embed_text())


def sort_by_similarity(items: List) -> List:
    """Stable descending sort; items without a score sort last."""
    return sorted(
        items,
        key=lambda i: i.similarity if i.similarity is not None else float("-inf"),
        reverse=True,
    )


async def rerank(
    buckets: Buckets,
    store,
    source_text: str,
    config: PipelineConfig,
    events: Optional[EventSink] = None,
) -> Tuple[Buckets, bool]:
    """
    Score and reorder every bucket.

    Returns:
        (reranked buckets, True if at least one item received a real score)
    """
    items = buckets.items()
    if not items:
        return buckets, False

    results = await gather_bounded(
        (with_timeout(score_item(store, source_text, it), config.rerank_timeout) for it in items),
        limit=config.max_concurrent_calls,
    )

    scored = []
    any_scored = False
    for item, result in zip(items, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            if events is not None:
                events.emit(PipelineEvent(
                    name="rerank.item_failed",
                    level=logging.WARNING,
                    fields={"id": item.vector_id},
                    error=result,
                ))
            scored.append(item.with_similarity(FAILED_SCORE))
            continue
        any_scored = True
        scored.append(item.with_similarity(round_similarity(result, config.similarity_decimals)))

    partitioned = Buckets.partition(scored)
    reranked = Buckets(
        videos=sort_by_similarity(partitioned.videos),
        songs=sort_by_similarity(partitioned.songs),
        movies=sort_by_similarity(partitioned.movies),
    )
    logger.info("[rerank] items=%d scored=%s", len(items), any_scored)
    return reranked, any_scored
