"""
Keyword attempt. Category search across every catalog adapter.

Adapters run concurrently and are isolated from each other: a failure or
timeout in one becomes an empty contribution plus a catalog.fetch_failed
event, never an exception out of this stage.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ...errors import Transient
from ...events import EventSink, PipelineEvent
from ..models.config import PipelineConfig
from ..models.mood import MoodSignal
from ..models.result import Buckets
from ..utils.concurrency import gather_bounded, with_timeout

logger = logging.getLogger(__name__)


@dataclass
class KeywordOutcome:
    buckets: Buckets
    errors: List[BaseException] = field(default_factory=list)
    attempted: int = 0

    @property
    def all_failed(self) -> bool:
        return self.attempted > 0 and len(self.errors) == self.attempted


async def _fetch_one(adapter, signal: MoodSignal, config: PipelineConfig):
    try:
        return await with_timeout(
            adapter.fetch_by_mood(
                signal.label, signal.category, max_results=config.catalog_max_results
            ),
            config.catalog_timeout,
        )
    except asyncio.TimeoutError as e:
        raise Transient(adapter.name, f"timeout after {config.catalog_timeout}s") from e


async def keyword_search(
    adapters: Sequence,
    signal: MoodSignal,
    config: PipelineConfig,
    events: Optional[EventSink] = None,
) -> KeywordOutcome:
    """Fetch from all adapters for the signal's mood and merge into buckets (provider order)."""
    results = await gather_bounded(
        (_fetch_one(a, signal, config) for a in adapters),
        limit=config.max_concurrent_calls,
    )
    outcome = KeywordOutcome(buckets=Buckets(), attempted=len(adapters))
    for adapter, result in zip(adapters, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcome.errors.append(result)
            if events is not None:
                events.emit(PipelineEvent(
                    name="catalog.fetch_failed",
                    level=logging.WARNING,
                    fields={"source": adapter.name, "mood": signal.label},
                    error=result,
                ))
            continue
        outcome.buckets = outcome.buckets.merged(Buckets.partition(result))
    logger.info(
        "[keyword_search] mood=%r buckets=%s failed=%d/%d",
        signal.label, outcome.buckets.counts(), len(outcome.errors), outcome.attempted,
    )
    return outcome
