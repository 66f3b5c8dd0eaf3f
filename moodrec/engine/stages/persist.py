"""
Persist stage — best-effort writes that never hold up a response.

Returned items are embedded and upserted so future vector searches can
surface them, and the result is recorded as an audit record. Both run as
detached tasks owned by a BackgroundWriter: the caller does not await them,
cancelling the caller does not cancel them, and failures only produce
persist.*_failed events.
"""

import asyncio
import logging
from typing import Awaitable, Optional, Set

from ...errors import PersistenceWriteFailure
from ...events import EventSink, LoggingEventSink, PipelineEvent
from ..models.config import PipelineConfig
from ..models.mood import MoodSignal
from ..models.result import RecommendationResult
from ..models.vector import MediaMetadata
from ..utils.concurrency import gather_bounded, with_timeout

logger = logging.getLogger(__name__)


class BackgroundWriter:
    """
    Owner of fire-and-forget write tasks.

    Usage:
        writer = BackgroundWriter(events, timeout=15.0)
        writer.submit("audit", store.create_audit_record(...))
        ...
        await writer.drain()   # at shutdown / in tests
    """

    def __init__(self, events: Optional[EventSink] = None, timeout: Optional[float] = 15.0):
        self._events = events or LoggingEventSink(logger)
        self._timeout = timeout
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _run(self, name: str, aw: Awaitable, fields: dict) -> None:
        try:
            await with_timeout(aw, self._timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if isinstance(e, PersistenceWriteFailure):
                failure = e
            else:
                failure = PersistenceWriteFailure(f"{name} write failed: {type(e).__name__}: {e}")
                failure.__cause__ = e
            self._events.emit(PipelineEvent(
                name=f"persist.{name}_failed",
                level=logging.WARNING,
                fields=fields,
                error=failure,
            ))

    def submit(self, name: str, aw: Awaitable, **fields) -> asyncio.Task:
        """Schedule aw on the running loop. Must be called from inside a coroutine."""
        task = asyncio.get_running_loop().create_task(self._run(name, aw, fields))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every write scheduled so far (and any they schedule)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


async def persist_embeddings(store, result: RecommendationResult, config: PipelineConfig) -> int:
    """
    Upsert every returned item under its deterministic id.

    Returns the number of new writes. Raises PersistenceWriteFailure if any
    item failed, after all items were attempted.
    """
    items = [*result.videos, *result.songs, *result.movies]
    outcomes = await gather_bounded(
        (store.upsert(i.vector_id, i.embed_text(), MediaMetadata.from_candidate(i)) for i in items),
        limit=config.max_concurrent_calls,
    )
    failed = [(i, o) for i, o in zip(items, outcomes) if isinstance(o, BaseException)]
    written = sum(1 for o in outcomes if o is True)
    logger.debug("[persist] items=%d written=%d failed=%d", len(items), written, len(failed))
    if failed:
        first_item, first_error = failed[0]
        raise PersistenceWriteFailure(
            f"{len(failed)}/{len(items)} embeddings not stored "
            f"(first: {first_item.vector_id}: {first_error})"
        )
    return written


def schedule_persist(
    writer: BackgroundWriter,
    signal: MoodSignal,
    result: RecommendationResult,
    config: PipelineConfig,
    vector_store=None,
    mood_store=None,
) -> None:
    """Hand the result's writes to the background writer; returns immediately."""
    if config.persist_embeddings and vector_store is not None and result.total_count:
        writer.submit(
            "embeddings",
            persist_embeddings(vector_store, result, config),
            user_id=signal.user_id,
            mood_signal_id=signal.id,
        )
    if config.write_audit_record and mood_store is not None:
        writer.submit(
            "audit",
            mood_store.create_audit_record(signal.user_id, signal.id, result.audit_payload()),
            user_id=signal.user_id,
            mood_signal_id=signal.id,
        )
