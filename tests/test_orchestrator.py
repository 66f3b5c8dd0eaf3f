"""
Recommendation Orchestrator Tests

End-to-end pipeline behaviour with fake collaborators:

- vector attempt succeeds        -> vector_similarity, catalogs untouched
- vector skipped / failed / empty -> keyword fallback (+ re-rank when possible)
- one catalog failing             -> its buckets empty, the rest still returned
- no mood signal                  -> NoMoodSignal, nothing else happens
- every source failing            -> AllSourcesUnavailable
- persistence                     -> background, never delays or breaks a result

Run:
----
    pytest tests/test_orchestrator.py -v
"""

import asyncio

import pytest

from conftest import (
    FakeCatalog,
    FakeEmbeddingProvider,
    FakeVectorStore,
    make_movie,
    make_signal,
    make_song,
    make_video,
    media_match,
)
from moodrec.engine.models import JournalEntry, PipelineConfig, SearchMethod, VectorMatch
from moodrec.engine.stages import RecommendationOrchestrator
from moodrec.errors import AllSourcesUnavailable, NoMoodSignal, QuotaExceeded, StoreError, Transient
from moodrec.services import EmbeddingCache, InMemoryMoodStore, InMemoryVectorIndex, VectorStoreAdapter

JOURNAL_VECTOR_ID = "journal:entry:journal-1"


def _youtube(**kwargs):
    items = kwargs.pop("items", [make_video("v1"), make_video("v2"), make_song("s1")])
    return FakeCatalog("youtube", items=items, **kwargs)


def _tmdb(**kwargs):
    items = kwargs.pop("items", [make_movie("m1"), make_movie("m2")])
    return FakeCatalog("tmdb", items=items, **kwargs)


def _orchestrator(mood_store, vector_store=None, catalogs=None, config=None, events=None):
    return RecommendationOrchestrator(
        mood_store,
        vector_store,
        catalogs if catalogs is not None else [_youtube(), _tmdb()],
        config=config or PipelineConfig(),
        events=events,
    )


def _recommend(orchestrator, user_id="user-1"):
    async def go():
        try:
            return await orchestrator.get_recommendations(user_id)
        finally:
            await orchestrator.writer.drain()

    return asyncio.run(go())


class TestNoMoodSignal:
    def test_raises_without_touching_any_source(self, mood_store, events):
        youtube, tmdb = _youtube(), _tmdb()
        store = FakeVectorStore()
        orch = _orchestrator(mood_store, store, [youtube, tmdb], events=events)

        with pytest.raises(NoMoodSignal) as exc_info:
            _recommend(orch, "nobody")

        assert exc_info.value.user_id == "nobody"
        assert youtube.calls == [] and tmdb.calls == []
        assert store.query_calls == []
        assert asyncio.run(mood_store.list_audit_records("nobody")) == []


class TestVectorAttempt:
    def test_vector_results_partitioned_and_returned(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[
            media_match(make_movie("m9", "Amelie"), 0.91234),
            media_match(make_video("v9", "Rain sounds"), 0.8),
            VectorMatch(id=JOURNAL_VECTOR_ID, score=0.99, metadata={"source": "journal", "type": "entry", "native_id": "journal-1", "user_id": "user-1"}),
            media_match(make_song("s9", "Weightless"), 0.7),
        ])
        youtube, tmdb = _youtube(), _tmdb()

        result = _recommend(_orchestrator(mood_store, store, [youtube, tmdb]))

        assert result.search_method == SearchMethod.VECTOR_SIMILARITY
        assert [v.native_id for v in result.videos] == ["v9"]
        assert [s.native_id for s in result.songs] == ["s9"]
        assert [(m.native_id, m.similarity) for m in result.movies] == [("m9", 0.91)]
        assert result.total_count == 3
        assert youtube.calls == [] and tmdb.calls == []

    def test_vector_query_uses_source_text_and_media_filter(self, mood_store):
        signal = make_signal(source_vector_id=JOURNAL_VECTOR_ID)
        mood_store.add_mood_signal(signal)
        store = FakeVectorStore(media_matches=[media_match(make_video("v9"), 0.8)])

        _recommend(_orchestrator(mood_store, store))

        text, top_k, filter = store.query_calls[0]
        assert text == signal.source_text
        assert top_k == 20
        assert filter == {"type": {"$in": ["video", "song", "movie"]}}

    def test_each_bucket_capped(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[media_match(make_video(f"v{i}"), 0.9 - i / 100) for i in range(20)])

        result = _recommend(_orchestrator(mood_store, store))

        assert len(result.videos) == 15
        assert [v.native_id for v in result.videos] == [f"v{i}" for i in range(15)]

    def test_source_text_looked_up_when_not_inline(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_text="", source_vector_id=JOURNAL_VECTOR_ID, source_id="j-42"))
        mood_store.add_journal(JournalEntry(id="j-42", user_id="user-1", content="Stored journal text"))
        store = FakeVectorStore(media_matches=[media_match(make_video("v9"), 0.8)])

        _recommend(_orchestrator(mood_store, store))

        assert store.query_calls[0][0] == "Stored journal text"


class TestKeywordFallback:
    def test_empty_vector_result_falls_back(self, mood_store, events):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[])
        youtube, tmdb = _youtube(), _tmdb()

        result = _recommend(_orchestrator(mood_store, store, [youtube, tmdb], events=events))

        assert result.search_method != SearchMethod.VECTOR_SIMILARITY
        assert youtube.calls and tmdb.calls
        assert result.total_count == 5
        assert "vector.empty" in events.names()

    def test_fallback_results_reranked_when_source_has_vector(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[], item_scores={"m1": 0.2, "m2": 0.9, "v1": 0.4, "v2": 0.6, "s1": 0.5})

        result = _recommend(_orchestrator(mood_store, store))

        assert result.search_method == SearchMethod.KEYWORD_RERANKED_VECTOR
        assert [m.native_id for m in result.movies] == ["m2", "m1"]
        assert [v.native_id for v in result.videos] == ["v2", "v1"]

    def test_no_source_vector_means_keyword_only_without_rerank(self, mood_store, events):
        mood_store.add_mood_signal(make_signal(source_vector_id=None))
        store = FakeVectorStore()

        result = _recommend(_orchestrator(mood_store, store, events=events))

        assert result.search_method == SearchMethod.KEYWORD_ONLY
        assert store.query_calls == []
        assert [m.native_id for m in result.movies] == ["m1", "m2"]
        assert all(m.similarity is None for m in result.movies)
        assert "vector.skipped" in events.names()

    def test_vector_failure_falls_back(self, mood_store, events):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_error=StoreError("index down"), fail_ids=["v1", "v2", "s1", "m1", "m2"])

        result = _recommend(_orchestrator(mood_store, store, events=events))

        assert result.search_method == SearchMethod.KEYWORD_ONLY
        assert result.total_count == 5
        failed = events.named("vector.failed")
        assert len(failed) == 1 and failed[0].error_code == "store_error"

    def test_vector_timeout_falls_back(self, mood_store, events, fast_config):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[media_match(make_video("late"), 0.9)], media_delay=1.0)

        result = _recommend(_orchestrator(mood_store, store, config=fast_config, events=events))

        assert result.search_method != SearchMethod.VECTOR_SIMILARITY
        assert "late" not in [v.native_id for v in result.videos]
        assert "vector.failed" in events.names()


class TestCatalogDegradation:
    def test_quota_exceeded_leaves_other_buckets(self, mood_store, events):
        mood_store.add_mood_signal(make_signal())
        youtube = _youtube(error=QuotaExceeded("youtube", "HTTP 403 (quotaExceeded)", 403))

        result = _recommend(_orchestrator(mood_store, None, [youtube, _tmdb()], events=events))

        assert result.videos == [] and result.songs == []
        assert [m.native_id for m in result.movies] == ["m1", "m2"]
        assert result.total_count == 2
        failed = events.named("catalog.fetch_failed")
        assert len(failed) == 1
        assert failed[0].fields["source"] == "youtube"
        assert failed[0].error_code == "quota_exceeded"

    def test_slow_catalog_counts_as_empty(self, mood_store, events, fast_config):
        mood_store.add_mood_signal(make_signal())
        tmdb = _tmdb(delay=1.0)

        result = _recommend(_orchestrator(mood_store, None, [_youtube(), tmdb], config=fast_config, events=events))

        assert result.movies == []
        assert len(result.videos) == 2
        (failed,) = events.named("catalog.fetch_failed")
        assert isinstance(failed.error, Transient)

    def test_empty_but_successful_sources_are_a_valid_result(self, mood_store):
        mood_store.add_mood_signal(make_signal())
        result = _recommend(_orchestrator(mood_store, None, [_youtube(items=[]), _tmdb(items=[])]))
        assert result.total_count == 0
        assert result.search_method == SearchMethod.KEYWORD_ONLY

    def test_all_sources_failing_raises(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_error=StoreError("index down"))
        catalogs = [
            _youtube(error=QuotaExceeded("youtube", "quota")),
            _tmdb(error=Transient("tmdb", "HTTP 503")),
        ]

        with pytest.raises(AllSourcesUnavailable) as exc_info:
            _recommend(_orchestrator(mood_store, store, catalogs))

        kinds = [type(c) for c in exc_info.value.causes]
        assert kinds == [StoreError, QuotaExceeded, Transient]


class TestPersistence:
    def test_result_returned_before_background_writes_finish(self):
        gate = asyncio.Event

        class SlowAuditStore(InMemoryMoodStore):
            def __init__(self):
                super().__init__()
                self.release = None

            async def create_audit_record(self, user_id, mood_signal_id, payload):
                await self.release.wait()
                return await super().create_audit_record(user_id, mood_signal_id, payload)

        store = SlowAuditStore()
        store.add_mood_signal(make_signal())
        orch = _orchestrator(store, None)

        async def go():
            store.release = gate()
            result = await orch.get_recommendations("user-1")
            pending_after_return = orch.writer.pending
            records_after_return = await store.list_audit_records("user-1")
            store.release.set()
            await orch.writer.drain()
            return result, pending_after_return, records_after_return

        result, pending, records_before = asyncio.run(go())
        assert result.total_count == 5
        assert pending == 1
        assert records_before == []
        (record,) = asyncio.run(store.list_audit_records("user-1"))
        assert record.mood_signal_id == "mood-1"
        assert record.type == "Mood-Based-Media"
        assert record.payload["total_count"] == 5
        assert record.payload["search_method"] == "keyword_only"

    def test_audit_failure_only_emits_event(self, events):
        class FailingAuditStore(InMemoryMoodStore):
            async def create_audit_record(self, user_id, mood_signal_id, payload):
                raise RuntimeError("firestore unavailable")

        store = FailingAuditStore()
        store.add_mood_signal(make_signal())

        result = _recommend(_orchestrator(store, None, events=events))

        assert result.total_count == 5
        (failed,) = events.named("persist.audit_failed")
        assert failed.error_code == "persistence_write_failure"
        assert failed.fields["mood_signal_id"] == "mood-1"

    def test_keyword_results_are_embedded_for_future_searches(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[])

        _recommend(_orchestrator(mood_store, store))

        ids = sorted(vid for vid, _, _ in store.upserts)
        assert ids == sorted([
            "youtube:video:v1", "youtube:video:v2", "youtube:song:s1", "tmdb:movie:m1", "tmdb:movie:m2",
        ])
        meta = next(m for vid, _, m in store.upserts if vid == "tmdb:movie:m1")
        assert (meta.source, meta.type, meta.native_id) == ("tmdb", "movie", "m1")

    def test_vector_results_not_written_again(self, mood_store):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        store = FakeVectorStore(media_matches=[media_match(make_video("v9"), 0.8)])

        _recommend(_orchestrator(mood_store, store))

        assert store.upserts == []
        assert len(asyncio.run(mood_store.list_audit_records("user-1"))) == 1


class TestOverlappingRequests:
    def test_vector_timeout_in_one_request_does_not_abort_another(self, mood_store, events):
        mood_store.add_mood_signal(make_signal(source_vector_id=JOURNAL_VECTOR_ID))
        provider = FakeEmbeddingProvider(delay=0.3)
        store = VectorStoreAdapter(InMemoryVectorIndex(), EmbeddingCache(provider), events)
        config = PipelineConfig(vector_timeout=0.2, catalog_timeout=1.0, rerank_timeout=0.2, persist_timeout=2.0)
        orch = _orchestrator(mood_store, store, config=config, events=events)

        async def go():
            first = asyncio.create_task(orch.get_recommendations("user-1"))
            await asyncio.sleep(0.05)
            second = asyncio.create_task(orch.get_recommendations("user-1"))
            try:
                return await asyncio.gather(first, second, return_exceptions=True)
            finally:
                await orch.writer.drain()

        results = asyncio.run(go())

        for result in results:
            assert not isinstance(result, BaseException), repr(result)
            assert result.search_method != SearchMethod.VECTOR_SIMILARITY
            assert result.total_count == 5
        assert len(events.named("vector.failed")) == 2
