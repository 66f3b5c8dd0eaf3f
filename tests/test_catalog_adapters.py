"""
Catalog Adapter Tests

YouTube and TMDB adapters with the HTTP session mocked out: mood lookup with
neutral fallback, per-kind de-duplication, result mapping, and classification
of provider failures into the adapter error taxonomy.

Run:
----
    pytest tests/test_catalog_adapters.py -v
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from moodrec.engine.models import MovieItem, SongItem, VideoItem
from moodrec.errors import Forbidden, NotConfigured, QuotaExceeded, Transient
from moodrec.services.catalog import dedupe_by_native_id, lookup_mood
from moodrec.services.tmdb_search import DISCOVER_URL, TMDBSearchAdapter
from moodrec.services.youtube_search import MOOD_QUERIES, QUERIES_PER_KIND, YouTubeSearchAdapter


def _response(status=200, body=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    resp.reason = reason
    resp.json.return_value = body if body is not None else {}
    return resp


def _yt_item(video_id, title="t", thumbs=None):
    return {
        "id": {"kind": "youtube#video", "videoId": video_id},
        "snippet": {
            "title": title,
            "description": f"about {title}",
            "channelTitle": "channel",
            "publishedAt": "2024-05-01T00:00:00Z",
            "thumbnails": thumbs if thumbs is not None else {"high": {"url": f"https://i.ytimg.com/{video_id}/hq.jpg"}},
        },
    }


def _session(handler):
    """MagicMock session whose get(url, params=..., timeout=...) delegates to handler(params)."""
    session = MagicMock()
    session.get.side_effect = lambda url, params=None, timeout=None: handler(params)
    return session


class TestMoodLookup:
    def test_case_insensitive(self):
        assert lookup_mood(MOOD_QUERIES, "SAD") is MOOD_QUERIES["sad"]

    def test_unknown_and_empty_fall_back_to_neutral(self):
        assert lookup_mood(MOOD_QUERIES, "Bewildered") is MOOD_QUERIES["neutral"]
        assert lookup_mood(MOOD_QUERIES, None) is MOOD_QUERIES["neutral"]

    def test_dedupe_keeps_first_occurrence(self):
        a = VideoItem(native_id="abc123", title="first")
        b = VideoItem(native_id="abc123", title="second")
        c = VideoItem(native_id="xyz", title="other")
        merged = dedupe_by_native_id([[a, c], [b]])
        assert [(i.native_id, i.title) for i in merged] == [("abc123", "first"), ("xyz", "other")]


class TestYouTubeSearchAdapter:
    def test_same_video_from_several_queries_appears_once(self):
        def handler(params):
            return _response(body={"items": [_yt_item("abc123", "shared"), _yt_item(params["q"].replace(" ", "-"))]})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        items = asyncio.run(adapter.fetch_by_mood("Happy", max_results=10))

        videos = [i for i in items if isinstance(i, VideoItem)]
        songs = [i for i in items if isinstance(i, SongItem)]
        assert [v.native_id for v in videos].count("abc123") == 1
        assert [s.native_id for s in songs].count("abc123") == 1
        assert len(videos) == 1 + QUERIES_PER_KIND
        assert videos[0].native_id == "abc123"

    def test_issues_first_three_queries_per_kind(self):
        seen = []

        def handler(params):
            seen.append((params["q"], params.get("videoCategoryId")))
            return _response(body={"items": []})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        asyncio.run(adapter.fetch_by_mood("calm"))

        video_queries = {q for q, cat in seen if cat is None}
        song_queries = {q for q, cat in seen if cat == "10"}
        assert video_queries == set(MOOD_QUERIES["calm"]["videos"][:3])
        assert song_queries == set(MOOD_QUERIES["calm"]["songs"][:3])

    def test_unknown_mood_uses_neutral_queries(self):
        seen = []

        def handler(params):
            seen.append(params["q"])
            return _response(body={"items": []})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        asyncio.run(adapter.fetch_by_mood("Bewildered"))
        assert set(seen) <= set(MOOD_QUERIES["neutral"]["videos"] + MOOD_QUERIES["neutral"]["songs"])
        assert "trending videos" in seen

    def test_maps_snippet_fields_and_thumbnail_fallback(self):
        def handler(params):
            return _response(body={"items": [
                _yt_item("v1", "Morning yoga", thumbs={"medium": {"url": "https://m.jpg"}, "default": {"url": "https://d.jpg"}}),
                {"id": {"kind": "youtube#channel", "channelId": "c1"}, "snippet": {"title": "a channel"}},
            ]})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        items = asyncio.run(adapter.fetch_by_mood("stressed", max_results=5))
        video = next(i for i in items if isinstance(i, VideoItem))
        assert video.native_id == "v1"
        assert video.title == "Morning yoga"
        assert video.artwork_url == "https://m.jpg"
        assert video.channel_title == "channel"
        assert video.vector_id == "youtube:video:v1"
        assert all(i.native_id != "c1" for i in items)

    def test_each_kind_capped_at_max_results(self):
        def handler(params):
            return _response(body={"items": [_yt_item(f"{params['q']}-{n}") for n in range(5)]})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        items = asyncio.run(adapter.fetch_by_mood("sad", max_results=4))
        assert len([i for i in items if isinstance(i, VideoItem)]) == 4
        assert len([i for i in items if isinstance(i, SongItem)]) == 4

    def test_quota_exceeded_when_every_query_fails(self):
        body = {"error": {"code": 403, "errors": [{"reason": "quotaExceeded"}]}}
        adapter = YouTubeSearchAdapter(api_key="key", session=_session(lambda p: _response(403, body, "Forbidden")))
        with pytest.raises(QuotaExceeded) as exc_info:
            asyncio.run(adapter.fetch_by_mood("happy"))
        assert exc_info.value.status_code == 403
        assert exc_info.value.source == "youtube"

    def test_partial_failure_returns_remaining_results(self):
        def handler(params):
            if params["q"] == "happy songs":
                return _response(500, {}, "Server Error")
            return _response(body={"items": [_yt_item(params["q"])]})

        adapter = YouTubeSearchAdapter(api_key="key", session=_session(handler))
        items = asyncio.run(adapter.fetch_by_mood("happy"))
        assert len(items) == 2 * QUERIES_PER_KIND - 1

    def test_missing_key_is_not_configured(self):
        session = MagicMock()
        adapter = YouTubeSearchAdapter(api_key=None, session=session)
        with pytest.raises(NotConfigured):
            asyncio.run(adapter.fetch_by_mood("happy"))
        session.get.assert_not_called()


class TestTMDBSearchAdapter:
    BODY = {
        "results": [
            {"id": 550, "title": "Fight Club", "overview": "An insomniac...", "poster_path": "/fc.jpg",
             "release_date": "1999-10-15", "vote_average": 8.4, "genre_ids": [18, 53]},
            {"id": 13, "title": "Forrest Gump", "overview": "Life is...", "poster_path": None,
             "release_date": "1994-07-06", "vote_average": 8.5, "genre_ids": [35, 18]},
        ]
    }

    def test_maps_results_to_movies(self):
        session = _session(lambda p: _response(body=self.BODY))
        adapter = TMDBSearchAdapter(api_key="key", session=session)
        movies = asyncio.run(adapter.fetch_by_mood("Sad"))

        assert all(isinstance(m, MovieItem) for m in movies)
        first = movies[0]
        assert first.native_id == "550"
        assert first.overview == "An insomniac..."
        assert first.artwork_url == "https://image.tmdb.org/t/p/w500/fc.jpg"
        assert first.genre_ids == [18, 53]
        assert first.vector_id == "tmdb:movie:550"
        assert movies[1].artwork_url is None

    def test_genres_for_mood(self):
        session = _session(lambda p: _response(body={"results": []}))
        adapter = TMDBSearchAdapter(api_key="key", session=session)
        asyncio.run(adapter.fetch_by_mood("happy"))

        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        assert url == DISCOVER_URL
        assert params["with_genres"] == "35,16"
        assert params["sort_by"] == "popularity.desc"
        assert params["api_key"] == "key"

    def test_neutral_has_no_genre_filter(self):
        session = _session(lambda p: _response(body={"results": []}))
        adapter = TMDBSearchAdapter(api_key="key", session=session)
        asyncio.run(adapter.fetch_by_mood("unknown-mood"))
        assert "with_genres" not in session.get.call_args.kwargs["params"]

    def test_capped_at_max_results(self):
        session = _session(lambda p: _response(body=self.BODY))
        adapter = TMDBSearchAdapter(api_key="key", session=session)
        assert len(asyncio.run(adapter.fetch_by_mood("sad", max_results=1))) == 1

    @pytest.mark.parametrize("status,error", [(429, QuotaExceeded), (401, Forbidden), (503, Transient)])
    def test_http_errors_classified(self, status, error):
        session = _session(lambda p: _response(status, {"status_message": "nope"}, "err"))
        adapter = TMDBSearchAdapter(api_key="key", session=session)
        with pytest.raises(error):
            asyncio.run(adapter.fetch_by_mood("sad"))

    def test_timeout_is_transient(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")
        adapter = TMDBSearchAdapter(api_key="key", session=session, timeout=1.0)
        with pytest.raises(Transient):
            asyncio.run(adapter.fetch_by_mood("sad"))

    def test_invalid_json_is_transient(self):
        resp = _response()
        resp.json.side_effect = ValueError("not json")
        adapter = TMDBSearchAdapter(api_key="key", session=_session(lambda p: resp))
        with pytest.raises(Transient):
            asyncio.run(adapter.fetch_by_mood("sad"))
