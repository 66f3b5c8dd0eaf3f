"""
YouTube catalog adapter — short-form videos and songs for a mood.

Each mood maps to a list of video queries and a list of song queries. The
first QUERIES_PER_KIND of each are issued concurrently against the YouTube
Data API v3 search endpoint, and each kind's batches are merged with
de-duplication by videoId (first occurrence wins).
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..engine.models.candidate import CandidateItem, SongItem, VideoItem
from ..engine.utils.concurrency import gather_bounded
from ..errors import AdapterError, Transient
from .catalog import HttpCatalogClient, dedupe_by_native_id, lookup_mood

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"

QUERIES_PER_KIND = 3

MOOD_QUERIES: Dict[str, Dict[str, List[str]]] = {
    "happy": {
        "videos": ["motivational videos", "uplifting content", "funny videos", "positive energy"],
        "songs": ["happy songs", "uplifting music", "feel good songs", "upbeat music"],
    },
    "sad": {
        "videos": ["comforting videos", "emotional support", "calming nature videos", "healing content"],
        "songs": ["calming music", "sad songs", "emotional music", "peaceful songs"],
    },
    "angry": {
        "videos": ["stress relief", "anger management", "workout motivation", "calming exercises"],
        "songs": ["energetic music", "workout songs", "pump up music", "intense music"],
    },
    "stressed": {
        "videos": ["meditation", "relaxation techniques", "stress relief", "mindfulness"],
        "songs": ["relaxing music", "meditation music", "calm music", "peaceful instrumental"],
    },
    "calm": {
        "videos": ["nature documentaries", "peaceful scenes", "mindfulness", "zen content"],
        "songs": ["ambient music", "chill music", "lo-fi", "soft music"],
    },
    "neutral": {
        "videos": ["trending videos", "popular content", "entertainment", "educational videos"],
        "songs": ["popular music", "trending songs", "top hits", "chart music"],
    },
}


def get_mood_queries(label: Optional[str]) -> Dict[str, List[str]]:
    """Video and song queries for a mood label (case-insensitive, neutral fallback)."""
    queries = lookup_mood(MOOD_QUERIES, label)
    return {
        "videos": queries["videos"][:QUERIES_PER_KIND],
        "songs": queries["songs"][:QUERIES_PER_KIND],
    }


def _thumbnail(snippet: dict) -> Optional[str]:
    thumbs = snippet.get("thumbnails") or {}
    for size in ("high", "medium", "default"):
        url = (thumbs.get(size) or {}).get("url")
        if url:
            return url
    return None


def parse_search_items(data: dict, kind: str) -> List[CandidateItem]:
    """Convert a search response into VideoItem or SongItem entries, skipping non-video hits."""
    model = SongItem if kind == "songs" else VideoItem
    out: List[CandidateItem] = []
    for item in data.get("items") or []:
        video_id = (item.get("id") or {}).get("videoId")
        if not video_id:
            continue
        snippet = item.get("snippet") or {}
        out.append(model(
            native_id=video_id,
            title=snippet.get("title") or "",
            description=snippet.get("description") or "",
            artwork_url=_thumbnail(snippet),
            channel_title=snippet.get("channelTitle") or "",
            published_at=snippet.get("publishedAt") or "",
        ))
    return out


class YouTubeSearchAdapter(HttpCatalogClient):
    """
    Short-form video/audio catalog.

    Usage:
        youtube = YouTubeSearchAdapter(api_key="...")
        items = await youtube.fetch_by_mood("Sad", max_results=10)
    """

    name = "youtube"
    api_key_env = "YOUTUBE_API_KEY"

    def __init__(self, *args, max_concurrent: int = 10, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_concurrent = max_concurrent

    async def search(self, query: str, kind: str, max_results: int = 5) -> List[CandidateItem]:
        """One search call. kind is "videos" or "songs"."""
        params = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max(1, min(50, max_results)),
            "order": "relevance",
            "key": self._require_key(),
        }
        if kind == "songs":
            # YouTube category 10 = Music
            params["videoCategoryId"] = "10"
        data = await self._get_json(SEARCH_URL, params)
        return parse_search_items(data, kind)

    async def fetch_by_mood(
        self,
        label: str,
        category: Optional[str] = None,
        max_results: int = 10,
    ) -> List[CandidateItem]:
        """
        Videos followed by songs for the mood, each kind de-duplicated and capped at max_results.

        Individual query failures are tolerated while at least one query
        succeeds; if every query fails the first error is raised.
        """
        self._require_key()
        queries = get_mood_queries(label)
        plan = [(kind, q) for kind in ("videos", "songs") for q in queries[kind]]
        results = await gather_bounded(
            (self.search(q, kind, max_results) for kind, q in plan),
            limit=self.max_concurrent,
        )

        batches: Dict[str, List[List[CandidateItem]]] = {"videos": [], "songs": []}
        errors: List[AdapterError] = []
        for (kind, query), result in zip(plan, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                err = result if isinstance(result, AdapterError) else Transient(self.name, str(result))
                logger.warning("[youtube] query %r (%s) failed: %s", query, kind, err)
                errors.append(err)
                continue
            batches[kind].append(result)

        if errors and len(errors) == len(plan):
            raise errors[0]

        videos = dedupe_by_native_id(batches["videos"])[:max_results]
        songs = dedupe_by_native_id(batches["songs"])[:max_results]
        logger.info(
            "[youtube] mood=%r videos=%d songs=%d failed_queries=%d",
            label, len(videos), len(songs), len(errors),
        )
        return videos + songs
