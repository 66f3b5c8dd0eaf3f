"""
TMDB catalog adapter: movies for a mood via the discover endpoint.
"""

import logging
from typing import Dict, List, Optional

from ..engine.models.candidate import CandidateItem, MovieItem
from .catalog import HttpCatalogClient, lookup_mood

logger = logging.getLogger(__name__)

DISCOVER_URL = "https://api.themoviedb.org/3/discover/movie"
POSTER_BASE_URL = "https://image.tmdb.org/t/p/w500"

# TMDB genre ids: 16 Animation, 18 Drama, 28 Action, 35 Comedy, 53 Thriller,
# 99 Documentary, 10749 Romance
MOOD_GENRES: Dict[str, Dict] = {
    "happy": {"genres": [35, 16], "sort_by": "popularity.desc"},
    "sad": {"genres": [18, 10749], "sort_by": "popularity.desc"},
    "angry": {"genres": [28, 53], "sort_by": "popularity.desc"},
    "stressed": {"genres": [35, 99], "sort_by": "popularity.desc"},
    "calm": {"genres": [99, 18], "sort_by": "popularity.desc"},
    "neutral": {"genres": [], "sort_by": "popularity.desc"},
}


def poster_url(poster_path: Optional[str]) -> Optional[str]:
    if not poster_path:
        return None
    return f"{POSTER_BASE_URL}{poster_path}"


def parse_movies(data: dict) -> List[MovieItem]:
    out: List[MovieItem] = []
    for movie in data.get("results") or []:
        movie_id = movie.get("id")
        if movie_id is None:
            continue
        vote = movie.get("vote_average")
        out.append(MovieItem(
            native_id=str(movie_id),
            title=movie.get("title") or "",
            description=movie.get("overview") or "",
            artwork_url=poster_url(movie.get("poster_path")),
            release_date=movie.get("release_date") or "",
            vote_average=float(vote) if vote is not None else None,
            genre_ids=[int(g) for g in movie.get("genre_ids") or []],
        ))
    return out


class TMDBSearchAdapter(HttpCatalogClient):
    """Long-form video catalog (movies)."""

    name = "tmdb"
    api_key_env = "TMDB_API_KEY"

    async def fetch_by_mood(
        self,
        label: str,
        category: Optional[str] = None,
        max_results: int = 10,
    ) -> List[CandidateItem]:
        entry = lookup_mood(MOOD_GENRES, label)
        params = {
            "api_key": self._require_key(),
            "language": "en-US",
            "sort_by": entry["sort_by"],
            "page": 1,
        }
        if entry["genres"]:
            params["with_genres"] = ",".join(str(g) for g in entry["genres"])
        data = await self._get_json(DISCOVER_URL, params)
        movies = parse_movies(data)[:max_results]
        logger.info("[tmdb] mood=%r genres=%s movies=%d", label, entry["genres"], len(movies))
        return movies
