"""Pipeline stages: vector attempt, keyword fallback, re-rank, persist, orchestration."""

from .keyword_search import KeywordOutcome, keyword_search
from .orchestrator import RecommendationOrchestrator
from .persist import BackgroundWriter, persist_embeddings, schedule_persist
from .rerank import rerank, score_item
from .vector_search import buckets_from_matches, vector_search

__all__ = [
    "BackgroundWriter",
    "KeywordOutcome",
    "RecommendationOrchestrator",
    "buckets_from_matches",
    "keyword_search",
    "persist_embeddings",
    "rerank",
    "schedule_persist",
    "score_item",
    "vector_search",
]
