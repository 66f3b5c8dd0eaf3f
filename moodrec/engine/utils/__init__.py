"""Shared utilities for the engine."""

from .concurrency import DEFAULT_MAX_CONCURRENT, gather_bounded, with_timeout
from .similarity import clamp_similarity, cosine_similarity, round_similarity

__all__ = [
    "DEFAULT_MAX_CONCURRENT",
    "clamp_similarity",
    "cosine_similarity",
    "gather_bounded",
    "round_similarity",
    "with_timeout",
]
