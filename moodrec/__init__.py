"""
Mood-aware media recommendations.

Usage: uvicorn moodrec.app:app --reload --port 8000
"""

from .config import ServerConfig, get_config, reload_config
from .engine import PipelineConfig, RecommendationOrchestrator, RecommendationResult, SearchMethod
from .errors import AllSourcesUnavailable, NoMoodSignal, RecommendationError

__all__ = [
    "AllSourcesUnavailable",
    "NoMoodSignal",
    "PipelineConfig",
    "RecommendationError",
    "RecommendationOrchestrator",
    "RecommendationResult",
    "SearchMethod",
    "ServerConfig",
    "get_config",
    "reload_config",
]
