"""
Pipeline configuration — vector search, catalog fallback, re-ranking, persistence.

PipelineConfig defaults are defined here. The server builds one from
environment settings via from_dict(); unknown keys are ignored.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class PipelineConfig(BaseModel):
    """Configuration for the recommendation orchestrator."""

    # -------------------------------------------------------------------------
    # Vector attempt
    # -------------------------------------------------------------------------

    # Nearest neighbours requested for the journal text.
    vector_top_k: int = Field(default=20, ge=1)

    # Max items kept per bucket (videos / songs / movies) from vector search.
    bucket_cap: int = Field(default=15, ge=1)

    # Decimal places similarity is rounded to.
    similarity_decimals: int = 2

    # -------------------------------------------------------------------------
    # Keyword attempt
    # -------------------------------------------------------------------------

    # Max items per kind requested from each catalog adapter.
    catalog_max_results: int = Field(default=10, ge=1)

    # -------------------------------------------------------------------------
    # Timeouts (seconds). A timed-out vector query triggers fallback; a
    # timed-out catalog call counts as an empty result.
    # -------------------------------------------------------------------------

    vector_timeout: float = 10.0
    catalog_timeout: float = 10.0
    rerank_timeout: float = 10.0
    persist_timeout: float = 15.0

    # -------------------------------------------------------------------------
    # Concurrency
    # -------------------------------------------------------------------------

    # Cap on concurrent outbound calls within one fan-out.
    max_concurrent_calls: int = Field(default=10, ge=1)

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    # Store embeddings of returned items so future vector searches surface them.
    persist_embeddings: bool = True
    # Write an audit record of each result via the mood store.
    write_audit_record: bool = True

    @classmethod
    def from_dict(cls, config_dict: Dict) -> "PipelineConfig":
        """Create config from a flat dictionary, ignoring unknown or None values."""
        allowed = set(cls.model_fields)
        filtered = {k: v for k, v in config_dict.items() if k in allowed and v is not None}
        return cls.model_validate(filtered)


DEFAULT_CONFIG = PipelineConfig()


def resolve_config(config: Optional["PipelineConfig"]) -> "PipelineConfig":
    """Return config or DEFAULT_CONFIG when none is provided."""
    return config if config is not None else DEFAULT_CONFIG
