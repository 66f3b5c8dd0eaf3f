"""
Error taxonomy for the recommendation pipeline.

Only NoMoodSignal and AllSourcesUnavailable ever leave the orchestrator.
Everything else is recoverable: the orchestrator converts it into
"this source produced zero results" and moves on.
"""

from typing import List, Optional


class RecommendationError(Exception):
    """Base class for all errors raised by this package."""

    code = "recommendation_error"


class NoMoodSignal(RecommendationError):
    """The user has no mood history yet; nothing to recommend against."""

    code = "no_mood_signal"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(
            f"No mood records found for user {user_id!r}. "
            "Create a journal entry and analyze your mood first."
        )


class AllSourcesUnavailable(RecommendationError):
    """Vector search and every catalog adapter failed in the same request."""

    code = "all_sources_unavailable"

    def __init__(self, causes: Optional[List[BaseException]] = None):
        self.causes = list(causes or [])
        detail = "; ".join(f"{type(c).__name__}: {c}" for c in self.causes)
        super().__init__(
            "All recommendation sources are currently unavailable"
            + (f" ({detail})" if detail else "")
        )


class ProviderError(RecommendationError):
    """Embedding provider failed (network, auth, quota)."""

    code = "provider_error"


class StoreError(RecommendationError):
    """Vector store read or write failed."""

    code = "store_error"


class AdapterError(RecommendationError):
    """
    Catalog search adapter failure.

    Subclasses classify the failure so callers can decide whether to skip the
    source (empty result) rather than abort the whole recommendation.
    """

    code = "adapter_error"

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        self.source = source
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class NotConfigured(AdapterError):
    """Missing API credential."""

    code = "not_configured"


class QuotaExceeded(AdapterError):
    """Provider quota or rate limit hit."""

    code = "quota_exceeded"


class Forbidden(AdapterError):
    """Credential rejected or access denied."""

    code = "forbidden"


class Transient(AdapterError):
    """Timeout, connection error, 5xx, or malformed payload."""

    code = "transient"


class PersistenceWriteFailure(RecommendationError):
    """Best-effort write (embedding or audit record) failed. Logged only."""

    code = "persistence_write_failure"


class JournalNotFound(RecommendationError):
    """No journal entry with the requested id."""

    code = "journal_not_found"

    def __init__(self, journal_id: str):
        self.journal_id = journal_id
        super().__init__(f"Journal not found: {journal_id!r}")
