"""Root and health endpoints."""

from typing import Tuple

from fastapi import APIRouter

from ..services import PineconeIndex, check_openai_available
from ..state import get_state

router = APIRouter()


def _vector_index_status(state) -> Tuple[bool, str]:
    """Return (available, message) for the vector index backend."""
    index = state.vector_index
    if not isinstance(index, PineconeIndex):
        return True, f"in-memory ({len(index)} vectors)" if hasattr(index, "__len__") else "in-memory"
    try:
        ok = index.is_available
        return ok, f"connected ({index.index_name})" if ok else "not reachable"
    except Exception as e:
        return False, str(e)


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Mood Recommendation API",
        "version": "1.0.0",
        "vector_backend": type(state.vector_index).__name__,
        "mood_store": type(state.mood_store).__name__,
        "catalogs": [c.name for c in state.catalogs],
        "endpoints": {
            "recommendations": [
                "/api/recommendations/{user_id}",
                "/api/recommendations/{user_id}/history",
            ],
            "journals": [
                "/api/journals",
                "/api/journals/{user_id}",
                "/api/journals/{journal_id}/mood",
                "/api/moods/{user_id}",
            ],
            "health": ["/api/health"],
        },
    }


@router.get("/api/health")
def health():
    state = get_state()
    openai_ok, openai_msg = check_openai_available()
    vector_ok, vector_msg = _vector_index_status(state)
    stats = state.embedding_cache.stats()
    return {
        "status": "healthy",
        "openai": {"available": openai_ok, "message": openai_msg},
        "vector_index": {"available": vector_ok, "message": vector_msg},
        "catalogs": {
            c.name: {"configured": bool(getattr(c, "is_configured", True))} for c in state.catalogs
        },
        "classifier": {"available": bool(getattr(state.classifier, "is_available", False))},
        "embedding_cache": {"size": stats.size, "hits": stats.hits, "misses": stats.misses},
        "background_writes_pending": state.writer.pending,
        "recent_failures": [
            {"event": e.name, "error": e.error_code, **{k: str(v) for k, v in e.fields.items()}}
            for e in state.recent_events()
            if e.error is not None
        ][-20:],
    }
