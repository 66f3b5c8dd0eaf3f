"""Recommendation endpoints: run the pipeline for a user, list past results."""

from fastapi import APIRouter, HTTPException, Query

from ..errors import AllSourcesUnavailable, NoMoodSignal
from ..models import AuditRecordResponse, HistoryResponse, RecommendationResponse
from ..state import get_state

router = APIRouter()


@router.get("/{user_id}", response_model=RecommendationResponse)
async def get_recommendations(user_id: str):
    """
    Recommendations for the user's most recent mood.

    404 when the user has no mood yet; 503 when every source failed.
    An empty result (total_count == 0) is a normal 200 response.
    """
    state = get_state()
    try:
        result = await state.orchestrator.get_recommendations(user_id)
    except NoMoodSignal:
        raise HTTPException(
            status_code=404,
            detail={
                "code": NoMoodSignal.code,
                "message": "No mood records found. Please create a journal entry and analyze your mood first.",
            },
        )
    except AllSourcesUnavailable as e:
        raise HTTPException(
            status_code=503,
            detail={"code": AllSourcesUnavailable.code, "message": str(e)},
        )
    return RecommendationResponse.from_result(result)


@router.get("/{user_id}/history", response_model=HistoryResponse)
async def get_history(user_id: str, limit: int = Query(20, ge=1, le=100)):
    """Stored recommendation results for the user, newest first."""
    state = get_state()
    records = await state.mood_store.list_audit_records(user_id, limit=limit)
    return HistoryResponse(
        user_id=user_id,
        records=[
            AuditRecordResponse(
                id=r.id,
                mood_signal_id=r.mood_signal_id,
                type=r.type,
                created_at=r.created_at,
                result=r.payload,
            )
            for r in records
        ],
    )
