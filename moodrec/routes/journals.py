"""Journal endpoints: create an entry (embed + classify), re-analyze its mood, list entries and moods."""

from fastapi import APIRouter, HTTPException, Query

from ..errors import JournalNotFound
from ..models import (
    JournalCreateRequest,
    JournalCreateResponse,
    JournalListResponse,
    JournalResponse,
    MoodHistoryResponse,
    MoodSignalResponse,
)
from ..state import get_state

router = APIRouter()


@router.post("/journals", response_model=JournalCreateResponse, status_code=201)
async def create_journal(request: JournalCreateRequest):
    """
    Create a journal entry for the user.

    The text is embedded (so later recommendations can use vector search)
    and classified; the resulting mood becomes the user's latest mood.
    """
    state = get_state()
    try:
        created = await state.journal_service.create_entry(request.user_id, request.content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JournalCreateResponse(
        journal=JournalResponse.from_entry(created.journal),
        mood=MoodSignalResponse.from_signal(created.mood_signal),
    )


@router.post("/journals/{journal_id}/mood", response_model=JournalCreateResponse, status_code=201)
async def analyze_journal_mood(journal_id: str):
    """
    Classify an existing journal entry and record the result as the user's
    latest mood. 404 when the journal does not exist.
    """
    state = get_state()
    try:
        analyzed = await state.journal_service.analyze_entry(journal_id)
    except JournalNotFound:
        raise HTTPException(
            status_code=404,
            detail={"code": JournalNotFound.code, "message": "Journal not found"},
        )
    return JournalCreateResponse(
        journal=JournalResponse.from_entry(analyzed.journal),
        mood=MoodSignalResponse.from_signal(analyzed.mood_signal),
    )


@router.get("/journals/{user_id}", response_model=JournalListResponse)
async def list_journals(user_id: str, limit: int = Query(50, ge=1, le=200)):
    state = get_state()
    journals = await state.mood_store.list_journals(user_id, limit=limit)
    return JournalListResponse(
        user_id=user_id,
        journals=[JournalResponse.from_entry(j) for j in journals],
    )


@router.get("/moods/{user_id}", response_model=MoodHistoryResponse)
async def mood_history(user_id: str, limit: int = Query(50, ge=1, le=200)):
    state = get_state()
    moods = await state.mood_store.list_mood_signals(user_id, limit=limit)
    return MoodHistoryResponse(
        user_id=user_id,
        moods=[MoodSignalResponse.from_signal(m) for m in moods],
    )
