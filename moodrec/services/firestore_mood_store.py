"""
Firestore mood store: per-user subcollections under users/{user_id}.

    users/{user_id}/journals/{journal_id}         { id, user_id, content, vector_id, mood, created_at }
    users/{user_id}/moods/{mood_id}               MoodSignal fields
    users/{user_id}/recommendations/{record_id}   { mood_signal_id, type, payload, created_at }

Used when DATA_SOURCE=firebase. firebase-admin owns app initialization and
credentials; reads and writes go through google.cloud.firestore.AsyncClient so
they never block the event loop.
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import firebase_admin
from firebase_admin import credentials
from google.cloud.firestore import AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.query import Query as FirestoreQuery

from ..engine.models.journal import AuditRecord, JournalEntry
from ..engine.models.mood import MoodClassification, MoodSignal
from ..errors import StoreError
from .mood_store import DEFAULT_HISTORY_LIMIT, build_mood_signal

logger = logging.getLogger(__name__)


def _init_firebase(
    project_id: Optional[str],
    credentials_path: Optional[Union[Path, str]],
):
    """Initialize (once) and return the default firebase app plus its credential."""
    if credentials_path:
        cred = credentials.Certificate(str(Path(credentials_path).resolve()))
    else:
        cred = credentials.ApplicationDefault()
    if not firebase_admin._apps:
        opts = {"projectId": project_id} if project_id else None
        firebase_admin.initialize_app(cred, opts)
    return firebase_admin.get_app(), cred


class FirestoreMoodStore:
    """MoodStore backed by Firestore user subcollections."""

    def __init__(
        self,
        project_id: Optional[str] = None,
        credentials_path: Optional[Union[Path, str]] = None,
        client: Optional[AsyncClient] = None,
    ):
        if client is not None:
            self._db = client
        else:
            app, cred = _init_firebase(project_id, credentials_path)
            project = project_id or app.project_id
            self._db = AsyncClient(project=project, credentials=cred.get_credential())
        logger.info("[firestore] mood store ready project=%r", project_id)

    def _user_collection(self, user_id: str, name: str):
        return self._db.collection("users").document(user_id).collection(name)

    async def find_latest_mood_signal(self, user_id: str) -> Optional[MoodSignal]:
        query = (
            self._user_collection(user_id, "moods")
            .order_by("created_at", direction=FirestoreQuery.DESCENDING)
            .limit(1)
        )
        async for doc in query.stream():
            data = doc.to_dict() or {}
            data.setdefault("id", doc.id)
            data.setdefault("user_id", user_id)
            return MoodSignal.model_validate(data)
        return None

    async def find_journal(self, journal_id: str) -> Optional[JournalEntry]:
        # Journal ids are globally unique, so a collection-group lookup is enough.
        query = (
            self._db.collection_group("journals")
            .where(filter=FieldFilter("id", "==", journal_id))
            .limit(1)
        )
        async for doc in query.stream():
            data = doc.to_dict() or {}
            data.setdefault("id", doc.id)
            return JournalEntry.model_validate(data)
        return None

    async def find_journal_text(self, source_id: str) -> Optional[str]:
        journal = await self.find_journal(source_id)
        return journal.content if journal else None

    async def create_audit_record(
        self, user_id: str, mood_signal_id: str, payload: Dict[str, Any]
    ) -> str:
        record = AuditRecord(
            id=uuid.uuid4().hex[:20],
            user_id=user_id,
            mood_signal_id=mood_signal_id,
            payload=payload,
        )
        try:
            await self._user_collection(user_id, "recommendations").document(record.id).set(
                record.model_dump(mode="json")
            )
        except Exception as e:
            logger.error("[firestore] create_audit_record failed for user=%r: %s", user_id, e)
            raise StoreError(f"Audit record write failed: {e}") from e
        return record.id

    async def create_journal(self, user_id: str, content: str) -> JournalEntry:
        content = (content or "").strip()
        if not content:
            raise ValueError("Journal content cannot be empty")
        journal = JournalEntry(id=uuid.uuid4().hex[:20], user_id=user_id, content=content)
        await self._user_collection(user_id, "journals").document(journal.id).set(
            journal.model_dump(mode="json")
        )
        return journal

    async def set_journal_vector_id(self, user_id: str, journal_id: str, vector_id: str) -> None:
        await self._user_collection(user_id, "journals").document(journal_id).update(
            {"vector_id": vector_id}
        )

    async def set_journal_mood(self, user_id: str, journal_id: str, mood: str) -> None:
        await self._user_collection(user_id, "journals").document(journal_id).update(
            {"mood": mood}
        )

    async def create_mood_signal(
        self,
        user_id: str,
        classification: MoodClassification,
        journal: JournalEntry,
    ) -> MoodSignal:
        signal = build_mood_signal(user_id, classification, journal)
        await self._user_collection(user_id, "moods").document(signal.id).set(
            signal.model_dump(mode="json")
        )
        return signal

    async def list_journals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[JournalEntry]:
        query = (
            self._user_collection(user_id, "journals")
            .order_by("created_at", direction=FirestoreQuery.DESCENDING)
            .limit(limit)
        )
        out = []
        async for doc in query.stream():
            data = doc.to_dict() or {}
            data.setdefault("id", doc.id)
            data.setdefault("user_id", user_id)
            out.append(JournalEntry.model_validate(data))
        return out

    async def list_mood_signals(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[MoodSignal]:
        query = (
            self._user_collection(user_id, "moods")
            .order_by("created_at", direction=FirestoreQuery.DESCENDING)
            .limit(limit)
        )
        out = []
        async for doc in query.stream():
            data = doc.to_dict() or {}
            data.setdefault("id", doc.id)
            data.setdefault("user_id", user_id)
            out.append(MoodSignal.model_validate(data))
        return out

    async def list_audit_records(
        self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[AuditRecord]:
        query = (
            self._user_collection(user_id, "recommendations")
            .order_by("created_at", direction=FirestoreQuery.DESCENDING)
            .limit(limit)
        )
        out = []
        async for doc in query.stream():
            data = doc.to_dict() or {}
            data.setdefault("id", doc.id)
            data.setdefault("user_id", user_id)
            out.append(AuditRecord.model_validate(data))
        return out
