"""Application state: the one place where services are constructed and wired together."""

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ServerConfig, get_config
from .engine.models.config import PipelineConfig
from .engine.stages import BackgroundWriter, RecommendationOrchestrator
from .events import CollectingEventSink, EventSink, LoggingEventSink
from .services import (
    CatalogSearchAdapter,
    EmbeddingCache,
    FirestoreMoodStore,
    InMemoryMoodStore,
    InMemoryVectorIndex,
    JournalService,
    JsonMoodStore,
    LLMMoodClassifier,
    MoodStore,
    OpenAIEmbeddingProvider,
    PineconeIndex,
    TMDBSearchAdapter,
    VectorIndex,
    VectorStoreAdapter,
    YouTubeSearchAdapter,
)

logger = logging.getLogger(__name__)

# Most recent events kept for the health endpoint.
RECENT_EVENTS_LIMIT = 100


class AppState:
    """Global application state."""

    def __init__(
        self,
        config: ServerConfig,
        mood_store: Optional[MoodStore] = None,
        vector_index: Optional[VectorIndex] = None,
        embedding_provider=None,
        catalogs: Optional[Sequence[CatalogSearchAdapter]] = None,
        classifier=None,
        events: Optional[EventSink] = None,
    ):
        self.config = config
        self.events = events if events is not None else CollectingEventSink(forward=LoggingEventSink(), maxlen=RECENT_EVENTS_LIMIT)
        self.pipeline_config = PipelineConfig.from_dict(config.pipeline_settings())

        # Embeddings: OpenAI behind a process-lifetime cache
        self.embedding_provider = embedding_provider
        if self.embedding_provider is None:
            self.embedding_provider = OpenAIEmbeddingProvider(
                api_key=config.openai_api_key,
                model=config.embedding_model,
                dimensions=config.embedding_dimensions,
                timeout=config.embedding_timeout,
            )
        self.embedding_cache = EmbeddingCache(self.embedding_provider)

        # Vector store: Pinecone when configured, else in-memory
        self.vector_index = vector_index if vector_index is not None else self._create_vector_index(config)
        self.vector_store = VectorStoreAdapter(self.vector_index, self.embedding_cache, self.events)
        logger.info("[startup] Vector index: %s", type(self.vector_index).__name__)

        # Mood store: Firestore / JSON file / memory per DATA_SOURCE
        self.mood_store = mood_store if mood_store is not None else self._create_mood_store(config)
        logger.info("[startup] Mood store: %s", type(self.mood_store).__name__)

        # Catalogs
        if catalogs is None:
            catalogs = [
                YouTubeSearchAdapter(
                    api_key=config.youtube_api_key,
                    timeout=config.catalog_timeout,
                    max_concurrent=config.max_concurrent_calls,
                ),
                TMDBSearchAdapter(api_key=config.tmdb_api_key, timeout=config.catalog_timeout),
            ]
        self.catalogs: List[CatalogSearchAdapter] = list(catalogs)
        for c in self.catalogs:
            if not getattr(c, "is_configured", True):
                logger.warning("[startup] Catalog %s has no API key; it will be skipped per request", c.name)

        self.classifier = classifier if classifier is not None else LLMMoodClassifier(model=config.mood_model)

        self.writer = BackgroundWriter(self.events, timeout=self.pipeline_config.persist_timeout)
        self.orchestrator = RecommendationOrchestrator(
            self.mood_store,
            self.vector_store,
            self.catalogs,
            config=self.pipeline_config,
            events=self.events,
            writer=self.writer,
        )
        self.journal_service = JournalService(
            self.mood_store, self.vector_store, self.classifier, self.events
        )

    def _create_vector_index(self, config: ServerConfig) -> VectorIndex:
        if config.vector_backend == "pinecone" and config.pinecone_api_key:
            return PineconeIndex(
                api_key=config.pinecone_api_key,
                index_name=config.pinecone_index,
                namespace=config.pinecone_namespace,
                dimension=config.embedding_dimensions,
            )
        if config.vector_backend == "pinecone":
            logger.warning("[startup] PINECONE_API_KEY not set, using in-memory vector index")
        return InMemoryVectorIndex(dimension=config.embedding_dimensions)

    def _create_mood_store(self, config: ServerConfig) -> MoodStore:
        if config.data_source == "firebase":
            cred_path = config.firebase_credentials_path
            if cred_path is not None and not Path(cred_path).is_file():
                raise ValueError(
                    f"FIREBASE_CREDENTIALS_PATH does not point to a file: {cred_path}"
                )
            return FirestoreMoodStore(
                project_id=config.firebase_project_id,
                credentials_path=cred_path,
            )
        if config.data_source == "json":
            return JsonMoodStore(config.mood_store_path)
        return InMemoryMoodStore()

    def recent_events(self, limit: int = RECENT_EVENTS_LIMIT) -> list:
        events = list(getattr(self.events, "events", []))
        return events[-limit:]

    async def shutdown(self) -> None:
        """Wait for background writes and release HTTP sessions."""
        await self.writer.drain()
        for c in self.catalogs:
            close = getattr(c, "close", None)
            if close is not None:
                close()


_state: Optional[AppState] = None


def get_state() -> AppState:
    global _state
    if _state is None:
        config = get_config()
        _state = AppState(config)
    return _state


def set_state(state: Optional[AppState]) -> None:
    """Install (or clear) the process state; used by tests and the app factory."""
    global _state
    _state = state
