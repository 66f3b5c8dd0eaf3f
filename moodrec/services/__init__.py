"""Backing services: embeddings, vector index, catalogs, stores, classifier."""

from .catalog import CatalogSearchAdapter, HttpCatalogClient
from .embedding_cache import EmbeddingCache, EmbeddingCacheStats
from .embedding_generator import EmbeddingProvider, OpenAIEmbeddingProvider, check_openai_available
from .firestore_mood_store import FirestoreMoodStore
from .journal_service import JournalIngestResult, JournalService, journal_vector_id
from .memory_index import InMemoryVectorIndex
from .mood_classifier import LLMMoodClassifier, MoodClassifier
from .mood_store import InMemoryMoodStore, JsonMoodStore, MoodStore
from .pinecone_store import PineconeIndex
from .tmdb_search import TMDBSearchAdapter
from .vector_store import VectorIndex, VectorStoreAdapter
from .youtube_search import YouTubeSearchAdapter

__all__ = [
    "CatalogSearchAdapter",
    "EmbeddingCache",
    "EmbeddingCacheStats",
    "EmbeddingProvider",
    "FirestoreMoodStore",
    "HttpCatalogClient",
    "InMemoryMoodStore",
    "InMemoryVectorIndex",
    "JournalIngestResult",
    "JournalService",
    "JsonMoodStore",
    "LLMMoodClassifier",
    "MoodClassifier",
    "MoodStore",
    "OpenAIEmbeddingProvider",
    "PineconeIndex",
    "TMDBSearchAdapter",
    "VectorIndex",
    "VectorStoreAdapter",
    "YouTubeSearchAdapter",
    "check_openai_available",
]
