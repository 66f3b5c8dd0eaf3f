"""
Server Configuration

Loads configuration from environment variables and provides defaults.
A .env file at the repo root is loaded first (python-dotenv); real
environment variables take precedence.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

root_env = BASE_DIR / ".env"
if root_env.exists():
    load_dotenv(root_env)

VECTOR_BACKENDS = ("pinecone", "memory")
DATA_SOURCES = ("memory", "json", "firebase")


def _float_env(key: str, default: float) -> float:
    v = os.getenv(key)
    return float(v) if v not in (None, "") else default


def _int_env(key: str, default: int) -> int:
    v = os.getenv(key)
    return int(v) if v not in (None, "") else default


def _bool_env(key: str, default: bool) -> bool:
    v = os.getenv(key)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
    v = os.getenv(key)
    if not v:
        return default
    p = Path(v)
    return p if p.is_absolute() else (BASE_DIR / p).resolve()


@dataclass
class ServerConfig:
    """Server configuration."""

    # API keys
    openai_api_key: Optional[str] = None
    pinecone_api_key: Optional[str] = None
    youtube_api_key: Optional[str] = None
    tmdb_api_key: Optional[str] = None

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Embeddings
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Mood classification (LiteLLM model id)
    mood_model: str = "gemini/gemini-2.5-flash"

    # Vector index: "pinecone" | "memory"
    vector_backend: str = "pinecone"
    pinecone_index: str = "moodrec-media"
    pinecone_namespace: str = "moodrec"

    # Data source: "memory" | "json" | "firebase"
    data_source: str = "memory"
    # When data_source=json: path to the mood store file
    mood_store_path: Path = BASE_DIR / "data" / "moods.json"
    # When data_source=firebase: path to service account JSON and optional project id
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    # Timeouts (seconds)
    embedding_timeout: float = 10.0
    vector_timeout: float = 10.0
    catalog_timeout: float = 10.0
    persist_timeout: float = 15.0

    # Pipeline tunables
    max_concurrent_calls: int = 10
    vector_top_k: int = 20
    bucket_cap: int = 15
    catalog_max_results: int = 10
    persist_embeddings: bool = True

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        vector_backend = os.getenv("VECTOR_BACKEND", "").strip().lower()
        if vector_backend not in VECTOR_BACKENDS:
            # Unset or unknown: Pinecone when a key is present, else in-memory.
            vector_backend = "pinecone" if os.getenv("PINECONE_API_KEY") else "memory"
        data_source = os.getenv("DATA_SOURCE", "").strip().lower() or "memory"

        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            pinecone_api_key=os.getenv("PINECONE_API_KEY"),
            youtube_api_key=os.getenv("YOUTUBE_API_KEY"),
            tmdb_api_key=os.getenv("TMDB_API_KEY"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", 8000),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_dimensions=_int_env("EMBEDDING_DIMENSIONS", 1536),
            mood_model=os.getenv("MOOD_MODEL", "gemini/gemini-2.5-flash"),
            vector_backend=vector_backend,
            pinecone_index=os.getenv("PINECONE_INDEX", "moodrec-media"),
            pinecone_namespace=os.getenv("PINECONE_NAMESPACE", "moodrec"),
            data_source=data_source,
            mood_store_path=_path_env("MOOD_STORE_PATH", BASE_DIR / "data" / "moods.json"),
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            embedding_timeout=_float_env("EMBEDDING_TIMEOUT", 10.0),
            vector_timeout=_float_env("VECTOR_TIMEOUT", 10.0),
            catalog_timeout=_float_env("CATALOG_TIMEOUT", 10.0),
            persist_timeout=_float_env("PERSIST_TIMEOUT", 15.0),
            max_concurrent_calls=_int_env("MAX_CONCURRENT_CALLS", 10),
            vector_top_k=_int_env("VECTOR_TOP_K", 20),
            bucket_cap=_int_env("BUCKET_CAP", 15),
            catalog_max_results=_int_env("CATALOG_MAX_RESULTS", 10),
            persist_embeddings=_bool_env("PERSIST_EMBEDDINGS", True),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.vector_backend not in VECTOR_BACKENDS:
            errors.append(f"VECTOR_BACKEND must be one of {VECTOR_BACKENDS}, got {self.vector_backend!r}")
        if self.vector_backend == "pinecone" and not self.pinecone_api_key:
            errors.append("VECTOR_BACKEND=pinecone requires PINECONE_API_KEY")

        if self.data_source not in DATA_SOURCES:
            errors.append(f"DATA_SOURCE must be one of {DATA_SOURCES}, got {self.data_source!r}")
        if self.data_source == "firebase":
            cred = self.firebase_credentials_path
            if cred is not None and not Path(cred).is_file():
                errors.append(f"Firebase credentials file not found: {cred}")

        for name in ("embedding_timeout", "vector_timeout", "catalog_timeout", "persist_timeout"):
            if getattr(self, name) <= 0:
                errors.append(f"{name} must be > 0")
        if self.max_concurrent_calls < 1:
            errors.append("MAX_CONCURRENT_CALLS must be >= 1")

        return len(errors) == 0, errors

    def pipeline_settings(self) -> Dict[str, Any]:
        """Flat settings for PipelineConfig.from_dict."""
        return {
            "vector_top_k": self.vector_top_k,
            "bucket_cap": self.bucket_cap,
            "catalog_max_results": self.catalog_max_results,
            "vector_timeout": self.vector_timeout,
            "catalog_timeout": self.catalog_timeout,
            "rerank_timeout": self.vector_timeout,
            "persist_timeout": self.persist_timeout,
            "max_concurrent_calls": self.max_concurrent_calls,
            "persist_embeddings": self.persist_embeddings,
        }


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
    return _config


def reload_config() -> ServerConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
