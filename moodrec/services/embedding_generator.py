"""
Embedding Generator

Turns text into embedding vectors using OpenAI's API. One call per text, no
internal retries: callers decide whether a failure means fallback.

Usage:
    provider = OpenAIEmbeddingProvider(api_key="sk-...")
    vector = await provider.embed("I had a long, quiet day")
"""

import os
from typing import List, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError

from ..errors import ProviderError


class EmbeddingProvider(Protocol):
    """Text in, fixed-length vector out. Raises ProviderError on failure."""

    dimensions: int

    async def embed(self, text: str) -> List[float]:
        ...


class OpenAIEmbeddingProvider:
    """
    Generates embeddings using OpenAI's embedding API.

    The client is created lazily so a missing key only fails when an
    embedding is actually requested.
    """

    # Default configuration
    DEFAULT_MODEL = "text-embedding-3-small"
    DEFAULT_DIMENSIONS = 1536
    DEFAULT_TIMEOUT = 10.0  # seconds

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the embedding provider.

        Args:
            api_key: OpenAI API key (falls back to OPENAI_API_KEY env var)
            model: Embedding model to use
            dimensions: Embedding dimensions
            timeout: Per-request timeout in seconds
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the async OpenAI client."""
        if not self.api_key:
            raise ProviderError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable "
                "or pass api_key to OpenAIEmbeddingProvider."
            )
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding for one text.

        Raises:
            ValueError: text is empty
            ProviderError: network, auth, or quota failure
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")
        try:
            response = await self.client.embeddings.create(
                model=self.model,
                input=text,
                dimensions=self.dimensions,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI embedding failed: {type(e).__name__}: {e}") from e
        if not response.data:
            raise ProviderError("OpenAI embedding response contained no data")
        return list(response.data[0].embedding)


def check_openai_available() -> tuple[bool, str]:
    """
    Check if OpenAI is configured.

    Returns:
        (is_available, message)
    """
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return False, "OPENAI_API_KEY environment variable not set"
    return True, "OpenAI configured and ready"
