"""Embedding client — batch-embeds text chunks via Ollama or OpenAI.

Both providers are reached through the OpenAI-compatible embeddings API:
Ollama exposes it under ``<base_url>/v1`` and needs no API key.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol
from urllib.parse import urlsplit

from openai import OpenAI, OpenAIError

from noema.config import OLLAMA_DEFAULT_URL

if TYPE_CHECKING:
    from noema.config import EmbeddingConfig

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Unified error for all embedding providers. Covers the whole call."""

    def __init__(self, message: str, provider: str, original: Exception | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.original = original


class EmbeddingProvider(Protocol):
    """Protocol for anything that turns texts into vectors.

    Implementations must return exactly one vector per input, in input
    order, or raise EmbeddingError for the whole call.
    """

    def embed_texts(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, query: str) -> list[float]: ...


def _resolve_base_url(config: EmbeddingConfig) -> str | None:
    """API base URL for the configured provider. None = OpenAI SDK default."""
    if config.provider == "ollama":
        url = config.base_url or OLLAMA_DEFAULT_URL
        return f"{url.rstrip('/')}/v1"
    return config.base_url or None


def _validate_url(url: str, provider: str) -> None:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise EmbeddingError(f"invalid {provider} URL: {url!r}", provider=provider)


class Embedder:
    """Generates embeddings for text chunks.

    Texts are sent in a single request unless ``config.batch_size`` is set,
    in which case they go out in consecutive batches. Any failing batch
    fails the whole call.
    """

    def __init__(
        self,
        config: EmbeddingConfig,
        api_key: str = "",
        client: OpenAI | None = None,
    ) -> None:
        self.config = config
        self.provider = config.provider
        if client is not None:
            self._client = client
            return

        base_url = _resolve_base_url(config)
        if base_url is not None:
            _validate_url(base_url, self.provider)
        try:
            self._client = OpenAI(
                api_key=api_key or ("ollama" if self.provider == "ollama" else None),
                base_url=base_url,
                timeout=config.timeout_seconds,
                max_retries=0,
            )
        except OpenAIError as e:
            raise EmbeddingError(str(e), provider=self.provider, original=e) from e

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, returning one vector per input in the same order."""
        if not texts:
            return []

        step = self.config.batch_size or len(texts)
        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), step):
            batch = texts[i : i + step]
            all_embeddings.extend(self._embed_batch(batch))
            logger.debug(
                "Embedded batch %d-%d of %d",
                i,
                min(i + step, len(texts)),
                len(texts),
            )
        return all_embeddings

    def embed_query(self, query: str) -> list[float]:
        """Embed a single query string."""
        return self.embed_texts([query])[0]

    def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            response = self._client.embeddings.create(model=self.config.model, input=batch)
        except OpenAIError as e:
            raise EmbeddingError(
                f"{self.provider} embedding request failed: {e}",
                provider=self.provider,
                original=e,
            ) from e

        if len(response.data) != len(batch):
            raise EmbeddingError(
                f"{self.provider} returned {len(response.data)} embeddings for {len(batch)} inputs",
                provider=self.provider,
            )
        items = sorted(response.data, key=lambda item: item.index)
        return [list(item.embedding) for item in items]
