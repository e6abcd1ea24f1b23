"""OpenAI embeddings HTTP client.

Async client for ``POST {base_url}/embeddings``. Used to embed document
segments before they are upserted into the vector store, user questions
before similarity search, and intent example phrases.

Connection pooling via a single lazily created httpx.AsyncClient; transient
errors (5xx, timeouts, connection failures) are retried with exponential
backoff.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from src.core.constants import (
    DEFAULT_MAX_RETRIES,
    EMBEDDING_BATCH_SIZE,
    RETRY_BACKOFF_FACTOR,
    Timeouts,
)
from src.core.exceptions import EmbeddingClientError


logger = logging.getLogger(__name__)

ENDPOINT_EMBEDDINGS = "/embeddings"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})


class OpenAIEmbeddingClient:
    """HTTP client for the OpenAI embeddings API.

    Attributes:
        base_url: API base URL
        model: Embedding model name
        timeout: Request timeout in seconds
        max_retries: Maximum retry attempts on transient errors
        batch_size: Maximum texts sent in one request

    Example:
        >>> client = OpenAIEmbeddingClient(api_key="sk-...")
        >>> vectors = await client.embed_all(["first", "second"])
        >>> await client.close()
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_EMBEDDING_MODEL,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = Timeouts.EMBEDDINGS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        batch_size: int = EMBEDDING_BATCH_SIZE,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.batch_size = batch_size
        self._api_key = api_key
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _backoff(self, attempt: int) -> None:
        delay = RETRY_BACKOFF_FACTOR * (2**attempt)
        await asyncio.sleep(delay)

    async def _post_with_retry(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST to the embeddings endpoint, retrying transient errors.

        Raises:
            EmbeddingClientError: On 4xx responses or after exhausting retries
        """
        client = await self._get_client()
        last_exception: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post(ENDPOINT_EMBEDDINGS, json=payload)
                response.raise_for_status()
                result: dict[str, Any] = response.json()
                return result

            except httpx.HTTPStatusError as e:
                if e.response.status_code not in RETRYABLE_STATUS_CODES:
                    raise EmbeddingClientError(
                        f"Embedding request failed: {e.response.status_code} - {e.response.text}",
                        status_code=e.response.status_code,
                    ) from e
                last_exception = e

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                last_exception = e

            if attempt < self.max_retries:
                logger.warning(
                    "Retrying embeddings request (attempt %d/%d): %s",
                    attempt + 1,
                    self.max_retries,
                    str(last_exception),
                )
                await self._backoff(attempt)

        raise EmbeddingClientError(
            f"Embedding service unavailable after {self.max_retries} retries: {last_exception}"
        ) from last_exception

    async def embed_all(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts, at most batch_size per request.

        Args:
            texts: Texts to embed

        Returns:
            One vector per input text, in input order
        """
        vectors: list[list[float]] = []
        for start in range(0, len(texts), self.batch_size):
            batch = texts[start : start + self.batch_size]
            data = await self._post_with_retry({"model": self.model, "input": batch})
            items = sorted(data.get("data", []), key=lambda item: item.get("index", 0))
            vectors.extend(list(map(float, item["embedding"])) for item in items)

        logger.debug("Embedded %d texts with %s", len(vectors), self.model)
        return vectors

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Raises:
            EmbeddingClientError: If the API returned no vector
        """
        vectors = await self.embed_all([text])
        if not vectors:
            raise EmbeddingClientError("Embedding response contained no vectors")
        return vectors[0]
