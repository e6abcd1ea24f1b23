"""Service Client Protocols.

Duck typing protocols for external API clients and the vector store. Enables
FakeClient substitution in tests.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from src.schemas.documents import EmbeddingMatch, TextSegment


@runtime_checkable
class ChatCompletionProtocol(Protocol):
    """Protocol for an OpenAI-compatible chat completion client.

    Methods:
        complete: Generate a full completion for a message list
        stream: Yield completion tokens as they arrive
        close: Release HTTP client resources
    """

    async def complete(self, messages: list[dict[str, str]]) -> str:
        ...

    def stream(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class EmbeddingClientProtocol(Protocol):
    """Protocol for a text embedding client."""

    async def embed_all(self, texts: list[str]) -> list[list[float]]:
        """Embed texts, one vector per input in input order."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class EmbeddingStoreProtocol(Protocol):
    """Protocol for a vector store holding embedded text segments.

    Implemented by PineconeEmbeddingStore and InMemoryEmbeddingStore.
    """

    async def add(
        self,
        embedding: list[float],
        segment: TextSegment | None = None,
        vector_id: str | None = None,
    ) -> str:
        """Store one vector (replacing any with the same ID) and return its ID."""
        ...

    async def add_all(
        self, embeddings: list[list[float]], segments: list[TextSegment] | None = None
    ) -> list[str]:
        """Store vectors in one batch and return their IDs."""
        ...

    async def find_relevant(
        self,
        vector: list[float],
        top_k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, str] | None = None,
    ) -> list[EmbeddingMatch]:
        """Return the closest stored segments, best first."""
        ...

    async def delete_by_filter(self, metadata_filter: dict[str, str]) -> None:
        """Delete every vector whose metadata matches the filter."""
        ...

    async def close(self) -> None:
        ...
