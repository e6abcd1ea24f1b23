"""Pinecone REST embedding store.

Async client for a Pinecone index's data plane:
- ``POST /vectors/upsert``: store vectors with segment metadata, batched by
  vector count and request size
- ``POST /query``: nearest-neighbour search with metadata filters
- ``POST /vectors/delete``: delete vectors matching a metadata filter

The index host is ``https://{index}-{project}.svc.{environment}.pinecone.io``.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterator
from typing import Any

import httpx

from src.core.constants import MAX_UPSERT_BYTES, UPSERT_BATCH_SIZE, Timeouts
from src.core.exceptions import VectorStoreClientError
from src.schemas.documents import EmbeddingMatch, TextSegment


logger = logging.getLogger(__name__)

ENDPOINT_UPSERT = "/vectors/upsert"
ENDPOINT_QUERY = "/query"
ENDPOINT_DELETE = "/vectors/delete"
ID_SEPARATOR = "##"
TEXT_METADATA_KEY = "text"


def pinecone_index_url(index_name: str, project_id: str, environment: str) -> str:
    return f"https://{index_name}-{project_id}.svc.{environment}.pinecone.io"


def equality_filter(metadata_filter: dict[str, str] | None) -> dict[str, Any] | None:
    """Translate ``{key: value}`` into Pinecone's ``{key: {"$eq": value}}`` form."""
    if not metadata_filter:
        return None
    return {key: {"$eq": value} for key, value in metadata_filter.items()}


def segment_vector_id(segment: TextSegment | None) -> str:
    """Vector ID for a segment: ``{documentId}##{sessionId}##{uuid4}``."""
    if segment is None:
        return f"embedding-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"
    return ID_SEPARATOR.join(
        [
            str(segment.get("documentId")),
            str(segment.get("sessionId")),
            str(uuid.uuid4()),
        ]
    )


def upsert_batches(
    vectors: list[dict[str, Any]],
    max_vectors: int = UPSERT_BATCH_SIZE,
    max_bytes: int = MAX_UPSERT_BYTES,
) -> Iterator[list[dict[str, Any]]]:
    """Split vectors into upsert requests bounded by count and encoded size.

    A single vector larger than max_bytes still goes out alone.
    """
    batch: list[dict[str, Any]] = []
    batch_bytes = 0
    for vector in vectors:
        size = len(json.dumps(vector))
        if batch and (len(batch) >= max_vectors or batch_bytes + size > max_bytes):
            yield batch
            batch, batch_bytes = [], 0
        batch.append(vector)
        batch_bytes += size
    if batch:
        yield batch


def _metadata_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PineconeEmbeddingStore:
    """Vector store backed by a Pinecone index.

    Attributes:
        base_url: Index host URL
        timeout: Request timeout in seconds
        batch_size: Maximum vectors per upsert request
        max_request_bytes: Maximum encoded size of an upsert request
    """

    def __init__(
        self,
        api_key: str,
        index_name: str,
        project_id: str,
        environment: str,
        timeout: float = Timeouts.VECTOR_STORE,
        batch_size: int = UPSERT_BATCH_SIZE,
        max_request_bytes: int = MAX_UPSERT_BYTES,
    ) -> None:
        self.base_url = pinecone_index_url(index_name, project_id, environment)
        self.timeout = timeout
        self.batch_size = batch_size
        self.max_request_bytes = max_request_bytes
        self._api_key = api_key
        self._client: httpx.AsyncClient | None = None
        logger.info(
            "Pinecone embedding store initialized - Environment: %s, Project: %s, Index: %s",
            environment,
            project_id,
            index_name,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client (lazy initialization)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Api-Key": self._api_key, "Content-Type": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _post(self, endpoint: str, payload: dict[str, Any], action: str) -> dict[str, Any]:
        client = self._get_client()
        try:
            response = await client.post(endpoint, json=payload)
        except httpx.HTTPError as e:
            raise VectorStoreClientError(f"Failed to {action} Pinecone: {e}") from e

        if response.is_error:
            logger.error("Pinecone API error: %d - %s", response.status_code, response.text)
            raise VectorStoreClientError(
                f"Failed to {action} Pinecone: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        result: dict[str, Any] = response.json()
        return result

    # =========================================================================
    # Writes
    # =========================================================================

    @staticmethod
    def _vector(vector_id: str, embedding: list[float], segment: TextSegment | None) -> dict[str, Any]:
        metadata: dict[str, Any] = {}
        if segment is not None:
            metadata[TEXT_METADATA_KEY] = segment.text
            metadata.update(segment.metadata)
        return {"id": vector_id, "values": list(embedding), "metadata": metadata}

    async def add(
        self,
        embedding: list[float],
        segment: TextSegment | None = None,
        vector_id: str | None = None,
    ) -> str:
        """Upsert one vector.

        Args:
            embedding: Vector values
            segment: Text and metadata stored alongside the vector
            vector_id: Explicit ID; generated from the segment when omitted

        Returns:
            The vector ID
        """
        vector_id = vector_id or segment_vector_id(segment)
        await self._post(
            ENDPOINT_UPSERT,
            {"vectors": [self._vector(vector_id, embedding, segment)]},
            "add to",
        )
        logger.info("Added embedding to Pinecone with ID: %s", vector_id)
        return vector_id

    async def add_all(
        self,
        embeddings: list[list[float]],
        segments: list[TextSegment] | None = None,
    ) -> list[str]:
        """Upsert vectors, split into requests Pinecone accepts.

        Segments pair with embeddings by position; embeddings without a
        segment are stored without metadata.
        """
        if not embeddings:
            return []

        segments = segments or []
        vectors = []
        ids = []
        for index, embedding in enumerate(embeddings):
            segment = segments[index] if index < len(segments) else None
            vector_id = segment_vector_id(segment)
            ids.append(vector_id)
            vectors.append(self._vector(vector_id, embedding, segment))

        requests = 0
        for batch in upsert_batches(vectors, self.batch_size, self.max_request_bytes):
            await self._post(ENDPOINT_UPSERT, {"vectors": batch}, "add to")
            requests += 1
        logger.info("Added %d embeddings to Pinecone in %d requests", len(ids), requests)
        return ids

    async def delete_by_filter(self, metadata_filter: dict[str, str]) -> None:
        """Delete every vector whose metadata matches all filter entries."""
        if not metadata_filter:
            raise ValueError("metadata_filter must not be empty")
        await self._post(
            ENDPOINT_DELETE,
            {"filter": equality_filter(metadata_filter)},
            "delete from",
        )
        logger.info("Deleted Pinecone vectors matching %s", metadata_filter)

    # =========================================================================
    # Search
    # =========================================================================

    async def find_relevant(
        self,
        vector: list[float],
        top_k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, str] | None = None,
    ) -> list[EmbeddingMatch]:
        """Query the index for the nearest vectors.

        Args:
            vector: Query embedding
            top_k: Maximum number of matches requested from Pinecone
            min_score: Matches scoring below this are dropped
            metadata_filter: Equality filter on metadata fields

        Returns:
            Matches in Pinecone's order (best first)
        """
        payload: dict[str, Any] = {
            "vector": list(vector),
            "topK": top_k,
            "includeMetadata": True,
            "includeValues": False,
        }
        pinecone_filter = equality_filter(metadata_filter)
        if pinecone_filter:
            payload["filter"] = pinecone_filter

        data = await self._post(ENDPOINT_QUERY, payload, "query")

        results: list[EmbeddingMatch] = []
        for match in data.get("matches") or []:
            score = float(match.get("score", 0.0))
            if score < min_score:
                continue
            metadata = match.get("metadata") or {}
            segment = None
            if TEXT_METADATA_KEY in metadata:
                segment = TextSegment(
                    text=str(metadata[TEXT_METADATA_KEY]),
                    metadata={key: _metadata_value(value) for key, value in metadata.items()},
                )
            results.append(EmbeddingMatch(score=score, embedding_id=str(match.get("id")), embedded=segment))

        logger.info(
            "Found %d relevant embeddings in Pinecone with score >= %s and filter: %s",
            len(results),
            min_score,
            metadata_filter or "none",
        )
        return results
