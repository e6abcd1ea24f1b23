"""In-memory embedding store.

Keeps vectors in a numpy matrix and ranks them by cosine similarity, the
same metric the Pinecone index uses. Used for local runs without Pinecone
(``vector_store_backend = "memory"``) and in tests.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import numpy as np
from numpy.typing import NDArray

from src.schemas.documents import EmbeddingMatch, TextSegment
from src.vectorstore.pinecone import segment_vector_id


logger = logging.getLogger(__name__)

_NORM_EPSILON = 1e-8


class InMemoryEmbeddingStore:
    """Thread-safe vector store with metadata equality filtering."""

    def __init__(self) -> None:
        self._ids: list[str] = []
        self._segments: list[TextSegment | None] = []
        self._vectors: NDArray[Any] | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)

    async def add(
        self,
        embedding: list[float],
        segment: TextSegment | None = None,
        vector_id: str | None = None,
    ) -> str:
        vector_id = vector_id or segment_vector_id(segment)
        self._store([vector_id], [embedding], [segment])
        return vector_id

    async def add_all(
        self,
        embeddings: list[list[float]],
        segments: list[TextSegment] | None = None,
    ) -> list[str]:
        if not embeddings:
            return []

        segments = segments or []
        paired = [segments[i] if i < len(segments) else None for i in range(len(embeddings))]
        ids = [segment_vector_id(segment) for segment in paired]
        self._store(ids, embeddings, paired)
        return ids

    def _store(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        segments: list[TextSegment | None],
    ) -> None:
        """Insert vectors, replacing any existing entries with the same IDs."""
        matrix = np.asarray(embeddings, dtype=np.float64)
        with self._lock:
            if self._vectors is not None and self._vectors.shape[1] != matrix.shape[1]:
                raise ValueError(
                    f"Embedding dimension {matrix.shape[1]} does not match store dimension "
                    f"{self._vectors.shape[1]}"
                )
            replaced = set(ids)
            keep = [index for index, existing in enumerate(self._ids) if existing not in replaced]
            if len(keep) != len(self._ids):
                self._ids = [self._ids[index] for index in keep]
                self._segments = [self._segments[index] for index in keep]
                self._vectors = self._vectors[keep] if keep and self._vectors is not None else None

            self._ids.extend(ids)
            self._segments.extend(segments)
            self._vectors = matrix if self._vectors is None else np.vstack([self._vectors, matrix])

        logger.debug("Stored %d embeddings in memory", len(ids))

    async def find_relevant(
        self,
        vector: list[float],
        top_k: int,
        min_score: float = 0.0,
        metadata_filter: dict[str, str] | None = None,
    ) -> list[EmbeddingMatch]:
        with self._lock:
            if self._vectors is None or not self._ids:
                return []
            candidates = [
                index
                for index, segment in enumerate(self._segments)
                if _matches(segment, metadata_filter)
            ]
            if not candidates:
                return []
            vectors = self._vectors[candidates]
            ids = [self._ids[index] for index in candidates]
            segments = [self._segments[index] for index in candidates]

        query = np.asarray(vector, dtype=np.float64)
        query_norm = query / (np.linalg.norm(query) + _NORM_EPSILON)
        doc_norms = vectors / (np.linalg.norm(vectors, axis=1, keepdims=True) + _NORM_EPSILON)
        similarities = np.dot(doc_norms, query_norm)

        order = np.argsort(similarities)[::-1][:top_k]
        return [
            EmbeddingMatch(
                score=float(similarities[index]),
                embedding_id=ids[index],
                embedded=segments[index],
            )
            for index in order
            if float(similarities[index]) >= min_score
        ]

    async def delete_by_filter(self, metadata_filter: dict[str, str]) -> None:
        if not metadata_filter:
            raise ValueError("metadata_filter must not be empty")
        with self._lock:
            keep = [
                index
                for index, segment in enumerate(self._segments)
                if not _matches(segment, metadata_filter)
            ]
            removed = len(self._ids) - len(keep)
            self._ids = [self._ids[index] for index in keep]
            self._segments = [self._segments[index] for index in keep]
            if self._vectors is not None:
                self._vectors = self._vectors[keep] if keep else None
        logger.info("Deleted %d in-memory embeddings matching %s", removed, metadata_filter)

    async def close(self) -> None:
        return None


def _matches(segment: TextSegment | None, metadata_filter: dict[str, str] | None) -> bool:
    if not metadata_filter:
        return True
    if segment is None:
        return False
    return all(segment.metadata.get(key) == value for key, value in metadata_filter.items())
