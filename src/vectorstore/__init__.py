"""Embedding stores.

PineconeEmbeddingStore talks to a hosted Pinecone index over REST;
InMemoryEmbeddingStore offers the same interface backed by numpy.
"""

from src.vectorstore.memory import InMemoryEmbeddingStore
from src.vectorstore.pinecone import (
    PineconeEmbeddingStore,
    equality_filter,
    pinecone_index_url,
    segment_vector_id,
)


__all__ = [
    "InMemoryEmbeddingStore",
    "PineconeEmbeddingStore",
    "equality_filter",
    "pinecone_index_url",
    "segment_vector_id",
]
