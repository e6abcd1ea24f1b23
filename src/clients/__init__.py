"""External API Clients.

HTTP clients for OpenAI-compatible chat completions (OpenAI, Groq) and the
OpenAI embeddings API.
"""

from src.clients.chat_completion import (
    ChatCompletionClient,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
)
from src.clients.embeddings import OpenAIEmbeddingClient
from src.clients.protocols import (
    ChatCompletionProtocol,
    EmbeddingClientProtocol,
    EmbeddingStoreProtocol,
)


__all__ = [
    "ChatCompletionClient",
    "ChatCompletionProtocol",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatMessage",
    "EmbeddingClientProtocol",
    "EmbeddingStoreProtocol",
    "OpenAIEmbeddingClient",
]
