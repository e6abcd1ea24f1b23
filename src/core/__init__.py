"""Core module - Configuration, logging, exceptions and shared constants.

Exports:
    - Settings, get_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - AIProvider, Timeouts, API_PREFIX: Service constants
    - Exception classes: AssistantError, AIServiceError, etc.
"""

from src.core.config import Settings, get_settings
from src.core.constants import (
    API_PREFIX,
    API_VERSION,
    AIProvider,
    Timeouts,
)
from src.core.exceptions import (
    AIServiceError,
    AssistantError,
    ChatCompletionClientError,
    ClientError,
    DocumentProcessingError,
    EmbeddingClientError,
    ProviderConfigurationError,
    SessionNotFoundError,
    VectorStoreClientError,
)
from src.core.logging import configure_logging, get_logger


__all__ = [
    "API_PREFIX",
    "API_VERSION",
    # Constants
    "AIProvider",
    # Exceptions
    "AIServiceError",
    "AssistantError",
    "ChatCompletionClientError",
    "ClientError",
    "DocumentProcessingError",
    "EmbeddingClientError",
    "ProviderConfigurationError",
    "SessionNotFoundError",
    # Configuration
    "Settings",
    "Timeouts",
    "VectorStoreClientError",
    # Logging
    "configure_logging",
    "get_logger",
    "get_settings",
]
