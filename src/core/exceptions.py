"""Custom exceptions for the code assistant service.

All exceptions are namespaced under AssistantError so callers can catch
any service failure with a single except clause without shadowing Python
builtins such as ConnectionError or TimeoutError.
"""


class AssistantError(Exception):
    """Base exception for all code assistant errors."""

    def __init__(self, message: str) -> None:
        """Initialize assistant error.

        Args:
            message: Error description
        """
        self.message = message
        super().__init__(message)


class AIServiceError(AssistantError):
    """Raised when an AI chat service cannot serve a request.

    Covers unknown services, missing strategies, provider call failures
    and invalid sessions.
    """

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        """Initialize AI service error.

        Args:
            message: Error description
            cause: Original exception that caused this error
        """
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message)


class ProviderConfigurationError(AIServiceError):
    """Raised when a provider is unknown or has no usable API key."""

    def __init__(self, message: str, provider: str | None = None) -> None:
        """Initialize provider configuration error.

        Args:
            message: Error description
            provider: Provider name that failed to resolve
        """
        self.provider = provider
        super().__init__(message)


class SessionNotFoundError(AIServiceError):
    """Raised when a request references a session that does not exist."""

    def __init__(self, session_id: str | None) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class ClientError(AssistantError):
    """Raised when an external HTTP API client fails.

    This is the base class for service-specific client errors.
    """

    def __init__(
        self,
        message: str,
        service_name: str,
        status_code: int | None = None,
    ) -> None:
        """Initialize client error.

        Args:
            message: Error description
            service_name: Name of the external service
            status_code: HTTP status code if applicable
        """
        self.service_name = service_name
        self.status_code = status_code
        super().__init__(message)


class ChatCompletionClientError(ClientError):
    """Raised when an OpenAI-compatible chat completion call fails."""

    def __init__(
        self,
        message: str,
        provider: str = "openai",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, provider, status_code)


class EmbeddingClientError(ClientError):
    """Raised when the embeddings API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "openai-embeddings", status_code)


class VectorStoreClientError(ClientError):
    """Raised when the vector store (Pinecone) API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, "pinecone", status_code)


class DocumentProcessingError(AssistantError):
    """Raised when an uploaded document cannot be parsed."""

    def __init__(self, message: str, file_name: str | None = None) -> None:
        """Initialize document processing error.

        Args:
            message: Error description
            file_name: Name of the uploaded file
        """
        self.file_name = file_name
        super().__init__(message)
