"""Service-wide constants.

Provides centralized constants for:
- AI provider names, display names and client cache keys
- Default timeouts and retry settings for external APIs
- API path prefixes for each functional area
- User-facing messages shared between services and routes
"""

from enum import Enum


# =============================================================================
# AI Providers
# =============================================================================

class AIProvider(str, Enum):
    """Chat completion providers.

    Both speak the OpenAI chat completions wire format; Groq is reached
    through its OpenAI-compatible base URL.
    """
    OPENAI = "openai"
    GROQ = "groq"


OPENAI_SERVICE = AIProvider.OPENAI.value
GROQ_SERVICE = AIProvider.GROQ.value

OPENAI_DISPLAY_NAME = "OpenAI"
GROQ_DISPLAY_NAME = "Groq"

# Client cache key prefixes, suffixed with a hash of the API key
OPENAI_CACHE_PREFIX = "openai-"
GROQ_CACHE_PREFIX = "groq-"
OPENAI_STREAMING_CACHE_PREFIX = "openai-streaming-"
GROQ_STREAMING_CACHE_PREFIX = "groq-streaming-"

ERROR_OPENAI_API_KEY_REQUIRED = "OpenAI API key is required"
ERROR_GROQ_API_KEY_REQUIRED = "Groq API key is required"
ERROR_UNKNOWN_SERVICE = "Unknown AI service: "


# =============================================================================
# Timeouts and Retries
# =============================================================================

class Timeouts:
    """Default timeout values in seconds.

    These can be overridden via Settings.
    """
    LLM_DEFAULT: float = 60.0
    EMBEDDINGS: float = 30.0
    VECTOR_STORE: float = 30.0


GROQ_DEFAULT_TEMPERATURE = 0.3
DEFAULT_TEMPERATURE = 0.7

DEFAULT_MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 0.5

# OpenAI accepts at most 2048 inputs per embeddings request
EMBEDDING_BATCH_SIZE = 512
# Pinecone rejects upserts above 1000 vectors or 2 MB
UPSERT_BATCH_SIZE = 100
MAX_UPSERT_BYTES = 2_000_000


# =============================================================================
# API Versioning
# =============================================================================

API_VERSION = "v1"
API_PREFIX = f"/api/{API_VERSION}"

CODE_ASSISTANT_PREFIX = f"{API_PREFIX}/code"
DOCUMENT_RAG_PREFIX = f"{API_PREFIX}/document-rag"
AI_CHAT_PREFIX = f"{API_PREFIX}/ai-chat"
CODE_GENERATOR_PREFIX = f"{API_PREFIX}/code-generator"

HEALTH_CHECK_PATH = "/health"


# =============================================================================
# User-Facing Messages
# =============================================================================

MSG_NO_AI_SERVICES = "Service is running but no AI services are available"
MSG_UNSUPPORTED_UPLOAD = (
    "Only Java source files (.java) are supported unless 100 KB. "
    "Please upload a valid .java file."
)
MSG_JAVA_UPLOADED = (
    "Java file uploaded successfully! You can now ask questions about your code."
)
MSG_PDF_UPLOADED = (
    "PDF uploaded successfully! You can now ask questions about your document."
)
MSG_JAVA_UNPARSEABLE = (
    "Could not parse Java file. The file may be empty or contain invalid Java code."
)
MSG_PDF_UNPARSEABLE = "Could not extract text from PDF. The file may be empty or scanned."
MSG_INDEXING_FAILED = (
    "The file was parsed but could not be indexed for search. Please try uploading it again."
)
MSG_EMPTY_QUESTION = "Please provide a question to ask about your documents."
MSG_NO_AI_RESPONSE = (
    "I apologize, but I couldn't generate a response. Please try rephrasing your question."
)
MSG_AI_RESPONSE_FAILED = (
    "I encountered an error while processing your request. Please try again."
)
MSG_INVALID_FOLLOWUP_SESSION = "Error: Invalid session ID. Please start a new conversation."

VECTOR_STORE_NAME = "Pinecone"
