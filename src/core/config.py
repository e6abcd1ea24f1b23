"""Application configuration using Pydantic Settings.

Environment variables are loaded with the CODE_ASSISTANT_ prefix. Provider
API keys additionally accept their conventional unprefixed names
(OPENAI_API_KEY, GROQ_API_KEY / GROK_API_KEY, PINECONE_API_KEY).
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.core.constants import GROQ_DEFAULT_TEMPERATURE


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service configuration
    service_name: str = "code-assistant"
    port: int = 8080
    environment: str = Field(default="development", description="Runtime environment")
    log_level: str = Field(default="INFO", description="Logging level")

    # AI providers
    openai_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("CODE_ASSISTANT_OPENAI_API_KEY", "OPENAI_API_KEY"),
        description="OpenAI API key",
    )
    groq_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices(
            "CODE_ASSISTANT_GROQ_API_KEY", "GROQ_API_KEY", "GROK_API_KEY"
        ),
        description="Groq API key",
    )
    openai_model: str = Field(default="gpt-3.5-turbo", description="OpenAI chat model")
    groq_model: str = Field(default="llama3-8b-8192", description="Groq chat model")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
    )
    groq_base_url: str = Field(
        default="https://api.groq.com/openai/v1",
        description="Groq OpenAI-compatible API base URL",
    )
    llm_timeout_seconds: int = Field(default=60, description="Chat completion timeout")
    groq_temperature: float = Field(default=GROQ_DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    default_ai_service: str = Field(
        default="OpenAIChatService",
        description="Chat service used by endpoints without a service path segment",
    )

    # Embeddings
    embedding_model: str = Field(
        default="text-embedding-3-small",
        description="OpenAI embedding model",
    )
    embedding_timeout_seconds: int = Field(default=30, description="Embedding request timeout")

    # Vector store
    vector_store_backend: Literal["pinecone", "memory"] = Field(
        default="pinecone",
        description="Vector store implementation",
    )
    pinecone_api_key: SecretStr = Field(
        default=SecretStr(""),
        validation_alias=AliasChoices("CODE_ASSISTANT_PINECONE_API_KEY", "PINECONE_API_KEY"),
        description="Pinecone API key",
    )
    pinecone_environment: str = Field(default="aped-4627-b74a")
    pinecone_project_id: str = Field(default="9dn22sq")
    pinecone_index_name: str = Field(default="at-ai-lab-index-openai-3-small")
    pinecone_timeout_seconds: int = Field(default=30, description="Pinecone request timeout")

    # Sessions
    session_max_messages: int = Field(
        default=10,
        gt=0,
        description="Rolling window size of each session's chat memory",
    )

    # Uploads
    max_java_file_bytes: int = Field(default=100 * 1024, description="Java upload limit")
    max_pdf_file_bytes: int = Field(default=10 * 1024 * 1024, description="PDF upload limit")
    pdf_chunk_size: int = Field(default=1000, gt=0, description="PDF chunk size in characters")
    pdf_chunk_overlap: int = Field(default=200, ge=0, description="PDF chunk overlap")

    # Retrieval
    rag_top_k: int = Field(default=10, gt=0)
    rag_min_score: float = Field(default=0.0, ge=0.0, le=1.0)
    intent_top_k: int = Field(default=5, gt=0)
    intent_min_score: float = Field(default=0.3, ge=0.0, le=1.0)
    initialize_intents_on_startup: bool = Field(
        default=True,
        description="Embed and upsert the intent examples when the app starts",
    )

    model_config = SettingsConfigDict(
        env_prefix="CODE_ASSISTANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton
    """
    return Settings()
