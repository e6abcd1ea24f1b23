"""Unit tests for core configuration.

Pattern: Pydantic Settings testing
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.core.config import Settings, get_settings
from src.core.constants import GROQ_DEFAULT_TEMPERATURE


class TestSettings:
    """Tests for Settings configuration class."""

    def test_settings_default_values(self) -> None:
        """Settings fields carry the documented defaults."""
        fields = Settings.model_fields
        assert fields["port"].default == 8080
        assert fields["openai_model"].default == "gpt-3.5-turbo"
        assert fields["groq_model"].default == "llama3-8b-8192"
        assert fields["embedding_model"].default == "text-embedding-3-small"
        assert fields["session_max_messages"].default == 10
        assert fields["pinecone_index_name"].default == "at-ai-lab-index-openai-3-small"
        assert fields["default_ai_service"].default == "OpenAIChatService"
        assert fields["groq_temperature"].default == GROQ_DEFAULT_TEMPERATURE == 0.3

    def test_settings_from_prefixed_environment(self) -> None:
        """Prefixed CODE_ASSISTANT_ variables are read."""
        env_vars = {
            "CODE_ASSISTANT_PORT": "9090",
            "CODE_ASSISTANT_LOG_LEVEL": "DEBUG",
            "CODE_ASSISTANT_VECTOR_STORE_BACKEND": "memory",
            "CODE_ASSISTANT_SESSION_MAX_MESSAGES": "4",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings(_env_file=None)

        assert settings.port == 9090
        assert settings.log_level == "DEBUG"
        assert settings.vector_store_backend == "memory"
        assert settings.session_max_messages == 4

    def test_conventional_api_key_names_are_accepted(self) -> None:
        """Provider keys are also read from their unprefixed names."""
        env_vars = {
            "OPENAI_API_KEY": "sk-plain",
            "GROK_API_KEY": "gsk-legacy",
            "PINECONE_API_KEY": "pc-plain",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings(_env_file=None)

        assert settings.openai_api_key.get_secret_value() == "sk-plain"
        assert settings.groq_api_key.get_secret_value() == "gsk-legacy"
        assert settings.pinecone_api_key.get_secret_value() == "pc-plain"

    def test_api_keys_are_secret(self, test_settings: Settings) -> None:
        """API keys do not leak through repr."""
        assert "sk-test-openai" not in repr(test_settings)
        assert test_settings.openai_api_key.get_secret_value() == "sk-test-openai"

    def test_invalid_backend_rejected(self) -> None:
        """Only pinecone and memory backends are accepted."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, vector_store_backend="qdrant")

    def test_session_window_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, session_max_messages=0)


class TestGetSettings:
    """Tests for the cached settings accessor."""

    def test_get_settings_is_cached(self) -> None:
        """get_settings returns the same instance on every call."""
        assert get_settings() is get_settings()
