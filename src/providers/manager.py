"""Chat provider manager.

Resolves a provider name (``openai`` / ``groq``) to a configured
chat-completion client and caches the client per provider, streaming flag
and API key so repeated requests reuse one HTTP connection pool.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from collections.abc import Callable

from src.clients.chat_completion import ChatCompletionClient
from src.clients.protocols import ChatCompletionProtocol
from src.core.config import Settings, get_settings
from src.core.constants import (
    ERROR_GROQ_API_KEY_REQUIRED,
    ERROR_OPENAI_API_KEY_REQUIRED,
    ERROR_UNKNOWN_SERVICE,
    GROQ_CACHE_PREFIX,
    GROQ_DISPLAY_NAME,
    GROQ_SERVICE,
    GROQ_STREAMING_CACHE_PREFIX,
    OPENAI_CACHE_PREFIX,
    OPENAI_DISPLAY_NAME,
    OPENAI_SERVICE,
    OPENAI_STREAMING_CACHE_PREFIX,
)
from src.core.exceptions import ProviderConfigurationError


logger = logging.getLogger(__name__)

ClientFactory = Callable[..., ChatCompletionProtocol]


def _key_fingerprint(api_key: str) -> str:
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]


class ProviderManager:
    """Builds and caches chat-completion clients per provider.

    API key precedence: a non-blank per-request key, then the configured
    key. A provider with neither raises ProviderConfigurationError.

    Attributes:
        settings: Application settings holding keys, models and base URLs
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client_factory: ClientFactory = ChatCompletionClient,
    ) -> None:
        self.settings = settings or get_settings()
        self._client_factory = client_factory
        self._clients: dict[str, ChatCompletionProtocol] = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Model Resolution
    # =========================================================================

    def get_model(self, service: str, api_key: str | None = None) -> ChatCompletionProtocol:
        """Get the chat client for a provider.

        Args:
            service: Provider name, case-insensitive ("openai" or "groq")
            api_key: Optional per-request key overriding the configured one

        Raises:
            ProviderConfigurationError: Unknown provider or no usable key
        """
        return self._resolve(service, api_key, streaming=False)

    def get_streaming_model(
        self, service: str, api_key: str | None = None
    ) -> ChatCompletionProtocol:
        """Get the chat client used for token streaming."""
        return self._resolve(service, api_key, streaming=True)

    def _resolve(
        self, service: str, api_key: str | None, streaming: bool
    ) -> ChatCompletionProtocol:
        provider = (service or "").strip().lower()

        if provider == OPENAI_SERVICE:
            key = self._select_key(api_key, self.settings.openai_api_key.get_secret_value())
            if not key:
                raise ProviderConfigurationError(ERROR_OPENAI_API_KEY_REQUIRED, provider)
            prefix = OPENAI_STREAMING_CACHE_PREFIX if streaming else OPENAI_CACHE_PREFIX
            return self._cached(prefix + _key_fingerprint(key), lambda: self._build_openai(key))

        if provider == GROQ_SERVICE:
            key = self._select_key(api_key, self.settings.groq_api_key.get_secret_value())
            if not key:
                raise ProviderConfigurationError(ERROR_GROQ_API_KEY_REQUIRED, provider)
            prefix = GROQ_STREAMING_CACHE_PREFIX if streaming else GROQ_CACHE_PREFIX
            return self._cached(prefix + _key_fingerprint(key), lambda: self._build_groq(key))

        raise ProviderConfigurationError(ERROR_UNKNOWN_SERVICE + service, service)

    @staticmethod
    def _select_key(request_key: str | None, configured_key: str) -> str:
        if request_key and request_key.strip():
            return request_key.strip()
        return configured_key.strip()

    def _cached(
        self, cache_key: str, build: Callable[[], ChatCompletionProtocol]
    ) -> ChatCompletionProtocol:
        with self._lock:
            client = self._clients.get(cache_key)
            if client is None:
                client = build()
                self._clients[cache_key] = client
                logger.debug("Created chat client: %s", cache_key.rsplit("-", 1)[0])
            return client

    def _build_openai(self, api_key: str) -> ChatCompletionProtocol:
        return self._client_factory(
            base_url=self.settings.openai_base_url,
            api_key=api_key,
            model=self.settings.openai_model,
            temperature=None,
            timeout=float(self.settings.llm_timeout_seconds),
            provider=OPENAI_SERVICE,
        )

    def _build_groq(self, api_key: str) -> ChatCompletionProtocol:
        return self._client_factory(
            base_url=self.settings.groq_base_url,
            api_key=api_key,
            model=self.settings.groq_model,
            temperature=self.settings.groq_temperature,
            timeout=float(self.settings.llm_timeout_seconds),
            provider=GROQ_SERVICE,
        )

    # =========================================================================
    # Availability
    # =========================================================================

    def is_service_available(self, service: str) -> bool:
        """Check whether a provider has a configured API key."""
        provider = (service or "").strip().lower()
        if provider == OPENAI_SERVICE:
            return bool(self.settings.openai_api_key.get_secret_value().strip())
        if provider == GROQ_SERVICE:
            return bool(self.settings.groq_api_key.get_secret_value().strip())
        return False

    def get_available_services(self) -> dict[str, bool]:
        """Availability of each provider keyed by display name."""
        return {
            OPENAI_DISPLAY_NAME: self.is_service_available(OPENAI_SERVICE),
            GROQ_DISPLAY_NAME: self.is_service_available(GROQ_SERVICE),
        }

    async def close(self) -> None:
        """Close every cached client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            await client.close()
