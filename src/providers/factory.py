"""AI service factory.

Holds the available chat services keyed by class name
(``OpenAIChatService``, ``GroqAIChatService``) and resolves the service
named in a request path.
"""

from __future__ import annotations

import logging

from src.core.constants import GROQ_SERVICE, OPENAI_SERVICE
from src.core.exceptions import AIServiceError
from src.providers.chat_services import (
    AIChatService,
    GroqAIChatService,
    OpenAIChatService,
)
from src.providers.manager import ProviderManager


logger = logging.getLogger(__name__)

SERVICE_ALIASES: dict[str, str] = {
    OPENAI_SERVICE: OpenAIChatService.__name__,
    GROQ_SERVICE: GroqAIChatService.__name__,
}
SERVICE_PROVIDERS: dict[str, str] = {name: provider for provider, name in SERVICE_ALIASES.items()}


def resolve_provider(service_name: str | None, default: str = OPENAI_SERVICE) -> str:
    """Provider behind a chat service class name or provider alias.

    Unknown names come back lowercased so the ProviderManager can reject them.
    """
    name = (service_name or "").strip()
    if not name:
        return default
    return SERVICE_PROVIDERS.get(name, name.lower())


class AIServiceFactory:
    """Registry of available AI chat services."""

    def __init__(self, services: list[AIChatService]) -> None:
        self._services: dict[str, AIChatService] = {
            type(service).__name__: service for service in services if service.is_available()
        }
        logger.info(
            "AIServiceFactory initialized with %d available services: %s",
            len(self._services),
            list(self._services),
        )

    def get_service(self, service_name: str) -> AIChatService:
        """Resolve a service by class name or provider alias.

        Args:
            service_name: e.g. "OpenAIChatService", "GroqAIChatService", "openai"

        Raises:
            AIServiceError: If no such service is available
        """
        service = self._services.get(service_name)
        if service is None:
            alias = SERVICE_ALIASES.get((service_name or "").strip().lower())
            service = self._services.get(alias) if alias else None
        if service is None:
            raise AIServiceError(
                f"Service '{service_name}' is not available. "
                f"Available services: [{', '.join(self._services)}]"
            )
        return service

    def get_all_available_services(self) -> dict[str, AIChatService]:
        return dict(self._services)

    def has_available_services(self) -> bool:
        return bool(self._services)

    def get_available_service_count(self) -> int:
        return len(self._services)


def create_service_factory(provider_manager: ProviderManager) -> AIServiceFactory:
    """Build the factory with every provider-backed chat service."""
    return AIServiceFactory(
        [
            OpenAIChatService(provider_manager),
            GroqAIChatService(provider_manager),
        ]
    )
