"""AI Providers.

Provider client management, provider-bound chat services and the service
factory used by the HTTP routes.
"""

from src.providers.chat_services import (
    AIChatService,
    GroqAIChatService,
    OpenAIChatService,
    ProviderChatService,
)
from src.providers.factory import AIServiceFactory, create_service_factory
from src.providers.manager import ProviderManager


__all__ = [
    "AIChatService",
    "AIServiceFactory",
    "GroqAIChatService",
    "OpenAIChatService",
    "ProviderChatService",
    "ProviderManager",
    "create_service_factory",
]
