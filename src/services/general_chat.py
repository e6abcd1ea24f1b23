"""General chat service.

Free-form conversation with a chat provider. When a session is supplied,
its rolling memory is replayed as prior turns and the new exchange is
appended to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.core.exceptions import AIServiceError, SessionNotFoundError
from src.providers.factory import resolve_provider
from src.providers.manager import ProviderManager
from src.sessions.manager import SessionManager
from src.sessions.memory import MemoryMessage, MessageType
from src.strategies.messages import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER


logger = logging.getLogger(__name__)

GENERAL_CHAT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for software developers. "
    "Answer clearly and concisely, and use code examples when they help."
)

_MEMORY_ROLES = {
    MessageType.USER: ROLE_USER,
    MessageType.AI: ROLE_ASSISTANT,
    MessageType.SYSTEM: ROLE_SYSTEM,
}


@dataclass(frozen=True)
class ChatReply:
    """A provider answer and the session it was recorded in."""

    response: str
    session_id: str | None


class GeneralChatService:
    """Session-aware chat over the provider manager."""

    def __init__(
        self,
        provider_manager: ProviderManager,
        session_manager: SessionManager,
        system_prompt: str = GENERAL_CHAT_SYSTEM_PROMPT,
    ) -> None:
        self.provider_manager = provider_manager
        self.session_manager = session_manager
        self.system_prompt = system_prompt

    async def send_message(
        self,
        message: str,
        session_id: str | None = None,
        service: str | None = None,
        api_key: str | None = None,
    ) -> ChatReply:
        """Send a message, replaying the session's memory when one is given.

        Raises:
            SessionNotFoundError: If session_id names an unknown session
            AIServiceError: If the provider is misconfigured or fails
        """
        memory = None
        if session_id is not None:
            memory = self.session_manager.get_session_memory(session_id)
            if memory is None:
                raise SessionNotFoundError(session_id)

        messages = [{"role": ROLE_SYSTEM, "content": self.system_prompt}]
        if memory is not None:
            messages.extend(
                {"role": _MEMORY_ROLES[turn.type], "content": turn.text}
                for turn in memory.messages()
            )
        messages.append({"role": ROLE_USER, "content": message})

        provider = resolve_provider(service)
        logger.info(
            "General chat - Provider: %s, Session: %s, Prior turns: %d",
            provider,
            session_id,
            len(messages) - 2,
        )
        try:
            model = self.provider_manager.get_model(provider, api_key)
            response = await model.complete(messages)
        except AIServiceError:
            raise
        except Exception as e:
            logger.error("General chat failed with provider %s: %s", provider, e)
            raise AIServiceError(f"Failed to get chat response: {e}", cause=e) from e

        if memory is not None:
            memory.add(MemoryMessage.user(message))
            memory.add(MemoryMessage.ai(response))
        return ChatReply(response=response, session_id=session_id)

    def get_history(self, session_id: str) -> list[dict[str, str]]:
        """Role/content turns held in a session's memory.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        memory = self.session_manager.get_session_memory(session_id)
        if memory is None:
            raise SessionNotFoundError(session_id)
        return [
            {"role": _MEMORY_ROLES[turn.type], "content": turn.text}
            for turn in memory.messages()
        ]
