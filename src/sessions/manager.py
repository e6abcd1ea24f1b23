"""SessionManager - In-memory conversation session storage.

Implements:
- Session creation with unique IDs (uuid4)
- Chat memory retrieval by session ID
- Manual cleanup of one or all sessions
- Thread-safe operations using threading.Lock

Sessions never expire; they live until cleared or the process exits.
"""

from __future__ import annotations

import logging
import threading
import uuid

from src.core.config import get_settings
from src.sessions.memory import DEFAULT_MAX_MESSAGES, ChatMemory


logger = logging.getLogger(__name__)


class SessionManager:
    """In-memory session storage with thread-safe operations.

    Each session maps to a ChatMemory window holding the last
    ``max_messages`` chat turns.

    Attributes:
        _sessions: Internal dictionary mapping session IDs to ChatMemory
        _lock: Threading lock for thread-safe operations
    """

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES) -> None:
        """Initialize empty session store.

        Args:
            max_messages: Window size for each new session's memory
        """
        self.max_messages = max_messages
        self._sessions: dict[str, ChatMemory] = {}
        self._lock = threading.Lock()

    def create_session(self) -> str:
        """Create a new session with an empty chat memory.

        Returns:
            The generated session ID
        """
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = ChatMemory(self.max_messages)

        logger.info("Created new session: %s", session_id)
        return session_id

    def get_session_memory(self, session_id: str | None) -> ChatMemory | None:
        """Retrieve the chat memory of a session.

        Args:
            session_id: Session identifier

        Returns:
            ChatMemory if the session exists, None otherwise
        """
        with self._lock:
            memory = self._sessions.get(session_id) if session_id else None

        if memory is None:
            logger.warning("Session not found: %s", session_id)
        else:
            logger.info(
                "Session memory retrieved - ID: %s, Messages: %d",
                session_id,
                len(memory),
            )
        return memory

    def session_exists(self, session_id: str | None) -> bool:
        if not session_id:
            return False
        with self._lock:
            return session_id in self._sessions

    def clear_session(self, session_id: str) -> bool:
        """Remove a session.

        Args:
            session_id: Session to remove

        Returns:
            True if the session was removed, False if it did not exist
        """
        with self._lock:
            removed = self._sessions.pop(session_id, None)

        if removed is None:
            logger.warning("Attempted to clear non-existent session: %s", session_id)
            return False

        logger.info("Cleared session: %s", session_id)
        return True

    def clear_all_sessions(self) -> int:
        """Remove every session.

        Returns:
            Number of sessions removed
        """
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()

        logger.info("Cleared all %d sessions", count)
        return count

    def get_active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get_active_session_ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)


# Module-level singleton (lazy initialization)
_session_manager: SessionManager | None = None


def get_session_manager() -> SessionManager:
    """Get SessionManager singleton instance.

    Returns:
        Shared SessionManager sized from settings
    """
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager(get_settings().session_max_messages)
    return _session_manager
