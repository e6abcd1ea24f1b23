"""Conversation sessions with bounded chat memory."""

from src.sessions.manager import SessionManager, get_session_manager
from src.sessions.memory import ChatMemory, MemoryMessage, MessageType


__all__ = [
    "ChatMemory",
    "MemoryMessage",
    "MessageType",
    "SessionManager",
    "get_session_manager",
]
