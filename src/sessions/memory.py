"""Rolling-window chat memory.

A ChatMemory keeps the most recent ``max_messages`` chat turns of a session.
Adding a message beyond the window evicts the oldest ones.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from enum import Enum


DEFAULT_MAX_MESSAGES = 10


class MessageType(str, Enum):
    """Author of a remembered message."""

    SYSTEM = "SYSTEM"
    USER = "USER"
    AI = "AI"


@dataclass(frozen=True)
class MemoryMessage:
    """A single remembered chat turn."""

    type: MessageType
    text: str

    @classmethod
    def user(cls, text: str) -> MemoryMessage:
        return cls(MessageType.USER, text)

    @classmethod
    def ai(cls, text: str) -> MemoryMessage:
        return cls(MessageType.AI, text)


class ChatMemory:
    """Bounded, thread-safe message window.

    Attributes:
        max_messages: Maximum number of messages retained
    """

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES) -> None:
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.max_messages = max_messages
        self._messages: deque[MemoryMessage] = deque(maxlen=max_messages)
        self._lock = threading.Lock()

    def add(self, message: MemoryMessage) -> None:
        """Append a message, evicting the oldest once the window is full."""
        with self._lock:
            self._messages.append(message)

    def messages(self) -> list[MemoryMessage]:
        """Return a snapshot of the retained messages, oldest first."""
        with self._lock:
            return list(self._messages)

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
