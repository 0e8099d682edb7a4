"""Repository contract for session-keyed chat history"""
from abc import ABC, abstractmethod
from typing import List, Optional

from agent_pattern.schema import ChatMessage


class HistoryStore(ABC):
    """Abstract store for chat history, partitioned by session id

    Messages are append-only per session and returned in insertion order.
    Implementations may raise on any operation; agents treat those faults
    as best-effort and degrade instead of failing the turn.
    """

    @abstractmethod
    async def save_message(self, session_id: str, message: ChatMessage) -> None:
        """Append a message to a session, creating the session if needed"""
        pass

    @abstractmethod
    async def get_messages(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        """Get messages for a session in chronological order

        Args:
            session_id: Session ID
            limit: If given, only the most recent `limit` messages are returned
        """
        pass

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Delete a session and all of its messages"""
        pass

    @abstractmethod
    async def list_sessions(self) -> List[str]:
        """List known session ids, most recently updated first"""
        pass
