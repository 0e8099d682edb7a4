"""Process-local history store"""
from typing import Dict, List, Optional

from agent_pattern.schema import ChatMessage
from agent_pattern.storage.base import HistoryStore


class InMemoryHistoryStore(HistoryStore):
    """Keeps every session in a dict of lists; nothing survives the process."""

    def __init__(self):
        self._sessions: Dict[str, List[ChatMessage]] = {}

    async def save_message(self, session_id: str, message: ChatMessage) -> None:
        messages = self._sessions.pop(session_id, [])
        messages.append(message)
        # re-insert so dict order tracks last update
        self._sessions[session_id] = messages

    async def get_messages(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        messages = self._sessions.get(session_id, [])
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return list(messages)

    async def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def list_sessions(self) -> List[str]:
        return list(reversed(self._sessions.keys()))
