"""Schema definitions for the application

This module contains the Pydantic models and enums shared by agents,
flows and history stores.
"""

from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Execution States
# =============================================================================

class ExecutionState(str, Enum):
    """Lifecycle of a flow run"""
    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# =============================================================================
# Tool and Function Types
# =============================================================================

class Function(BaseModel):
    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """Represents a tool/function call requested by the model"""
    id: str
    type: str = "function"
    function: Function


# =============================================================================
# Message Types
# =============================================================================

class ChatMessage(BaseModel):
    """A single turn persisted in a history store"""

    role: Literal["user", "assistant"] = Field(...)
    content: str = Field(default="")
    created_at: Optional[str] = Field(
        default=None,
        description="Timestamp when the message was created ('YYYY-MM-DD HH:MM:SS')"
    )
    tool_call: Optional[ToolCall] = Field(
        default=None,
        description="Tool call that produced this assistant message, if any"
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form metadata (agent name, model id, ...)"
    )

    def to_dict(self) -> dict:
        """Convert message to the OpenAI chat format"""
        return {"role": self.role, "content": self.content}

    @classmethod
    def user_message(cls, content: str, created_at: Optional[str] = None, **metadata) -> "ChatMessage":
        """Create a user message"""
        if created_at is None:
            from agent_pattern.utils import get_current_time
            created_at = get_current_time()
        return cls(role="user", content=content, created_at=created_at, metadata=metadata)

    @classmethod
    def assistant_message(
        cls,
        content: str,
        created_at: Optional[str] = None,
        tool_call: Optional[ToolCall] = None,
        **metadata,
    ) -> "ChatMessage":
        """Create an assistant message"""
        if created_at is None:
            from agent_pattern.utils import get_current_time
            created_at = get_current_time()
        return cls(role="assistant", content=content, created_at=created_at, tool_call=tool_call, metadata=metadata)
