"""Base Agent - abstract unit of work

BaseAgent is the abstract base class for all agents. An agent wraps a model
call with a base prompt, optional tools and an optional chat history store.
Flows compose agents purely through `process` and `process_stream`.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from pydantic import Field, BaseModel, model_validator

from agent_pattern.config import config
from agent_pattern.exceptions import ConfigurationError, ToolExecutionError, ToolNotFoundError
from agent_pattern.logger import logger
from agent_pattern.schema import ChatMessage, ToolCall
from agent_pattern.storage.base import HistoryStore
from agent_pattern.tool.base import BaseTool
from agent_pattern.tool.tool_collection import ToolCollection


class BaseAgent(BaseModel, ABC):
    """Abstract base class for agents.

    Agents are immutable once constructed. Subclasses implement `process`
    and `process_stream`; the history and tool helpers here are shared.

    Attributes:
        name: Human-readable agent name, used in logs and errors
        model_id: Model identifier passed to the provider
        prompt: Base prompt prepended to every turn
        tools: Tools this agent may call, unique by name
        tool_registry: Optional shared registry consulted after `tools`
        streaming: Whether `process` should be served by streaming
        save_chat: Persist each turn to `history` under `session_id`
        history: Optional chat history store
        session_id: Session (or user) key for the history store
        history_limit: Number of past messages fed back into a turn
    """

    name: str = Field(..., description="Agent name")
    model_id: str = Field(..., description="Model identifier")
    prompt: str = Field(default="", description="Base prompt for every turn")

    tools: List[BaseTool] = Field(default_factory=list)
    tool_registry: Optional[ToolCollection] = Field(default=None)

    streaming: bool = Field(default=False)
    save_chat: bool = Field(default=False)

    history: Optional[HistoryStore] = Field(default=None, description="Chat history store")
    session_id: Optional[str] = Field(default=None, description="History session key")
    history_limit: int = Field(default_factory=lambda: config.history.limit)

    class Config:
        arbitrary_types_allowed = True
        frozen = True
        protected_namespaces = ()

    @model_validator(mode="after")
    def validate_options(self) -> "BaseAgent":
        """Ensure runtime invariants."""
        if self.save_chat and not self.session_id:
            raise ConfigurationError(
                f'Agent "{self.name}" requires session_id when save_chat=True.'
            )
        if self.save_chat and self.history is None:
            raise ConfigurationError(
                f'Agent "{self.name}" requires a history store when save_chat=True.'
            )

        seen = set()
        for tool in self.tools:
            if tool.name in seen:
                raise ConfigurationError(
                    f'Agent "{self.name}" has more than one tool named "{tool.name}".'
                )
            seen.add(tool.name)

        logger.debug(
            f"initialize agent: {self.name}, model: {self.model_id}, "
            f"tools: {sorted(seen)}, save_chat: {self.save_chat}"
        )
        return self

    # ------------------------------------------------------------------
    # History (best-effort)
    # ------------------------------------------------------------------

    async def save_chat_history(
        self,
        messages: List[ChatMessage],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append messages to the session, if saving is enabled.

        Store failures are logged and swallowed.
        """
        if not self.save_chat or self.history is None or not self.session_id:
            return

        try:
            for message in messages:
                if metadata:
                    message = message.model_copy(
                        update={"metadata": {**message.metadata, **metadata}}
                    )
                await self.history.save_message(self.session_id, message)
        except Exception as e:
            logger.error(f"Agent '{self.name}' failed to save chat history: {e}")

    async def fetch_chat_history(self, limit: Optional[int] = None) -> List[ChatMessage]:
        """Return the most recent messages of the session, oldest first.

        Returns [] when no store or session is configured, or when the
        store fails.
        """
        if self.history is None or not self.session_id:
            return []

        try:
            return await self.history.get_messages(
                self.session_id,
                limit=self.history_limit if limit is None else limit,
            )
        except Exception as e:
            logger.error(f"Agent '{self.name}' failed to fetch chat history: {e}")
            return []

    async def clear_chat_history(self) -> None:
        """Delete the agent's session from the store (best-effort)."""
        if self.history is None or not self.session_id:
            return

        try:
            await self.history.delete_session(self.session_id)
        except Exception as e:
            logger.error(f"Agent '{self.name}' failed to delete chat history: {e}")

    async def save_turn(
        self,
        user_input: str,
        reply: str,
        tool_call: Optional[ToolCall] = None,
    ) -> None:
        """Persist one user/assistant exchange."""
        if not self.save_chat:
            return
        await self.save_chat_history(
            [
                ChatMessage.user_message(user_input),
                ChatMessage.assistant_message(reply, tool_call=tool_call),
            ],
            metadata={"agent_name": self.name, "model_id": self.model_id},
        )

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def get_tool_by_name(self, name: str) -> Optional[BaseTool]:
        """Find a tool in this agent's tool list by exact name."""
        return next((tool for tool in self.tools if tool.name == name), None)

    def tool_params(self) -> List[Dict[str, Any]]:
        """Function schemas for the agent's tools and unshadowed registry tools."""
        params = [tool.to_param() for tool in self.tools]
        if self.tool_registry is not None:
            own = {tool.name for tool in self.tools}
            params.extend(
                tool.to_param() for tool in self.tool_registry if tool.name not in own
            )
        return params

    async def execute_tool_call(
        self,
        name: str,
        arguments: Union[str, Dict[str, Any], None] = None,
    ) -> str:
        """Execute a tool by name and return its result as text.

        Raises:
            ToolNotFoundError: If neither `tools` nor the registry has `name`
            ToolExecutionError: If arguments are invalid or the tool raises
        """
        tool = self.get_tool_by_name(name)
        if tool is None and self.tool_registry is not None:
            tool = self.tool_registry.get_tool(name)
        if tool is None:
            logger.error(f"Agent '{self.name}' requested unknown tool '{name}'")
            raise ToolNotFoundError(name)

        if isinstance(arguments, str):
            try:
                arguments = json.loads(arguments or "{}")
            except json.JSONDecodeError as e:
                logger.error(f"Invalid JSON arguments for tool '{name}': {arguments}")
                raise ToolExecutionError(name, f"invalid JSON arguments: {e}") from e

        logger.info(f"Agent '{self.name}' activating tool '{name}'")
        try:
            result = await tool(**(arguments or {}))
        except Exception as e:
            logger.error(f"Tool execution failed for '{name}': {e}")
            raise ToolExecutionError(name, str(e)) from e

        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False, default=str)

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    @abstractmethod
    async def process(self, input: str) -> str:
        """Handle a single-turn input and return the full response."""

    @abstractmethod
    def process_stream(self, input: str) -> AsyncIterator[str]:
        """Handle a single-turn input, yielding response chunks.

        Implementations are async generators.
        """
