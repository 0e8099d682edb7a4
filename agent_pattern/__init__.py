"""Composable orchestration patterns for LLM agents.

Example Usage:
    from contextlib import aclosing

    from agent_pattern import LLMAgent, SequentialFlow

    summarizer = LLMAgent(name="Summarizer", model_id="gpt-4o-mini",
                          prompt="Summarize the following in 3 sentences:")
    translator = LLMAgent(name="Translator", model_id="gpt-4o-mini",
                          prompt="Translate the following to French:")

    chain = SequentialFlow(agents=[summarizer, translator])
    async with aclosing(chain.run_stream(text)) as stream:
        async for chunk in stream:
            print(chunk, end="")
"""

from agent_pattern.agent import BaseAgent, LLMAgent
from agent_pattern.exceptions import (
    AgentPatternError,
    ConfigurationError,
    PreconditionError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agent_pattern.flow import BaseFlow, ParallelFlow, SequentialFlow
from agent_pattern.schema import ChatMessage, ExecutionState
from agent_pattern.storage import (
    HistoryStore,
    InMemoryHistoryStore,
    SQLiteHistoryStore,
    create_history_store,
)
from agent_pattern.tool import BaseTool, FunctionTool, ToolCollection

__all__ = [
    "BaseAgent",
    "LLMAgent",
    "BaseFlow",
    "SequentialFlow",
    "ParallelFlow",
    "ChatMessage",
    "ExecutionState",
    "HistoryStore",
    "InMemoryHistoryStore",
    "SQLiteHistoryStore",
    "create_history_store",
    "BaseTool",
    "FunctionTool",
    "ToolCollection",
    "AgentPatternError",
    "ConfigurationError",
    "PreconditionError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
]
