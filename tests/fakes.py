"""Test doubles shared by the test modules"""
import asyncio
from types import SimpleNamespace
from typing import Callable, List, Optional

from pydantic import Field

from agent_pattern.agent.base import BaseAgent
from agent_pattern.llm import LLM
from agent_pattern.storage.base import HistoryStore


class FakeAgent(BaseAgent):
    """Deterministic agent.

    process returns `reply` if set, else transform(input).
    process_stream yields the same text one character at a time.
    """

    model_id: str = "fake-model"
    reply: Optional[str] = None
    transform: Callable[[str], str] = lambda text: text
    delay: float = 0.0
    error: Optional[Exception] = None
    stream_fail_after: Optional[int] = None

    calls: List[str] = Field(default_factory=list)
    finished: List[str] = Field(default_factory=list)

    def _answer(self, input: str) -> str:
        return self.reply if self.reply is not None else self.transform(input)

    async def process(self, input: str) -> str:
        self.calls.append(input)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.finished.append(input)
        return self._answer(input)

    async def process_stream(self, input: str):
        self.calls.append(input)
        if self.error is not None:
            raise self.error
        for i, char in enumerate(self._answer(input)):
            if self.stream_fail_after is not None and i >= self.stream_fail_after:
                raise RuntimeError(f"{self.name} stream broke")
            yield char
        self.finished.append(input)


class FailingHistoryStore(HistoryStore):
    """Store whose every operation raises"""

    async def save_message(self, session_id, message):
        raise RuntimeError("history store unavailable")

    async def get_messages(self, session_id, limit=None):
        raise RuntimeError("history store unavailable")

    async def delete_session(self, session_id):
        raise RuntimeError("history store unavailable")

    async def list_sessions(self):
        raise RuntimeError("history store unavailable")


class FakeLLM(LLM):
    """LLM stand-in that records requests and replays a canned response"""

    def __init__(self, content=None, tool_calls=None, chunks=None, error=None):
        self.config_name = "fake"
        self.model = "fake-model"
        self.content = content
        self.tool_calls = tool_calls
        self.chunks = chunks if chunks is not None else ([content] if content else [])
        self.error = error
        self.requests = []

    async def ask_tool(self, messages, system_msgs=None, tools=None, tool_choice="auto",
                       temperature=None, stream=False, on_delta=None, model=None, **kwargs):
        self.requests.append(
            dict(
                messages=self.format_messages(messages),
                system_msgs=system_msgs,
                tools=tools,
                tool_choice=tool_choice,
                stream=stream or on_delta is not None,
                model=model,
            )
        )
        if self.error is not None:
            raise self.error
        if on_delta is not None:
            for chunk in self.chunks:
                await on_delta(chunk)
        return SimpleNamespace(content=self.content, tool_calls=self.tool_calls)


def errors_logged(messages):
    """Messages of ERROR records captured by the log_messages fixture"""
    return [m.record["message"] for m in messages if m.record["level"].name == "ERROR"]
