"""
Tests for BaseAgent: construction rules, history helpers and tool dispatch
"""
import json

import pytest
from pydantic import ValidationError

from agent_pattern.exceptions import ConfigurationError, ToolExecutionError, ToolNotFoundError
from agent_pattern.schema import ChatMessage
from agent_pattern.tool import FunctionTool, ToolCollection

from fakes import FailingHistoryStore, FakeAgent, errors_logged


def make_tool(name, handler=None):
    return FunctionTool(name=name, description=f"{name} tool", handler=handler or (lambda **kw: name))


class TestConstruction:
    """Agents validate their options once, at construction"""

    def test_save_chat_without_session_names_agent(self, history_store):
        with pytest.raises(ConfigurationError) as exc_info:
            FakeAgent(name="writer", save_chat=True, history=history_store)
        assert "writer" in str(exc_info.value)
        assert "session_id" in str(exc_info.value)

    def test_save_chat_without_store_names_agent(self):
        with pytest.raises(ConfigurationError) as exc_info:
            FakeAgent(name="writer", save_chat=True, session_id="s1")
        assert "writer" in str(exc_info.value)

    def test_save_chat_disabled_needs_nothing(self):
        agent = FakeAgent(name="plain")
        assert agent.history is None
        assert agent.session_id is None

    def test_duplicate_tool_names_rejected(self):
        with pytest.raises(ConfigurationError):
            FakeAgent(name="dup", tools=[make_tool("search"), make_tool("search")])

    def test_agent_is_immutable(self):
        agent = FakeAgent(name="frozen", prompt="be brief")
        with pytest.raises(ValidationError):
            agent.prompt = "be verbose"
        assert agent.prompt == "be brief"


class TestToolLookup:

    def test_get_tool_by_name_returns_same_object(self):
        tool1, tool2 = make_tool("tool1"), make_tool("tool2")
        agent = FakeAgent(name="tooled", tools=[tool1, tool2])
        assert agent.get_tool_by_name("tool2") is tool2
        assert agent.get_tool_by_name("tool1") is tool1

    def test_get_tool_by_name_absent(self):
        agent = FakeAgent(name="tooled", tools=[make_tool("tool1")])
        assert agent.get_tool_by_name("missing") is None
        assert agent.get_tool_by_name("TOOL1") is None

    def test_tool_params_skip_shadowed_registry_tools(self):
        registry = ToolCollection(make_tool("shared"), make_tool("extra"))
        agent = FakeAgent(name="tooled", tools=[make_tool("shared")], tool_registry=registry)
        names = [param["function"]["name"] for param in agent.tool_params()]
        assert names == ["shared", "extra"]


class TestExecuteToolCall:

    @pytest.mark.asyncio
    async def test_string_result_returned_as_is(self):
        agent = FakeAgent(name="tooled", tools=[make_tool("echo", lambda text: text)])
        assert await agent.execute_tool_call("echo", '{"text": "hi"}') == "hi"

    @pytest.mark.asyncio
    async def test_structured_result_serialized(self):
        agent = FakeAgent(name="tooled", tools=[make_tool("pair", lambda: {"a": 1, "b": [2, 3]})])
        result = await agent.execute_tool_call("pair", None)
        assert json.loads(result) == {"a": 1, "b": [2, 3]}

    @pytest.mark.asyncio
    async def test_async_handler(self):
        async def lookup(key):
            return f"value-of-{key}"

        agent = FakeAgent(name="tooled", tools=[make_tool("lookup", lookup)])
        assert await agent.execute_tool_call("lookup", {"key": "x"}) == "value-of-x"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, log_messages):
        agent = FakeAgent(name="tooled", tools=[make_tool("echo")])
        with pytest.raises(ToolNotFoundError) as exc_info:
            await agent.execute_tool_call("nope", "{}")
        assert 'Tool "nope" not found' in str(exc_info.value)
        assert errors_logged(log_messages)

    @pytest.mark.asyncio
    async def test_handler_failure_wrapped(self):
        def broken():
            raise RuntimeError("disk full")

        agent = FakeAgent(name="tooled", tools=[make_tool("broken", broken)])
        with pytest.raises(ToolExecutionError) as exc_info:
            await agent.execute_tool_call("broken", "{}")
        assert "broken" in str(exc_info.value)
        assert "disk full" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_invalid_json_arguments(self):
        agent = FakeAgent(name="tooled", tools=[make_tool("echo", lambda text: text)])
        with pytest.raises(ToolExecutionError):
            await agent.execute_tool_call("echo", "{not json")

    @pytest.mark.asyncio
    async def test_registry_fallback(self):
        registry = ToolCollection(make_tool("shared_clock", lambda: "noon"))
        agent = FakeAgent(name="tooled", tool_registry=registry)
        assert agent.get_tool_by_name("shared_clock") is None
        assert await agent.execute_tool_call("shared_clock", "{}") == "noon"


class TestHistory:

    @pytest.mark.asyncio
    async def test_save_and_fetch(self, history_store):
        agent = FakeAgent(name="scribe", save_chat=True, history=history_store, session_id="s1")
        await agent.save_turn("hello", "hi there")

        messages = await agent.fetch_chat_history()
        assert [(m.role, m.content) for m in messages] == [("user", "hello"), ("assistant", "hi there")]
        assert messages[1].metadata == {"agent_name": "scribe", "model_id": "fake-model"}

    @pytest.mark.asyncio
    async def test_fetch_respects_limit(self, history_store):
        agent = FakeAgent(name="scribe", history=history_store, session_id="s1", history_limit=2)
        for i in range(5):
            await history_store.save_message("s1", ChatMessage.user_message(f"m{i}"))

        assert [m.content for m in await agent.fetch_chat_history()] == ["m3", "m4"]
        assert [m.content for m in await agent.fetch_chat_history(limit=3)] == ["m2", "m3", "m4"]

    @pytest.mark.asyncio
    async def test_save_disabled_writes_nothing(self, history_store):
        agent = FakeAgent(name="reader", history=history_store, session_id="s1")
        await agent.save_turn("hello", "hi")
        assert await history_store.get_messages("s1") == []

    @pytest.mark.asyncio
    async def test_fetch_without_store(self):
        agent = FakeAgent(name="plain")
        assert await agent.fetch_chat_history() == []

    @pytest.mark.asyncio
    async def test_fetch_failure_is_logged_and_empty(self, log_messages):
        agent = FakeAgent(name="scribe", history=FailingHistoryStore(), session_id="s1")
        assert await agent.fetch_chat_history() == []
        assert any("failed to fetch chat history" in m for m in errors_logged(log_messages))

    @pytest.mark.asyncio
    async def test_save_failure_is_logged(self, log_messages):
        agent = FakeAgent(name="scribe", save_chat=True, history=FailingHistoryStore(), session_id="s1")
        await agent.save_turn("hello", "hi")
        assert any("failed to save chat history" in m for m in errors_logged(log_messages))

    @pytest.mark.asyncio
    async def test_clear(self, history_store):
        agent = FakeAgent(name="scribe", save_chat=True, history=history_store, session_id="s1")
        await agent.save_turn("hello", "hi")
        await agent.clear_chat_history()
        assert await agent.fetch_chat_history() == []
        assert await history_store.list_sessions() == []
