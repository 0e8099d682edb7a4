import asyncio
from contextlib import aclosing
from typing import Any, AsyncIterator, List, Literal, Optional, Tuple

from pydantic import Field, model_validator

from agent_pattern.agent.base import BaseAgent
from agent_pattern.llm import LLM
from agent_pattern.logger import logger
from agent_pattern.schema import ChatMessage, Function, ToolCall


_STREAM_END = object()


class LLMAgent(BaseAgent):
    """Agent backed by an OpenAI-compatible chat completions endpoint.

    Each turn sends the base prompt as a system message, the recent session
    history and the new input. At most one tool call is honoured per turn:
    when the model requests one, the tool's result becomes the reply.
    """

    llm: Optional[LLM] = Field(default=None, description="Provider client")
    config_name: str = Field(default="default", description="[llm.<name>] section used when llm is not given")
    tool_choice: Literal["none", "auto", "required"] = "auto"

    @model_validator(mode="after")
    def initialize_llm(self) -> "LLMAgent":
        if self.llm is None:
            object.__setattr__(self, "llm", LLM.get_instance(config_name=self.config_name))
        return self

    async def prepare_messages(self, input: str) -> Tuple[List[dict], List[Any]]:
        """Build (system messages, conversation) for one turn."""
        system_msgs = [{"role": "system", "content": self.prompt}] if self.prompt else []
        history = await self.fetch_chat_history()
        return system_msgs, [*history, ChatMessage.user_message(input)]

    @staticmethod
    def _first_tool_call(response: Any) -> Optional[ToolCall]:
        tool_calls = getattr(response, "tool_calls", None)
        if not tool_calls:
            return None
        call = tool_calls[0]
        if isinstance(call, ToolCall):
            return call
        return ToolCall(
            id=call.id,
            function=Function(name=call.function.name, arguments=call.function.arguments or "{}"),
        )

    async def _ask(self, input: str, **kwargs) -> Any:
        system_msgs, messages = await self.prepare_messages(input)
        tools = self.tool_params()
        return await self.llm.ask_tool(
            messages=messages,
            system_msgs=system_msgs or None,
            tools=tools or None,
            tool_choice=self.tool_choice,
            model=self.model_id,
            **kwargs,
        )

    async def process(self, input: str) -> str:
        if self.streaming:
            parts: List[str] = []
            async with aclosing(self._stream_turn(input)) as turn:
                async for text, tool_name in turn:
                    if tool_name is None:
                        parts.append(text)
                    else:
                        # tool result replaces the streamed text
                        return text
            return "".join(parts)

        try:
            response = await self._ask(input)
            content = response.content or ""

            tool_call = self._first_tool_call(response)
            if tool_call:
                content = await self.execute_tool_call(
                    tool_call.function.name, tool_call.function.arguments
                )

            await self.save_turn(input, content, tool_call)
            return content
        except Exception as e:
            logger.error(f"Agent '{self.name}' failed to process input: {e}")
            raise

    async def process_stream(self, input: str) -> AsyncIterator[str]:
        async with aclosing(self._stream_turn(input)) as turn:
            async for text, tool_name in turn:
                if tool_name is None:
                    yield text
                else:
                    yield f"\n\nFunction Call: {tool_name}\n{text}"

    async def _stream_turn(self, input: str) -> AsyncIterator[Tuple[str, Optional[str]]]:
        """Stream one turn as (text, tool_name) pairs.

        Deltas come with tool_name None. If the model requested a tool, one
        final pair carries the tool result and the tool name. The turn is
        saved to history before the generator finishes.
        """
        try:
            delta_queue: asyncio.Queue[Any] = asyncio.Queue()

            async def handle_delta(delta: str):
                await delta_queue.put(delta)

            async def call_llm():
                try:
                    return await self._ask(input, stream=True, on_delta=handle_delta)
                finally:
                    await delta_queue.put(_STREAM_END)

            llm_task = asyncio.create_task(call_llm())

            content_chunks: List[str] = []
            try:
                while True:
                    delta = await delta_queue.get()
                    if delta is _STREAM_END:
                        break
                    content_chunks.append(delta)
                    yield delta, None
            finally:
                if not llm_task.done():
                    llm_task.cancel()

            response = await llm_task

            tool_call = self._first_tool_call(response)
            if tool_call:
                result = await self.execute_tool_call(
                    tool_call.function.name, tool_call.function.arguments
                )
                await self.save_turn(input, result, tool_call)
                yield result, tool_call.function.name
                return

            await self.save_turn(input, "".join(content_chunks))
        except Exception as e:
            logger.error(f"Agent '{self.name}' failed to process streaming input: {e}")
            raise
