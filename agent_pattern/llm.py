"""
OpenAI-compatible LLM client.

Usage:
    # Use the [llm.default] section from config.toml
    llm = LLM()

    # Use a specific config by name
    llm = LLM("gemini")

    # Use custom settings directly
    llm = LLM(settings=LLMSettings(...))
"""
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Union

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    OpenAIError,
    RateLimitError,
)
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from agent_pattern.config import LLMSettings, config
from agent_pattern.logger import logger
from agent_pattern.schema import ChatMessage, Function, ToolCall
from agent_pattern.utils import get_env_var, log_execution_time


_TRANSIENT_ERRORS = (RateLimitError, APIConnectionError, APITimeoutError)


class _StreamingChatMessage:
    """Lightweight message object matching OpenAI ChatCompletionMessage attrs."""

    def __init__(
        self,
        content: Optional[str] = None,
        tool_calls: Optional[List[ToolCall]] = None,
    ):
        self.role = "assistant"
        self.content = content
        self.tool_calls = tool_calls


class LLM:
    """Async chat-completions client configured from config.toml."""

    # Cache for singleton instances per config
    _instances: Dict[str, "LLM"] = {}

    def __init__(
        self,
        config_name: str = "default",
        settings: Optional[LLMSettings] = None,
    ):
        """
        Initialize LLM client.

        Args:
            config_name: Name of the [llm.<name>] section to use
            settings: Optional LLMSettings object to use directly

        Raises:
            KeyError: If no settings are given and config_name is unknown
            ConfigurationError: If the API key environment variable is unset
        """
        if settings is None:
            settings = config.get_llm_config(config_name)

        self.config_name = config_name
        self.settings = settings
        self.model = settings.model
        self.max_tokens = settings.max_tokens
        self.temperature = settings.temperature
        self.timeout = settings.timeout

        self.client = AsyncOpenAI(
            api_key=settings.api_key or get_env_var(settings.api_key_env),
            base_url=settings.base_url,
        )

    @classmethod
    def get_instance(
        cls,
        config_name: str = "default",
        settings: Optional[LLMSettings] = None,
    ) -> "LLM":
        """Get or create a cached instance per config name."""
        cache_key = config_name if settings is None else f"custom_{id(settings)}"
        if cache_key not in cls._instances:
            cls._instances[cache_key] = cls(config_name=config_name, settings=settings)
        return cls._instances[cache_key]

    @staticmethod
    def format_messages(
        messages: List[Union[dict, ChatMessage]]
    ) -> List[dict]:
        """
        Format messages for LLM by converting them to OpenAI message format.

        Raises:
            ValueError: If a message dict lacks 'role' or has an unknown role
            TypeError: If unsupported message types are provided
        """
        formatted_messages = []

        for message in messages:
            if isinstance(message, dict):
                if "role" not in message:
                    raise ValueError("Message dict must contain 'role' field")
                formatted_messages.append(message)
            elif isinstance(message, ChatMessage):
                formatted_messages.append(message.to_dict())
            else:
                raise TypeError(f"Unsupported message type: {type(message)}")

        for msg in formatted_messages:
            if msg["role"] not in ["system", "user", "assistant", "tool"]:
                raise ValueError(f"Invalid role: {msg['role']}")

        return formatted_messages

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        wait=wait_random_exponential(min=1, max=20),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _create_completion(self, **params):
        """Open a completion request, retrying transient transport errors.

        Only the request itself is retried. Once a stream is open, a failure
        while reading it propagates so no delta is delivered twice.
        """
        return await self.client.chat.completions.create(**params)

    @log_execution_time(log_level="DEBUG")
    async def ask_tool(
        self,
        messages: List[Union[dict, ChatMessage]],
        system_msgs: Optional[List[Union[dict, ChatMessage]]] = None,
        tools: Optional[List[dict]] = None,
        tool_choice: Literal["none", "auto", "required"] = "auto",
        temperature: Optional[float] = None,
        stream: bool = False,
        on_delta: Optional[Callable[[str], Awaitable[None]]] = None,
        model: Optional[str] = None,
        **kwargs,
    ):
        """
        Ask LLM, optionally offering tools, and return the assistant message.

        Args:
            messages: List of conversation messages
            system_msgs: Optional system messages to prepend
            tools: OpenAI function schemas; omitted from the request when empty
            tool_choice: Tool choice strategy
            temperature: Sampling temperature for the response
            stream: Stream the response; text deltas are passed to on_delta
            on_delta: Async callback for streamed text deltas (implies stream)
            model: Model override; defaults to the configured model
            **kwargs: Additional completion arguments

        Returns:
            An object with `content` and `tool_calls` attributes. In stream
            mode tool-call fragments are assembled and returned at stream end.

        Raises:
            ValueError: If tool_choice or messages are invalid, or the
                response is empty
            OpenAIError: If the API call fails. Transient errors opening the
                request are retried; errors while reading a stream are not
        """
        try:
            if tool_choice not in ["none", "auto", "required"]:
                raise ValueError(f"Invalid tool_choice: {tool_choice}")

            if system_msgs:
                messages = self.format_messages(system_msgs) + self.format_messages(messages)
            else:
                messages = self.format_messages(messages)

            params: Dict[str, Any] = dict(
                model=model or self.model,
                messages=messages,
                temperature=self.temperature if temperature is None else temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout,
                **kwargs,
            )
            if tools:
                params.update(tools=tools, tool_choice=tool_choice)

            stream_mode = stream or on_delta is not None
            if not stream_mode:
                response = await self._create_completion(**params, stream=False)

                if not response.choices or not response.choices[0].message:
                    logger.error(f"Invalid or empty response from LLM: {response}")
                    raise ValueError("Invalid or empty response from LLM")

                return response.choices[0].message

            response = await self._create_completion(**params, stream=True)

            content_parts: List[str] = []
            tool_call_builders: Dict[int, Dict[str, Any]] = {}

            async for chunk in response:
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta

                if delta.content:
                    content_parts.append(delta.content)
                    if on_delta:
                        await on_delta(delta.content)

                if delta.tool_calls:
                    for tool_delta in delta.tool_calls:
                        index = getattr(tool_delta, "index", 0) or 0
                        builder = tool_call_builders.setdefault(
                            index,
                            {"id": None, "name": None, "arguments": ""},
                        )
                        if tool_delta.id:
                            builder["id"] = tool_delta.id
                        if tool_delta.function:
                            if tool_delta.function.name:
                                builder["name"] = tool_delta.function.name
                            if tool_delta.function.arguments:
                                builder["arguments"] += tool_delta.function.arguments

                if choice.finish_reason is not None:
                    break

            tool_calls: List[ToolCall] = [
                ToolCall(
                    id=builder["id"] or f"call_{index}",
                    function=Function(
                        name=builder["name"],
                        arguments=builder["arguments"] or "{}",
                    ),
                )
                for index, builder in sorted(tool_call_builders.items())
                if builder["name"]
            ]
            content = "".join(content_parts) or None

            if content is None and not tool_calls:
                raise ValueError("Empty response from streaming LLM")

            return _StreamingChatMessage(content=content, tool_calls=tool_calls or None)

        except ValueError as ve:
            logger.error(f"Validation error in ask_tool: {ve}")
            raise
        except OpenAIError as oe:
            if isinstance(oe, AuthenticationError):
                logger.error("Authentication failed. Check API key.")
            elif isinstance(oe, RateLimitError):
                logger.error("Rate limit exceeded.")
            elif isinstance(oe, APIError):
                logger.error(f"API error: {oe}")
            else:
                logger.error(f"OpenAI error: {oe}")
            raise
