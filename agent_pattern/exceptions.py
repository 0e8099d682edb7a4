"""Exception hierarchy for agent orchestration.

None of these subclass ValueError, so raising them from a pydantic
validator surfaces the exception itself instead of a ValidationError.
"""


class AgentPatternError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(AgentPatternError):
    """Invalid construction-time configuration (never retried)."""


class PreconditionError(AgentPatternError):
    """A call-time precondition failed before any work started."""


class ToolError(AgentPatternError):
    """Base class for tool lookup and execution failures."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    def __init__(self, tool_name: str):
        super().__init__(tool_name, f'Tool "{tool_name}" not found')


class ToolExecutionError(ToolError):
    def __init__(self, tool_name: str, reason: str):
        super().__init__(tool_name, f'Tool execution failed for "{tool_name}": {reason}')
