from agent_pattern.tool.base import BaseTool, FunctionTool
from agent_pattern.tool.get_current_time import GetCurrentTime
from agent_pattern.tool.tool_collection import ToolCollection

__all__ = [
    "BaseTool",
    "FunctionTool",
    "GetCurrentTime",
    "ToolCollection",
]
