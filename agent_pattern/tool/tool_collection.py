"""Collection of tools shared between agents"""
from typing import Any, Dict, Iterator, Optional

from agent_pattern.exceptions import ConfigurationError, ToolNotFoundError
from agent_pattern.logger import logger
from agent_pattern.tool.base import BaseTool


class ToolCollection:
    """A registry of uniquely named tools."""

    def __init__(self, *tools: BaseTool):
        self.tools: tuple = ()
        self.tool_map: Dict[str, BaseTool] = {}
        self.add_tools(*tools)

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self.tools)

    def get_tool(self, name: str) -> Optional[BaseTool]:
        return self.tool_map.get(name)

    async def execute(self, *, name: str, tool_input: Optional[Dict[str, Any]] = None) -> Any:
        tool = self.tool_map.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return await tool(**(tool_input or {}))

    def add_tool(self, tool: BaseTool) -> "ToolCollection":
        if tool.name in self.tool_map:
            raise ConfigurationError(f"Tool '{tool.name}' is already registered")
        self.tools += (tool,)
        self.tool_map[tool.name] = tool
        logger.debug(f"Registered tool '{tool.name}'")
        return self

    def add_tools(self, *tools: BaseTool) -> "ToolCollection":
        for tool in tools:
            self.add_tool(tool)
        return self
