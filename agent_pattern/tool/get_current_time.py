from agent_pattern.tool.base import BaseTool
from agent_pattern.utils import get_current_time


_GET_CURRENT_TIME_DESCRIPTION = """Get the current date and time. Returns the current local time in a readable format (YYYY-MM-DD HH:MM:SS)."""


class GetCurrentTime(BaseTool):
    name: str = "get_current_time"
    description: str = _GET_CURRENT_TIME_DESCRIPTION
    parameters: dict = {
        "type": "object",
        "properties": {},
        "required": [],
    }

    async def execute(self, **kwargs) -> str:
        """Get the current date and time in readable format."""
        return get_current_time()
