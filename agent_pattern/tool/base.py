import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel


_EMPTY_PARAMETERS = {
    "type": "object",
    "properties": {},
    "required": [],
}


class BaseTool(ABC, BaseModel):
    name: str
    description: str = ""
    parameters: Optional[dict] = None

    class Config:
        arbitrary_types_allowed = True

    async def __call__(self, **kwargs) -> Any:
        """Execute the tool with given parameters."""
        return await self.execute(**kwargs)

    @abstractmethod
    async def execute(self, **kwargs) -> Any:
        """Execute the tool with given parameters.

        Returns a string or any JSON-serializable value; raises on failure.
        """

    def to_param(self) -> Dict:
        """Convert tool to function call format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters or dict(_EMPTY_PARAMETERS),
            },
        }


class FunctionTool(BaseTool):
    """Tool backed by a plain callable.

    The handler receives the model's arguments as keyword arguments and may
    be a regular function or a coroutine function.
    """

    handler: Callable[..., Any]

    async def execute(self, **kwargs) -> Any:
        result = self.handler(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result
