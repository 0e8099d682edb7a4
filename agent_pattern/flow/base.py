"""Base Flow - composition of agents

A Flow orchestrates a fixed set of agents. Agents are only ever driven
through `process` / `process_stream`, so any BaseAgent subclass fits.
"""

from contextlib import asynccontextmanager
from typing import List

from pydantic import BaseModel, Field, model_validator

from agent_pattern.agent.base import BaseAgent
from agent_pattern.exceptions import ConfigurationError
from agent_pattern.logger import logger
from agent_pattern.schema import ExecutionState


class BaseFlow(BaseModel):
    """Base class for multi-agent flows

    Attributes:
        name: Flow name used in logs
        agents: Agents orchestrated by the flow (at least one)
        state: State of the latest run (CREATED until first run)
    """

    name: str = Field(default="flow", description="Flow name")
    agents: List[BaseAgent] = Field(default_factory=list, description="Agents to orchestrate")
    state: ExecutionState = Field(default=ExecutionState.CREATED)

    class Config:
        arbitrary_types_allowed = True

    @model_validator(mode="after")
    def validate_agents(self) -> "BaseFlow":
        if not self.agents:
            raise ConfigurationError(
                f"{type(self).__name__} '{self.name}' requires at least one agent"
            )
        return self

    @asynccontextmanager
    async def state_context(self):
        """Move to RUNNING, then COMPLETED or FAILED.

        Cancellation or an early-closed stream restores the previous state.

        Example:
            async with self.state_context():
                result = await agent.process(text)
        """
        previous_state = self.state
        self.state = ExecutionState.RUNNING
        try:
            yield
        except Exception:
            self.state = ExecutionState.FAILED
            raise
        except BaseException:
            self.state = previous_state
            raise
        self.state = ExecutionState.COMPLETED
        logger.debug(f"{self.name} finished with state {self.state.value}")
