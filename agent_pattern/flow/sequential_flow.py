"""Sequential flow: prompt chaining

The output of each agent becomes the input of the next. Only the last
agent streams; every earlier stage fully resolves first.
"""

from typing import AsyncIterator

from pydantic import Field

from agent_pattern.flow.base import BaseFlow
from agent_pattern.logger import logger
from agent_pattern.utils import preview


class SequentialFlow(BaseFlow):
    """Runs agents one after another, feeding output to input.

    Any failing stage aborts the flow and the error propagates unchanged;
    there is no partial result and no retry.
    """

    name: str = Field(default="prompt_chain")

    async def _run_agents(self, agents, current_input: str) -> str:
        for agent in agents:
            logger.debug(f"{self.name} running process on agent '{agent.name}'")
            current_input = await agent.process(current_input)
            logger.debug(f"{self.name} agent '{agent.name}' output: \"{preview(current_input)}\"")
        return current_input

    async def run(self, prompt_input: str) -> str:
        """Run input through every agent and return the last output."""
        logger.info(f"{self.name} starting run with {len(self.agents)} agent(s), input: \"{preview(prompt_input)}\"")
        async with self.state_context():
            result = await self._run_agents(self.agents, prompt_input)
        logger.info(f"{self.name} run completed")
        return result

    async def run_stream(self, prompt_input: str) -> AsyncIterator[str]:
        """Run input through the chain, streaming the final agent's chunks.

        `state` is settled when the generator finishes. A consumer that stops
        early should close it, otherwise the flow stays RUNNING until the
        generator is garbage-collected:

            async with aclosing(flow.run_stream(text)) as stream:
                async for chunk in stream:
                    ...
        """
        logger.info(f"{self.name} starting run_stream with input: \"{preview(prompt_input)}\"")
        async with self.state_context():
            current_input = await self._run_agents(self.agents[:-1], prompt_input)

            last_agent = self.agents[-1]
            logger.debug(f"{self.name} streaming from final agent '{last_agent.name}'")
            async for chunk in last_agent.process_stream(current_input):
                logger.debug(f"{self.name} streaming chunk: \"{preview(chunk)}\"")
                yield chunk
        logger.info(f"{self.name} run_stream completed")
