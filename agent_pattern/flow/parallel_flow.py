"""Parallel flow: fan-out / aggregate

Runs N worker agents concurrently on N prompts, then hands all results
to a single aggregator agent.

Known limitation: there is no timeout, so a worker that never returns
keeps the whole run waiting.
"""

import asyncio
from typing import List, Optional, Sequence

from pydantic import Field, model_validator

from agent_pattern.agent.base import BaseAgent
from agent_pattern.exceptions import ConfigurationError, PreconditionError
from agent_pattern.flow.base import BaseFlow
from agent_pattern.logger import logger
from agent_pattern.utils import preview


AGGREGATION_HEADER = "Combine the following outputs into a single cohesive summary:\n"


class ParallelFlow(BaseFlow):
    """Fan-out to `agents`, fan-in to `aggregator`.

    prompts[i] goes to agents[i]. Results are reassembled in index order
    regardless of completion order. The first worker failure cancels the
    remaining workers and propagates; the aggregator is not invoked.
    """

    name: str = Field(default="parallelization")
    aggregator: Optional[BaseAgent] = Field(default=None, description="Agent combining worker results")

    @model_validator(mode="after")
    def validate_aggregator(self) -> "ParallelFlow":
        if self.aggregator is None:
            raise ConfigurationError(f"ParallelFlow '{self.name}' requires an aggregator agent")
        logger.info(
            f"{self.name} initialized with {len(self.agents)} parallel agents and 1 aggregator agent"
        )
        return self

    async def _run_workers(self, prompts: Sequence[str]) -> List[str]:
        tasks = []
        for idx, (agent, prompt) in enumerate(zip(self.agents, prompts)):
            logger.debug(f"{self.name} running agent '{agent.name}' with prompt: {preview(prompt, 80)}")
            tasks.append(
                asyncio.create_task(agent.process(prompt), name=f"{self.name}-{idx}-{agent.name}")
            )

        try:
            return list(await asyncio.gather(*tasks))
        except Exception as e:
            pending = [task for task in tasks if not task.done()]
            logger.error(f"{self.name} worker failed, cancelling {len(pending)} pending: {e}")
            for task in pending:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def build_aggregation_prompt(self, results: Sequence[str]) -> str:
        """Format worker results, labelled 1..N in prompt order."""
        return "\n".join(
            [AGGREGATION_HEADER]
            + [f"Result {i}:\n{result}\n" for i, result in enumerate(results, start=1)]
        )

    async def run(self, prompts: Sequence[str]) -> str:
        """Run each agent on its prompt, then aggregate.

        Raises:
            PreconditionError: If len(prompts) != len(agents); nothing runs
        """
        if len(prompts) != len(self.agents):
            raise PreconditionError(
                f"Number of prompts ({len(prompts)}) must match "
                f"number of parallel agents ({len(self.agents)})"
            )

        async with self.state_context():
            logger.info(f"{self.name} starting parallel execution of {len(self.agents)} agents")
            results = await self._run_workers(prompts)

            logger.info(f"{self.name} parallel agents completed, aggregating results")
            aggregation_prompt = self.build_aggregation_prompt(results)
            logger.debug(f"Aggregation prompt:\n{aggregation_prompt}")

            aggregated = await self.aggregator.process(aggregation_prompt)

        logger.info(f"{self.name} aggregation completed")
        return aggregated
