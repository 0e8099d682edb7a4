"""Parallelization demo: three story-idea agents and one aggregator

    python -m agent_pattern.demo.parallelization
"""
import asyncio

from agent_pattern.agent import LLMAgent
from agent_pattern.config import config
from agent_pattern.flow import ParallelFlow
from agent_pattern.logger import logger
from agent_pattern.storage import create_history_store
from agent_pattern.tool import GetCurrentTime


SESSION_ID = "agent-pattern-parallelization-demo"

STORY_MOODS = ("Adventurous", "Funny", "Mysterious")


async def main():
    model_id = config.get_llm_config().model
    history = create_history_store()

    workers = [
        LLMAgent(
            name=f"{mood}Agent",
            model_id=model_id,
            prompt=f"Write a short, {mood.lower()} story idea about a friendly robot exploring a jungle.",
            history=history,
            session_id=SESSION_ID,
            save_chat=True,
        )
        for mood in STORY_MOODS
    ]

    aggregator = LLMAgent(
        name="AggregatorAgent",
        model_id=model_id,
        prompt=(
            "Combine the following story ideas into a single, cohesive summary paragraph. "
            "Call get_current_time only if the user asks for a date."
        ),
        tools=[GetCurrentTime()],
        history=history,
        session_id=SESSION_ID,
        save_chat=True,
    )

    parallelization = ParallelFlow(agents=workers, aggregator=aggregator)

    # Prompts are derived from each agent's base prompt
    final_output = await parallelization.run([agent.prompt for agent in workers])

    print("Parallelization Aggregated Output:\n", final_output)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.warning("Operation interrupted.")
