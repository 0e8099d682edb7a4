"""Prompt chaining demo: Summarizer -> Translator

    python -m agent_pattern.demo.prompt_chaining
"""
import asyncio
from contextlib import aclosing

from agent_pattern.agent import LLMAgent
from agent_pattern.config import config
from agent_pattern.flow import SequentialFlow
from agent_pattern.logger import logger
from agent_pattern.schema import ChatMessage
from agent_pattern.storage import create_history_store


SESSION_ID = "agent-pattern-prompt-chaining-demo"

INPUT_TEXT = (
    "Workflow: Prompt Chaining The output of one LLM call sequentially feeds into "
    "the input of the next LLM call. This pattern decomposes a task into a fixed "
    "sequence of steps. Each step is handled by an LLM call that processes the "
    "output from the preceding one. It's suitable for tasks that can be cleanly "
    "broken down into predictable, sequential subtasks."
)


async def main():
    model_id = config.get_llm_config().model
    history = create_history_store()

    await history.save_message(SESSION_ID, ChatMessage.user_message("Hi, how can you help me?"))
    await history.save_message(
        SESSION_ID,
        ChatMessage.assistant_message("I'm agent-pattern. I help leverage agentic patterns."),
    )

    summarizer = LLMAgent(
        name="Summarizer",
        model_id=model_id,
        prompt="Summarize the following in 3 sentences:",
    )
    translator = LLMAgent(
        name="Translator",
        model_id=model_id,
        prompt="Translate the following to French:",
        history=history,
        session_id=SESSION_ID,
        save_chat=True,
    )

    chain = SequentialFlow(agents=[summarizer, translator])

    print("PromptChaining Output:")
    async with aclosing(chain.run_stream(INPUT_TEXT)) as stream:
        async for chunk in stream:
            print(chunk, end="", flush=True)
    print()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.warning("Operation interrupted.")
