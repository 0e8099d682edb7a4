from agent_pattern.agent.base import BaseAgent
from agent_pattern.agent.llm_agent import LLMAgent


__all__ = [
    "BaseAgent",
    "LLMAgent",
]
