"""Flow framework for multi-agent orchestration

Available Flows:
- SequentialFlow: prompt chaining, each agent's output feeds the next
- ParallelFlow: runs agents concurrently, then aggregates with one agent
"""

from agent_pattern.flow.base import BaseFlow
from agent_pattern.flow.parallel_flow import ParallelFlow
from agent_pattern.flow.sequential_flow import SequentialFlow

__all__ = [
    "BaseFlow",
    "SequentialFlow",
    "ParallelFlow",
]
