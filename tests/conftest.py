import pytest

from agent_pattern.logger import logger
from agent_pattern.storage import InMemoryHistoryStore


@pytest.fixture
def log_messages():
    """Collect loguru records emitted during a test"""
    messages = []
    handler_id = logger.add(messages.append, level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()
