from typing import Optional

from agent_pattern.config import PROJECT_ROOT, HistorySettings, config
from agent_pattern.storage.base import HistoryStore
from agent_pattern.storage.memory_store import InMemoryHistoryStore
from agent_pattern.storage.sqlite_store import SQLiteHistoryStore


def create_history_store(settings: Optional[HistorySettings] = None) -> HistoryStore:
    """Build the history backend selected in the [history] config section."""
    settings = settings or config.history
    if settings.backend == "sqlite":
        return SQLiteHistoryStore(PROJECT_ROOT / settings.db_path)
    return InMemoryHistoryStore()


__all__ = [
    "HistoryStore",
    "InMemoryHistoryStore",
    "SQLiteHistoryStore",
    "create_history_store",
]
