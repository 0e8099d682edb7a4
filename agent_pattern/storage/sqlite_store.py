"""SQLite-backed history store"""
import asyncio
import json
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from agent_pattern.logger import logger
from agent_pattern.schema import ChatMessage, ToolCall
from agent_pattern.storage.base import HistoryStore
from agent_pattern.utils import get_current_time


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS sessions (
        id TEXT PRIMARY KEY,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS messages (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        role TEXT NOT NULL,
        content TEXT NOT NULL,
        created_at TIMESTAMP,
        tool_call TEXT,
        metadata TEXT,
        FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_messages_session ON messages(session_id, id)",
)


class SQLiteHistoryStore(HistoryStore):
    """History store persisted to a single SQLite file

    Each operation opens its own connection and runs in a worker thread so
    the event loop never blocks on disk I/O.
    """

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0, max_retries: int = 3):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.max_retries = max_retries
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._get_cursor() as cursor:
            for statement in _SCHEMA:
                cursor.execute(statement)
        logger.info(f"History database initialized at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _get_cursor(self, retry_delay: float = 0.1) -> Iterator[sqlite3.Cursor]:
        """Context manager for a committed cursor, retrying while the file is locked

        Usage:
            with self._get_cursor() as cursor:
                cursor.execute("SELECT * FROM messages")
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                conn = self._connect()
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e).lower() and attempt < self.max_retries:
                    logger.warning(f"Database connection failed, retrying ({attempt}/{self.max_retries})...")
                    time.sleep(retry_delay * attempt)
                    continue
                raise
            try:
                yield conn.cursor()
                conn.commit()
                return
            except Exception as e:
                conn.rollback()
                logger.error(f"Database operation failed: {e}")
                raise
            finally:
                conn.close()

    def _execute(self, sql: str, params: Optional[Tuple] = None, fetch: bool = False) -> List[Dict[str, Any]]:
        with self._get_cursor() as cursor:
            cursor.execute(sql, params or ())
            return [dict(row) for row in cursor.fetchall()] if fetch else []

    def _insert_message(self, session_id: str, message: ChatMessage) -> None:
        now = get_current_time()
        with self._get_cursor() as cursor:
            cursor.execute(
                "INSERT OR IGNORE INTO sessions (id, created_at, updated_at) VALUES (?, ?, ?)",
                (session_id, now, now),
            )
            cursor.execute(
                "UPDATE sessions SET updated_at = ? WHERE id = ?",
                (now, session_id),
            )
            cursor.execute(
                """
                INSERT INTO messages (session_id, role, content, created_at, tool_call, metadata)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    session_id,
                    message.role,
                    message.content,
                    message.created_at or now,
                    message.tool_call.model_dump_json() if message.tool_call else None,
                    json.dumps(message.metadata, ensure_ascii=False, default=str),
                ),
            )

    def _select_messages(self, session_id: str, limit: Optional[int]) -> List[ChatMessage]:
        if limit is not None:
            rows = self._execute(
                """
                SELECT * FROM (
                    SELECT * FROM messages WHERE session_id = ? ORDER BY id DESC LIMIT ?
                ) ORDER BY id ASC
                """,
                (session_id, max(limit, 0)),
                fetch=True,
            )
        else:
            rows = self._execute(
                "SELECT * FROM messages WHERE session_id = ? ORDER BY id ASC",
                (session_id,),
                fetch=True,
            )
        return [self._row_to_message(row) for row in rows]

    @staticmethod
    def _row_to_message(row: Dict[str, Any]) -> ChatMessage:
        return ChatMessage(
            role=row["role"],
            content=row["content"],
            created_at=row["created_at"],
            tool_call=ToolCall.model_validate_json(row["tool_call"]) if row["tool_call"] else None,
            metadata=json.loads(row["metadata"]) if row["metadata"] else {},
        )

    def _delete_session(self, session_id: str) -> None:
        with self._get_cursor() as cursor:
            cursor.execute("DELETE FROM messages WHERE session_id = ?", (session_id,))
            cursor.execute("DELETE FROM sessions WHERE id = ?", (session_id,))

    def _list_sessions(self) -> List[str]:
        rows = self._execute(
            """
            SELECT s.id, MAX(m.id) AS last_message_id
            FROM sessions s
            LEFT JOIN messages m ON s.id = m.session_id
            GROUP BY s.id
            ORDER BY last_message_id DESC
            """,
            fetch=True,
        )
        return [row["id"] for row in rows]

    async def save_message(self, session_id: str, message: ChatMessage) -> None:
        await asyncio.to_thread(self._insert_message, session_id, message)

    async def get_messages(self, session_id: str, limit: Optional[int] = None) -> List[ChatMessage]:
        return await asyncio.to_thread(self._select_messages, session_id, limit)

    async def delete_session(self, session_id: str) -> None:
        await asyncio.to_thread(self._delete_session, session_id)

    async def list_sessions(self) -> List[str]:
        return await asyncio.to_thread(self._list_sessions)
