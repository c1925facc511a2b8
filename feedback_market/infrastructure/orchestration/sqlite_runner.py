"""SQLite-backed step runner that persists step results."""

import asyncio
import json
import logging
import sqlite3
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .retry import RetryConfig, run_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS step_results (
    run_id TEXT NOT NULL,
    step TEXT NOT NULL,
    result_json TEXT NOT NULL,
    committed_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (run_id, step)
);
"""


class SQLiteStepRunner:
    """Persists each step result before the next step starts.

    A process that restarts a run with the same run id resumes after the
    last committed step.
    """

    def __init__(self, db_path: str, config: Optional[RetryConfig] = None):
        self._db_path = db_path
        self._config = config or RetryConfig()
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA_SQL)
        finally:
            conn.close()

    async def initialize(self) -> None:
        if not self._initialized:
            await asyncio.to_thread(self._init_schema)
            self._initialized = True
            logger.info(f"🗄️ Step runner ready at {self._db_path}")

    def _load(self, run_id: str, name: str) -> Optional[str]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT result_json FROM step_results WHERE run_id = ? AND step = ?",
                (run_id, name),
            ).fetchone()
            return row["result_json"] if row else None
        finally:
            conn.close()

    def _save(self, run_id: str, name: str, payload: str) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT OR IGNORE INTO step_results (run_id, step, result_json) "
                    "VALUES (?, ?, ?)",
                    (run_id, name, payload),
                )
        finally:
            conn.close()

    async def run_step(
        self,
        run_id: str,
        name: str,
        fn: Callable[[], Awaitable[T]],
        *,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> T:
        await self.initialize()
        stored = await asyncio.to_thread(self._load, run_id, name)
        if stored is not None:
            logger.debug(f"↩️ Replaying step '{name}' for run {run_id}")
            return decode(json.loads(stored))

        result = await run_with_retry(name, fn, self._config)
        await asyncio.to_thread(self._save, run_id, name, json.dumps(encode(result)))
        return result

    async def shutdown(self) -> None:
        self._initialized = False
