"""SQLite-backed claim store.

Each write runs in its own ``BEGIN IMMEDIATE`` transaction, which takes the
database write lock up front. Reinforcement increments ``signal_weight`` in
SQL and records the idempotency token in the same transaction, so
concurrent reinforcements serialize at the database and a replayed token
changes nothing.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from ...domain.errors import ClaimNotFound, StoreWriteFailure
from ...domain.models.actions import Action, ApplyResult, CreateClaim, ReinforceClaim
from ...domain.models.claim import BASELINE_SIGNAL_WEIGHT, Claim, utcnow
from ...domain.models.feedback import FeedbackRecord

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS claims (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    signal_weight INTEGER NOT NULL DEFAULT 50,
    sources TEXT NOT NULL DEFAULT '[]',
    segments TEXT NOT NULL DEFAULT '[]',
    reinforcement_count INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    last_reinforced_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS applied_events (
    token TEXT PRIMARY KEY,
    claim_id INTEGER NOT NULL,
    action_json TEXT NOT NULL,
    applied_at TEXT NOT NULL,
    FOREIGN KEY (claim_id) REFERENCES claims(id)
);

CREATE TABLE IF NOT EXISTS feedback_raw (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    source TEXT,
    analysis TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_claims_signal_weight
    ON claims(signal_weight DESC);
"""


def _dump_set(values: Iterable[str]) -> str:
    return json.dumps(sorted(set(values)))


def _row_to_claim(row: sqlite3.Row) -> Claim:
    return Claim(
        id=row["id"],
        text=row["text"],
        signal_weight=row["signal_weight"],
        sources=frozenset(json.loads(row["sources"])),
        segments=frozenset(json.loads(row["segments"])),
        reinforcement_count=row["reinforcement_count"],
        created_at=datetime.fromisoformat(row["created_at"]),
        last_reinforced_at=datetime.fromisoformat(row["last_reinforced_at"]),
    )


class SQLiteClaimStore:
    """Claim store persisted in a SQLite database file."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def initialize(self) -> None:
        if self._initialized:
            return
        await asyncio.to_thread(self._init_schema)
        self._initialized = True
        logger.info(f"🗄️ SQLite claim store ready at {self._db_path}")

    def _init_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA_SQL)
        finally:
            conn.close()

    async def shutdown(self) -> None:
        self._initialized = False

    # =========================================================================
    # READ OPERATIONS
    # =========================================================================

    async def get(self, claim_id: int) -> Optional[Claim]:
        claims = await self.get_many([claim_id])
        return claims.get(claim_id)

    async def get_many(self, claim_ids: Iterable[int]) -> Dict[int, Claim]:
        ids = list(claim_ids)
        if not ids:
            return {}
        return await asyncio.to_thread(self._select_many, ids)

    def _select_many(self, ids: List[int]) -> Dict[int, Claim]:
        placeholders = ",".join("?" for _ in ids)
        conn = self._connect()
        try:
            rows = conn.execute(
                f"SELECT * FROM claims WHERE id IN ({placeholders})", ids
            ).fetchall()
        finally:
            conn.close()
        return {row["id"]: _row_to_claim(row) for row in rows}

    async def list_claims(self) -> List[Claim]:
        return await asyncio.to_thread(self._select_all)

    def _select_all(self) -> List[Claim]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT * FROM claims ORDER BY signal_weight DESC, id ASC"
            ).fetchall()
        finally:
            conn.close()
        return [_row_to_claim(row) for row in rows]

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    async def create(
        self,
        text: str,
        sources: Iterable[str] = (),
        segments: Iterable[str] = (),
        initial_weight: int = BASELINE_SIGNAL_WEIGHT,
    ) -> Claim:
        return await asyncio.to_thread(
            self._write, self._insert_claim, text, list(sources), list(segments), initial_weight
        )

    async def apply(self, action: Action, idempotency_token: str) -> ApplyResult:
        return await asyncio.to_thread(self._write, self._apply, action, idempotency_token)

    async def record_feedback(
        self,
        text: str,
        source: Optional[str],
        analysis: Optional[Dict[str, Any]],
    ) -> FeedbackRecord:
        return await asyncio.to_thread(self._write, self._insert_feedback, text, source, analysis)

    def _write(self, op, *args):
        """Run ``op(conn, *args)`` in an immediate transaction."""
        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                result = op(conn, *args)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
            return result
        except sqlite3.Error as e:
            logger.error(f"❌ Claim store write failed: {e}")
            raise StoreWriteFailure(f"SQLite write failed: {e}") from e
        finally:
            conn.close()

    def _insert_claim(self, conn, text, sources, segments, initial_weight) -> Claim:
        now = utcnow().isoformat()
        cursor = conn.execute(
            "INSERT INTO claims (text, signal_weight, sources, segments, created_at, "
            "last_reinforced_at) VALUES (?, ?, ?, ?, ?, ?)",
            (text, initial_weight, _dump_set(sources), _dump_set(segments), now, now),
        )
        return self._fetch(conn, cursor.lastrowid)

    def _apply(self, conn, action: Action, token: str) -> ApplyResult:
        committed = conn.execute(
            "SELECT claim_id, action_json FROM applied_events WHERE token = ?", (token,)
        ).fetchone()
        if committed is not None:
            logger.info(f"↩️ Token {token} already applied, skipping")
            replayed = ApplyResult.model_validate({
                "action": json.loads(committed["action_json"]),
                "claim": self._fetch(conn, committed["claim_id"]),
                "replayed": True,
            })
            return replayed

        if isinstance(action, CreateClaim):
            claim = self._insert_claim(
                conn, action.text, action.sources, action.segments, action.initial_weight
            )
        elif isinstance(action, ReinforceClaim):
            claim = self._reinforce(conn, action)
        else:
            raise TypeError(f"Unsupported action: {action!r}")

        conn.execute(
            "INSERT INTO applied_events (token, claim_id, action_json, applied_at) "
            "VALUES (?, ?, ?, ?)",
            (token, claim.id, action.model_dump_json(), utcnow().isoformat()),
        )
        return ApplyResult(action=action, claim=claim)

    def _reinforce(self, conn, action: ReinforceClaim) -> Claim:
        row = conn.execute(
            "SELECT sources, segments FROM claims WHERE id = ?", (action.claim_id,)
        ).fetchone()
        if row is None:
            raise ClaimNotFound(action.claim_id)

        sources = set(json.loads(row["sources"]))
        segments = set(json.loads(row["segments"]))
        if action.add_source:
            sources.add(action.add_source)
        if action.add_segment:
            segments.add(action.add_segment)

        conn.execute(
            "UPDATE claims SET signal_weight = signal_weight + ?, "
            "reinforcement_count = reinforcement_count + 1, "
            "sources = ?, segments = ?, last_reinforced_at = ? WHERE id = ?",
            (
                action.weight_delta,
                _dump_set(sources),
                _dump_set(segments),
                utcnow().isoformat(),
                action.claim_id,
            ),
        )
        return self._fetch(conn, action.claim_id)

    def _insert_feedback(self, conn, text, source, analysis) -> FeedbackRecord:
        now = utcnow()
        cursor = conn.execute(
            "INSERT INTO feedback_raw (text, source, analysis, created_at) VALUES (?, ?, ?, ?)",
            (text, source, json.dumps(analysis) if analysis is not None else None, now.isoformat()),
        )
        return FeedbackRecord(
            id=cursor.lastrowid, text=text, source=source, analysis=analysis, created_at=now
        )

    @staticmethod
    def _fetch(conn, claim_id: int) -> Claim:
        row = conn.execute("SELECT * FROM claims WHERE id = ?", (claim_id,)).fetchone()
        if row is None:
            raise ClaimNotFound(claim_id)
        return _row_to_claim(row)
