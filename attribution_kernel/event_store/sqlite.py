"""
SQLite Event Store — append-only outcome-event, agent-action,
attribution and knowledge logs.

Behavioral Contract:
- Append-only. No row is ever updated or deleted.
- An outcome event is "attributed" once an attribution record references it;
  a unique index keeps that to one record per event.
- Timestamps are stored as UTC epoch seconds so window queries are plain
  numeric range scans. Full records round-trip through their JSON column.
- One connection shared across threads, serialized by a lock.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from attribution_kernel.attribution.scorer import as_utc
from attribution_kernel.errors import StoreReadError, StoreWriteError
from attribution_kernel.models.attribution import AttributionRecord
from attribution_kernel.models.events import AgentAction, OutcomeEvent
from attribution_kernel.models.knowledge import KnowledgeEntry, KnowledgeStatus

logger = logging.getLogger(__name__)


def _epoch(value: datetime) -> float:
    return as_utc(value).timestamp()


ModelT = TypeVar("ModelT", bound=BaseModel)


def _decode(model: Type[ModelT], row: sqlite3.Row) -> ModelT:
    """Rebuild a record from its JSON column; a corrupt row is a read failure."""
    try:
        return model.model_validate_json(row["record_json"])
    except ValidationError as exc:
        raise StoreReadError(f"Corrupt {model.__name__} row: {exc}") from exc


class SQLiteEventStore:
    """
    Event store backed by SQLite.
    Prototype: SQLite. Production: the dashboard's PostgreSQL tables.
    """

    def __init__(self, db_path: str = ":memory:"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        """Create the log tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS outcome_events (
                event_id TEXT PRIMARY KEY,
                site_id TEXT NOT NULL,
                metric_key TEXT NOT NULL,
                event_type TEXT NOT NULL,
                ts REAL NOT NULL,
                record_json TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_outcome_site_ts
                ON outcome_events(site_id, ts);

            CREATE TABLE IF NOT EXISTS agent_actions (
                action_id TEXT PRIMARY KEY,
                site_id TEXT NOT NULL,
                action_type TEXT NOT NULL,
                ts_start REAL NOT NULL,
                record_json TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_actions_site_ts
                ON agent_actions(site_id, ts_start);

            CREATE TABLE IF NOT EXISTS attribution_records (
                attribution_id TEXT PRIMARY KEY,
                site_id TEXT NOT NULL,
                event_id TEXT NOT NULL UNIQUE,
                confidence REAL NOT NULL,
                record_json TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
            CREATE INDEX IF NOT EXISTS idx_attribution_site
                ON attribution_records(site_id);

            CREATE TABLE IF NOT EXISTS knowledge_entries (
                kb_id TEXT PRIMARY KEY,
                site_id TEXT NOT NULL,
                status TEXT NOT NULL,
                confidence REAL NOT NULL,
                record_json TEXT NOT NULL,
                created_at TEXT NOT NULL DEFAULT (datetime('now'))
            );
            CREATE INDEX IF NOT EXISTS idx_knowledge_site_status
                ON knowledge_entries(site_id, status);
        """)
        self._conn.commit()

    @contextmanager
    def _reading(self, what: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
            except sqlite3.Error as exc:
                raise StoreReadError(f"Failed to read {what}: {exc}") from exc

    @contextmanager
    def _writing(self, what: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except sqlite3.Error as exc:
                self._conn.rollback()
                raise StoreWriteError(f"Failed to write {what}: {exc}") from exc

    # --- Ingestion ---

    def append_outcome_event(self, event: OutcomeEvent) -> OutcomeEvent:
        with self._writing(f"outcome event {event.event_id}") as conn:
            conn.execute(
                """
                INSERT INTO outcome_events (
                    event_id, site_id, metric_key, event_type, ts, record_json
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    event.event_id,
                    event.site_id,
                    event.metric_key,
                    event.event_type,
                    _epoch(event.timestamp),
                    event.model_dump_json(),
                ),
            )
        return event

    def append_agent_action(self, action: AgentAction) -> AgentAction:
        with self._writing(f"agent action {action.action_id}") as conn:
            conn.execute(
                """
                INSERT INTO agent_actions (
                    action_id, site_id, action_type, ts_start, record_json
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    action.action_id,
                    action.site_id,
                    action.action_type,
                    _epoch(action.timestamp_start),
                    action.model_dump_json(),
                ),
            )
        return action

    # --- Queries consumed by the attribution engine ---

    def get_actions_by_time_window(
        self, site_id: str, start: datetime, end: datetime
    ) -> List[AgentAction]:
        """All actions for a site whose start timestamp lies in [start, end]."""
        with self._reading("agent actions") as conn:
            rows = conn.execute(
                "SELECT record_json FROM agent_actions "
                "WHERE site_id = ? AND ts_start >= ? AND ts_start <= ? "
                "ORDER BY ts_start, rowid",
                (site_id, _epoch(start), _epoch(end)),
            ).fetchall()
        return [_decode(AgentAction, r) for r in rows]

    def get_unattributed_outcome_events(self, site_id: str) -> List[OutcomeEvent]:
        """All outcome events for a site that no attribution record references."""
        with self._reading("unattributed outcome events") as conn:
            rows = conn.execute(
                "SELECT e.record_json FROM outcome_events e "
                "LEFT JOIN attribution_records a ON a.event_id = e.event_id "
                "WHERE e.site_id = ? AND a.attribution_id IS NULL "
                "ORDER BY e.ts, e.rowid",
                (site_id,),
            ).fetchall()
        return [_decode(OutcomeEvent, r) for r in rows]

    def create_attribution_record(self, record: AttributionRecord) -> AttributionRecord:
        with self._writing(f"attribution record {record.attribution_id}") as conn:
            conn.execute(
                """
                INSERT INTO attribution_records (
                    attribution_id, site_id, event_id, confidence, record_json
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.attribution_id,
                    record.site_id,
                    record.event_id,
                    record.confidence,
                    record.model_dump_json(),
                ),
            )
        logger.debug("Stored attribution %s for event %s", record.attribution_id, record.event_id)
        return record

    def create_knowledge_entry(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        with self._writing(f"knowledge entry {entry.kb_id}") as conn:
            conn.execute(
                """
                INSERT INTO knowledge_entries (
                    kb_id, site_id, status, confidence, record_json
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entry.kb_id,
                    entry.context_scope.site_id,
                    entry.status.value,
                    entry.confidence,
                    entry.model_dump_json(),
                ),
            )
        logger.debug("Stored knowledge entry %s", entry.kb_id)
        return entry

    # --- Retrieval ---

    def list_sites(self) -> List[str]:
        """Every site that has logged an outcome event or an action."""
        with self._reading("sites") as conn:
            rows = conn.execute(
                "SELECT site_id FROM outcome_events "
                "UNION SELECT site_id FROM agent_actions ORDER BY site_id"
            ).fetchall()
        return [r["site_id"] for r in rows]

    def get_outcome_event(self, event_id: str) -> Optional[OutcomeEvent]:
        with self._reading(f"outcome event {event_id}") as conn:
            row = conn.execute(
                "SELECT record_json FROM outcome_events WHERE event_id = ?",
                (event_id,),
            ).fetchone()
        return _decode(OutcomeEvent, row) if row else None

    def get_attribution_for_event(self, event_id: str) -> Optional[AttributionRecord]:
        with self._reading(f"attribution for event {event_id}") as conn:
            row = conn.execute(
                "SELECT record_json FROM attribution_records WHERE event_id = ?",
                (event_id,),
            ).fetchone()
        return _decode(AttributionRecord, row) if row else None

    def list_attribution_records(self, site_id: str) -> List[AttributionRecord]:
        with self._reading("attribution records") as conn:
            rows = conn.execute(
                "SELECT record_json FROM attribution_records "
                "WHERE site_id = ? ORDER BY rowid",
                (site_id,),
            ).fetchall()
        return [_decode(AttributionRecord, r) for r in rows]

    def list_knowledge_entries(
        self,
        site_id: Optional[str] = None,
        status: Optional[KnowledgeStatus] = None,
    ) -> List[KnowledgeEntry]:
        clauses = []
        params: list = []
        if site_id is not None:
            clauses.append("site_id = ?")
            params.append(site_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(KnowledgeStatus(status).value)
        where = f"WHERE {' AND '.join(clauses)} " if clauses else ""

        with self._reading("knowledge entries") as conn:
            rows = conn.execute(
                f"SELECT record_json FROM knowledge_entries {where}ORDER BY rowid",
                params,
            ).fetchall()
        return [_decode(KnowledgeEntry, r) for r in rows]

    def count_attribution_records(self) -> int:
        with self._reading("attribution count") as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM attribution_records").fetchone()
        return row["cnt"]

    def count_knowledge_entries(self) -> int:
        with self._reading("knowledge count") as conn:
            row = conn.execute("SELECT COUNT(*) AS cnt FROM knowledge_entries").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
