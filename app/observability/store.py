from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime
from typing import Any, Protocol

from app.schemas.observability import (
    AIResponseCapture,
    Checkpoint,
    ExtractionEventRecord,
    ExtractionSession,
    ValidationLog,
)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS extraction_sessions (
        id TEXT PRIMARY KEY,
        vault_id TEXT NOT NULL,
        user_id TEXT NOT NULL,
        extraction_version TEXT NOT NULL,
        started_at TEXT NOT NULL,
        ended_at TEXT,
        status TEXT NOT NULL,
        metadata_json TEXT NOT NULL,
        final_data_json TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS extraction_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        event_type TEXT NOT NULL,
        event_data_json TEXT NOT NULL,
        timestamp TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ai_response_captures (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        pass_type TEXT NOT NULL,
        prompt_version TEXT NOT NULL,
        model_used TEXT NOT NULL,
        raw_response TEXT NOT NULL,
        parsed_data_json TEXT,
        token_usage_json TEXT NOT NULL,
        latency_ms INTEGER NOT NULL,
        ai_reasoning TEXT,
        confidence_score REAL NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS extraction_validation_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        validation_type TEXT NOT NULL,
        passed INTEGER NOT NULL,
        confidence REAL NOT NULL,
        issues_json TEXT NOT NULL,
        recommendations_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS extraction_checkpoints (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        session_id TEXT NOT NULL,
        phase TEXT NOT NULL,
        checkpoint_data_json TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_extraction_events_session ON extraction_events (session_id, id);",
    "CREATE INDEX IF NOT EXISTS idx_ai_response_captures_session ON ai_response_captures (session_id);",
    "CREATE INDEX IF NOT EXISTS idx_extraction_validation_logs_session ON extraction_validation_logs (session_id);",
    "CREATE INDEX IF NOT EXISTS idx_extraction_checkpoints_session ON extraction_checkpoints (session_id, id);",
)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def _loads(value: str | None) -> Any:
    return json.loads(value) if value else None


class ExtractionStore(Protocol):
    def insert_session(self, session: ExtractionSession) -> None: ...

    def finish_session(
        self, session_id: str, status: str, ended_at: datetime, final_data: dict[str, Any] | None
    ) -> None: ...

    def get_session(self, session_id: str) -> ExtractionSession | None: ...

    def insert_event(self, event: ExtractionEventRecord) -> None: ...

    def list_events(self, session_id: str) -> list[ExtractionEventRecord]: ...

    def insert_capture(self, capture: AIResponseCapture) -> None: ...

    def list_captures(self, session_id: str) -> list[AIResponseCapture]: ...

    def insert_validation_log(self, log: ValidationLog) -> None: ...

    def list_validation_logs(self, session_id: str) -> list[ValidationLog]: ...

    def insert_checkpoint(self, checkpoint: Checkpoint) -> None: ...

    def list_checkpoints(self, session_id: str) -> list[Checkpoint]: ...


class SQLiteExtractionStore(ExtractionStore):
    """One shared connection guarded by a lock; file databases run in WAL mode."""

    def __init__(self, db_path: str):
        self._db_path = db_path
        self._lock = threading.Lock()
        self._conn = self._connect()

    def _connect(self) -> sqlite3.Connection:
        in_memory = self._db_path == ":memory:"
        if not in_memory:
            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

        conn = sqlite3.connect(
            self._db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        if not in_memory:
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            conn.execute(statement)
        return conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _write(self, sql: str, params: tuple[Any, ...]) -> None:
        with self._lock:
            self._conn.execute(sql, params)

    def _read(self, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def insert_session(self, session: ExtractionSession) -> None:
        self._write(
            """
            INSERT INTO extraction_sessions (
                id, vault_id, user_id, extraction_version, started_at, ended_at, status,
                metadata_json, final_data_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                session.id,
                session.vault_id,
                session.user_id,
                session.extraction_version,
                session.started_at.isoformat(),
                session.ended_at.isoformat() if session.ended_at else None,
                session.status,
                _dumps(session.metadata),
                _dumps(session.final_data) if session.final_data is not None else None,
            ),
        )

    def finish_session(
        self, session_id: str, status: str, ended_at: datetime, final_data: dict[str, Any] | None
    ) -> None:
        self._write(
            "UPDATE extraction_sessions SET status = ?, ended_at = ?, final_data_json = ? WHERE id = ?",
            (status, ended_at.isoformat(), _dumps(final_data or {}), session_id),
        )

    def get_session(self, session_id: str) -> ExtractionSession | None:
        rows = self._read(
            """
            SELECT id, vault_id, user_id, extraction_version, started_at, ended_at, status,
                   metadata_json, final_data_json
            FROM extraction_sessions
            WHERE id = ?
            """,
            (session_id,),
        )
        if not rows:
            return None
        row = rows[0]
        return ExtractionSession(
            id=row[0],
            vault_id=row[1],
            user_id=row[2],
            extraction_version=row[3],
            started_at=datetime.fromisoformat(row[4]),
            ended_at=datetime.fromisoformat(row[5]) if row[5] else None,
            status=row[6],
            metadata=_loads(row[7]) or {},
            final_data=_loads(row[8]),
        )

    def insert_event(self, event: ExtractionEventRecord) -> None:
        self._write(
            "INSERT INTO extraction_events (session_id, event_type, event_data_json, timestamp) VALUES (?, ?, ?, ?)",
            (event.session_id, event.event_type, _dumps(event.event_data), event.timestamp.isoformat()),
        )

    def list_events(self, session_id: str) -> list[ExtractionEventRecord]:
        rows = self._read(
            """
            SELECT session_id, event_type, event_data_json, timestamp
            FROM extraction_events
            WHERE session_id = ?
            ORDER BY id ASC
            """,
            (session_id,),
        )
        return [
            ExtractionEventRecord(
                session_id=row[0],
                event_type=row[1],
                event_data=_loads(row[2]) or {},
                timestamp=datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]

    def insert_capture(self, capture: AIResponseCapture) -> None:
        self._write(
            """
            INSERT INTO ai_response_captures (
                session_id, pass_type, prompt_version, model_used, raw_response, parsed_data_json,
                token_usage_json, latency_ms, ai_reasoning, confidence_score, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                capture.session_id,
                capture.pass_type,
                capture.prompt_version,
                capture.model_used,
                capture.raw_response,
                _dumps(capture.parsed_data),
                _dumps(capture.token_usage.model_dump()),
                capture.latency_ms,
                capture.ai_reasoning,
                capture.confidence_score,
                capture.created_at.isoformat(),
            ),
        )

    def list_captures(self, session_id: str) -> list[AIResponseCapture]:
        rows = self._read(
            """
            SELECT session_id, pass_type, prompt_version, model_used, raw_response, parsed_data_json,
                   token_usage_json, latency_ms, ai_reasoning, confidence_score, created_at
            FROM ai_response_captures
            WHERE session_id = ?
            ORDER BY id ASC
            """,
            (session_id,),
        )
        return [
            AIResponseCapture(
                session_id=row[0],
                pass_type=row[1],
                prompt_version=row[2],
                model_used=row[3],
                raw_response=row[4],
                parsed_data=_loads(row[5]),
                token_usage=_loads(row[6]) or {},
                latency_ms=row[7],
                ai_reasoning=row[8],
                confidence_score=row[9],
                created_at=datetime.fromisoformat(row[10]),
            )
            for row in rows
        ]

    def insert_validation_log(self, log: ValidationLog) -> None:
        self._write(
            """
            INSERT INTO extraction_validation_logs (
                session_id, validation_type, passed, confidence, issues_json, recommendations_json, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                log.session_id,
                log.validation_type,
                int(log.passed),
                log.confidence,
                _dumps([issue.model_dump() for issue in log.issues]),
                _dumps(log.recommendations),
                log.created_at.isoformat(),
            ),
        )

    def list_validation_logs(self, session_id: str) -> list[ValidationLog]:
        rows = self._read(
            """
            SELECT session_id, validation_type, passed, confidence, issues_json, recommendations_json, created_at
            FROM extraction_validation_logs
            WHERE session_id = ?
            ORDER BY id ASC
            """,
            (session_id,),
        )
        return [
            ValidationLog(
                session_id=row[0],
                validation_type=row[1],
                passed=bool(row[2]),
                confidence=row[3],
                issues=_loads(row[4]) or [],
                recommendations=_loads(row[5]) or [],
                created_at=datetime.fromisoformat(row[6]),
            )
            for row in rows
        ]

    def insert_checkpoint(self, checkpoint: Checkpoint) -> None:
        self._write(
            "INSERT INTO extraction_checkpoints (session_id, phase, checkpoint_data_json, created_at) VALUES (?, ?, ?, ?)",
            (checkpoint.session_id, checkpoint.phase, _dumps(checkpoint.checkpoint_data), checkpoint.created_at.isoformat()),
        )

    def list_checkpoints(self, session_id: str) -> list[Checkpoint]:
        rows = self._read(
            """
            SELECT session_id, phase, checkpoint_data_json, created_at
            FROM extraction_checkpoints
            WHERE session_id = ?
            ORDER BY id ASC
            """,
            (session_id,),
        )
        return [
            Checkpoint(
                session_id=row[0],
                phase=row[1],
                checkpoint_data=_loads(row[2]) or {},
                created_at=datetime.fromisoformat(row[3]),
            )
            for row in rows
        ]


_default_store: SQLiteExtractionStore | None = None
_default_store_lock = threading.Lock()


def get_extraction_store() -> SQLiteExtractionStore:
    global _default_store
    with _default_store_lock:
        if _default_store is None:
            from app.core.config import settings

            _default_store = SQLiteExtractionStore(settings.extraction_db_path)
        return _default_store
