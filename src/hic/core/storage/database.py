"""SQLite database management for the insight cache and audit trail.

Handles connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 2

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- One live generated insight per (subject, analysis type)
CREATE TABLE IF NOT EXISTS insight_cache (
    id             TEXT PRIMARY KEY,
    subject_id     TEXT NOT NULL,
    analysis_type  TEXT NOT NULL,

    -- JSON payload, Fernet-encrypted when a key is configured
    payload_enc    TEXT NOT NULL,
    encrypted      INTEGER NOT NULL DEFAULT 0,

    generated_at   TEXT NOT NULL,
    expires_at     TEXT NOT NULL,
    UNIQUE (subject_id, analysis_type)
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_cache_expires ON insight_cache(expires_at);
"""

# ---------------------------------------------------------------------------
# V2: Audit log table (analysis runs + insight generator disclosure)
# ---------------------------------------------------------------------------

_SCHEMA_V2 = """
CREATE TABLE IF NOT EXISTS audit_log (
    id              TEXT PRIMARY KEY,
    timestamp       TEXT NOT NULL DEFAULT (datetime('now')),
    action          TEXT NOT NULL,
    analysis_type   TEXT,
    request_hash    TEXT,
    privacy_mode    TEXT,
    llm_provider    TEXT,
    llm_disclosed   INTEGER DEFAULT 0,
    fallback_used   INTEGER DEFAULT 0,
    duration_ms     REAL,
    status          TEXT NOT NULL DEFAULT 'success',
    error_type      TEXT,
    metadata_json   TEXT
);

CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_log(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_action    ON audit_log(action);
CREATE INDEX IF NOT EXISTS idx_audit_analysis  ON audit_log(analysis_type);
"""


class DatabaseError(Exception):
    """Raised when database operations fail."""


class HealthDatabase:
    """SQLite database manager for the insight cache and audit log.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing. The connection may be used from
    several threads; callers serialize access through ``lock``.

    Usage::

        db = HealthDatabase(":memory:")
        db.initialize()
        with db.lock:
            db.connection.execute(...)
        db.close()
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        """Initialize database manager.

        Args:
            db_path: Path to SQLite file, or ":memory:" for in-memory DB.
        """
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self.lock = threading.Lock()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Create the database connection and ensure schema exists.

        For file-based databases, creates parent directories if needed.
        Idempotent: safe to call multiple times.
        """
        if self._conn is not None:
            return  # Already initialized

        try:
            if self._db_path != ":memory:":
                db_file = Path(self._db_path).expanduser()
                db_file.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(db_file), check_same_thread=False)
            else:
                self._conn = sqlite3.connect(":memory:", check_same_thread=False)
        except (OSError, sqlite3.Error) as exc:
            raise DatabaseError(f"Cannot open database {self._db_path}: {exc}") from exc

        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")

        self._ensure_schema()
        logger.info("Insight database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist and apply migrations."""
        conn = self.connection

        # V1: cache tables (CREATE IF NOT EXISTS, safe to reapply)
        conn.executescript(_SCHEMA_V1)

        current_version = self.get_schema_version()

        # V2: Audit log table
        if current_version < 2:
            conn.executescript(_SCHEMA_V2)
            logger.info("Applied schema migration V2: audit_log table")

        # Record schema version
        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Insight database closed")

    def __enter__(self) -> HealthDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
