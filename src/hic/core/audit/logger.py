"""Audit logger — PHI-free record of analysis runs and generator disclosure.

Records every analysis invocation in an audit trail that never contains
health data:

* ``request_hash``  — SHA-256 of canonical JSON of the request.
* ``llm_disclosed`` — whether aggregates were sent to the insight generator.
* ``fallback_used`` — whether the deterministic rules replaced the generator.
* ``privacy_mode``  — which payload filter was active.
"""

from __future__ import annotations

import hashlib
import json
import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from hic.core.storage.database import DatabaseError, HealthDatabase

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input hashing
# ---------------------------------------------------------------------------

def _hash_input(data: Any) -> str:
    """SHA-256 hash of canonical JSON — no PHI stored in audit logs.

    Args:
        data: Request data to hash. Must be JSON-serializable.

    Returns:
        Hex-encoded SHA-256 digest, or empty string on failure.
    """
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


# ---------------------------------------------------------------------------
# AuditEvent dataclass
# ---------------------------------------------------------------------------

@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                          # 'analysis' | 'cache_invalidate'
    analysis_type: str = ""
    request_hash: str = ""
    privacy_mode: str | None = None      # 'strict' | 'standard' | 'explicit'
    llm_provider: str | None = None      # 'anthropic' | 'openai' | 'azure' | 'mock'
    llm_disclosed: bool = False          # True if aggregates were sent to the generator
    fallback_used: bool = False
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# AuditLogger
# ---------------------------------------------------------------------------

class AuditLogger:
    """Records audit events to the ``audit_log`` SQLite table.

    Writes are serialized through the database lock and committed
    immediately. A failed write is logged and never breaks the analysis.

    Usage::

        audit = AuditLogger(insight_db)
        event_id = audit.log_analysis(
            analysis_type="health_score",
            request={"subject_id": "s-1", "timeframe_days": 90},
            llm_disclosed=True,
            llm_provider="anthropic",
            privacy_mode="strict",
        )
    """

    def __init__(self, database: HealthDatabase) -> None:
        self._db = database

    # ---------------------------------------------------------------
    # Write
    # ---------------------------------------------------------------

    def log_event(self, event: AuditEvent) -> str:
        """Insert an audit event and return its UUID ("" if the write failed)."""
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()

        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"))
            if event.metadata
            else None
        )

        try:
            with self._db.lock:
                conn = self._db.connection
                conn.execute(
                    """INSERT INTO audit_log
                       (id, timestamp, action, analysis_type, request_hash,
                        privacy_mode, llm_provider, llm_disclosed, fallback_used,
                        duration_ms, status, error_type, metadata_json)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        event_id,
                        now,
                        event.action,
                        event.analysis_type or None,
                        event.request_hash or None,
                        event.privacy_mode,
                        event.llm_provider,
                        1 if event.llm_disclosed else 0,
                        1 if event.fallback_used else 0,
                        event.duration_ms,
                        event.status,
                        event.error_type,
                        metadata_json,
                    ),
                )
                conn.commit()
        except (sqlite3.Error, DatabaseError):
            logger.exception("Failed to write audit event — event lost")
            return ""

        return event_id

    def log_analysis(
        self,
        analysis_type: str,
        request: Any = None,
        *,
        privacy_mode: str | None = None,
        llm_provider: str | None = None,
        llm_disclosed: bool = False,
        fallback_used: bool = False,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Convenience wrapper for logging an analysis run.

        Args:
            analysis_type: 'correlations', 'health_score' or 'daily_briefing'.
            request: Request parameters (hashed, never stored raw).
            privacy_mode: Active gateway payload filter.
            llm_provider: Insight generator used, if any.
            llm_disclosed: Whether aggregates were sent to the generator.
            fallback_used: Whether the rule-based result was returned instead.
            duration_ms: Analysis duration in milliseconds.
            status: 'success' or 'failure'.
            error_type: Error class name on failure.
            metadata: Additional non-PHI metadata.

        Returns:
            The generated event ID.
        """
        return self.log_event(AuditEvent(
            action="analysis",
            analysis_type=analysis_type,
            request_hash=_hash_input(request) if request else "",
            privacy_mode=privacy_mode,
            llm_provider=llm_provider,
            llm_disclosed=llm_disclosed,
            fallback_used=fallback_used,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    # ---------------------------------------------------------------
    # Read
    # ---------------------------------------------------------------

    def get_events(
        self,
        *,
        action: str | None = None,
        analysis_type: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query audit events with optional filters, newest first."""
        conditions: list[str] = []
        params: list[Any] = []

        if action:
            conditions.append("action = ?")
            params.append(action)
        if analysis_type:
            conditions.append("analysis_type = ?")
            params.append(analysis_type)
        if since:
            conditions.append("timestamp >= ?")
            params.append(since)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        with self._db.lock:
            rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_disclosures(self, *, since: str | None = None) -> int:
        """Count runs where aggregates were sent to the insight generator.

        This answers: "How many times has my health data left this device?"
        """
        query = "SELECT COUNT(*) FROM audit_log WHERE llm_disclosed = 1"
        params: tuple[Any, ...] = ()
        if since:
            query += " AND timestamp >= ?"
            params = (since,)
        with self._db.lock:
            row = self._db.connection.execute(query, params).fetchone()
        return row[0]

    def count_fallbacks(self, *, since: str | None = None) -> int:
        """Count runs that returned the deterministic rule-based result."""
        query = "SELECT COUNT(*) FROM audit_log WHERE fallback_used = 1"
        params: tuple[Any, ...] = ()
        if since:
            query += " AND timestamp >= ?"
            params = (since,)
        with self._db.lock:
            row = self._db.connection.execute(query, params).fetchone()
        return row[0]
