"""Tests for HealthDatabase — schema creation, versioning, lifecycle."""

from __future__ import annotations

import sqlite3

import pytest

from hic.core.storage.database import SCHEMA_VERSION, DatabaseError, HealthDatabase


def _names(db: HealthDatabase, kind: str) -> set[str]:
    cursor = db.connection.execute(
        "SELECT name FROM sqlite_master WHERE type = ? AND name NOT LIKE 'sqlite_%'",
        (kind,),
    )
    return {row[0] for row in cursor.fetchall()}


class TestLifecycle:
    def test_initialize_is_idempotent(self):
        db = HealthDatabase(":memory:")
        db.initialize()
        conn = db.connection
        db.initialize()
        assert db.connection is conn
        db.close()

    def test_connection_before_init_raises(self):
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = HealthDatabase(":memory:").connection

    def test_context_manager_closes(self):
        with HealthDatabase(":memory:") as db:
            assert db.connection is not None
        with pytest.raises(DatabaseError):
            _ = db.connection

    def test_double_close_is_safe(self):
        db = HealthDatabase(":memory:")
        db.initialize()
        db.close()
        db.close()

    def test_unopenable_path_raises_database_error(self, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file in the way")
        db = HealthDatabase(str(blocker / "insights.db"))
        with pytest.raises(DatabaseError, match="Cannot open database"):
            db.initialize()


class TestSchema:
    def test_tables(self):
        with HealthDatabase(":memory:") as db:
            assert {"insight_cache", "audit_log", "schema_version"} <= _names(db, "table")

    def test_indexes(self):
        with HealthDatabase(":memory:") as db:
            assert {
                "idx_cache_expires",
                "idx_audit_timestamp",
                "idx_audit_action",
                "idx_audit_analysis",
            } <= _names(db, "index")

    def test_schema_version_recorded_once(self, tmp_path):
        path = str(tmp_path / "insights.db")
        with HealthDatabase(path) as db:
            assert db.get_schema_version() == SCHEMA_VERSION
        with HealthDatabase(path) as db:
            rows = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()
            assert rows[0] == 1

    def test_cache_key_is_unique(self):
        with HealthDatabase(":memory:") as db:
            insert = (
                "INSERT INTO insight_cache (id, subject_id, analysis_type, payload_enc, "
                "generated_at, expires_at) VALUES (?, 's', 'health_score', '{}', 'a', 'b')"
            )
            db.connection.execute(insert, ("1",))
            with pytest.raises(sqlite3.IntegrityError, match="UNIQUE"):
                db.connection.execute(insert, ("2",))


class TestFileDatabase:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "insights.db"
        with HealthDatabase(str(db_path)) as db:
            assert db_path.exists()
            mode = db.connection.execute("PRAGMA journal_mode").fetchone()[0]
            assert mode.lower() == "wal"
