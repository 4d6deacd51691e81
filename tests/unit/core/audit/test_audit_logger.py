"""Tests for the AuditLogger and related utilities."""

from __future__ import annotations

import json
import time

import pytest

from hic.core.audit.logger import AuditEvent, AuditLogger, _hash_input
from hic.core.storage.database import HealthDatabase


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def audit_db():
    """In-memory database with the audit_log table."""
    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def audit_logger(audit_db):
    return AuditLogger(audit_db)


# ---------------------------------------------------------------------------
# _hash_input tests
# ---------------------------------------------------------------------------

class TestHashInput:
    def test_sha256_hex(self):
        assert len(_hash_input({"subject_id": "s-1"})) == 64

    def test_order_independent(self):
        """Canonical JSON sorts keys, so order doesn't matter."""
        assert _hash_input({"z": 1, "a": 2}) == _hash_input({"a": 2, "z": 1})

    def test_different_inputs_differ(self):
        assert _hash_input({"days": 30}) != _hash_input({"days": 90})

    def test_non_serializable_returns_empty(self):
        assert _hash_input(object()) == ""


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

class TestLogAnalysis:
    def test_returns_uuid(self, audit_logger):
        eid = audit_logger.log_event(AuditEvent(action="analysis", analysis_type="health_score"))
        assert len(eid) == 36

    def test_fields_stored(self, audit_logger):
        audit_logger.log_analysis(
            "health_score",
            {"subject_id": "subject-1", "days": 30},
            privacy_mode="strict",
            llm_provider="mock",
            llm_disclosed=True,
            fallback_used=False,
            duration_ms=12.5,
        )
        event = audit_logger.get_events()[0]
        assert event["action"] == "analysis"
        assert event["analysis_type"] == "health_score"
        assert event["privacy_mode"] == "strict"
        assert event["llm_provider"] == "mock"
        assert event["llm_disclosed"] == 1
        assert event["fallback_used"] == 0
        assert event["duration_ms"] == 12.5
        assert event["status"] == "success"

    def test_request_is_hashed_not_stored(self, audit_logger):
        audit_logger.log_analysis("daily_briefing", {"subject_id": "subject-1"})
        event = audit_logger.get_events()[0]
        assert event["request_hash"] == _hash_input({"subject_id": "subject-1"})
        assert "subject-1" not in json.dumps(event)

    def test_failure_recorded(self, audit_logger):
        audit_logger.log_analysis(
            "correlations", status="failure", error_type="InvalidInputError"
        )
        event = audit_logger.get_events()[0]
        assert event["status"] == "failure"
        assert event["error_type"] == "InvalidInputError"
        assert event["request_hash"] is None

    def test_metadata_json(self, audit_logger):
        audit_logger.log_analysis("health_score", metadata={"source": "rules", "degraded": True})
        meta = json.loads(audit_logger.get_events()[0]["metadata_json"])
        assert meta == {"source": "rules", "degraded": True}

    def test_write_failure_is_logged_not_raised(self, audit_db, caplog):
        audit_db.connection.execute("DROP TABLE audit_log")
        logger = AuditLogger(audit_db)
        with caplog.at_level("ERROR"):
            assert logger.log_analysis("health_score") == ""
        assert "Failed to write audit event" in caplog.text


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestGetEvents:
    def test_filter_by_analysis_type(self, audit_logger):
        audit_logger.log_analysis("health_score")
        audit_logger.log_analysis("daily_briefing")
        audit_logger.log_analysis("health_score")
        assert len(audit_logger.get_events(analysis_type="health_score")) == 2

    def test_filter_by_action(self, audit_logger):
        audit_logger.log_analysis("health_score")
        audit_logger.log_event(AuditEvent(action="cache_invalidate", analysis_type="health_score"))
        assert len(audit_logger.get_events(action="cache_invalidate")) == 1

    def test_limit(self, audit_logger):
        for _ in range(5):
            audit_logger.log_analysis("health_score")
        assert len(audit_logger.get_events(limit=3)) == 3

    def test_newest_first(self, audit_logger):
        audit_logger.log_analysis("correlations")
        time.sleep(0.01)
        audit_logger.log_analysis("daily_briefing")
        events = audit_logger.get_events()
        assert [e["analysis_type"] for e in events] == ["daily_briefing", "correlations"]

    def test_since(self, audit_logger):
        audit_logger.log_analysis("health_score")
        assert audit_logger.get_events(since="2999-01-01") == []


class TestCounts:
    def test_disclosures_and_fallbacks(self, audit_logger):
        audit_logger.log_analysis("health_score", llm_disclosed=True)
        audit_logger.log_analysis("health_score", llm_disclosed=True, fallback_used=True)
        audit_logger.log_analysis("health_score", fallback_used=True)
        audit_logger.log_analysis("health_score")
        assert audit_logger.count_disclosures() == 2
        assert audit_logger.count_fallbacks() == 2

    def test_since_filter(self, audit_logger):
        audit_logger.log_analysis("health_score", llm_disclosed=True)
        assert audit_logger.count_disclosures(since="2999-01-01") == 0
        assert audit_logger.count_fallbacks(since="2000-01-01") == 0
