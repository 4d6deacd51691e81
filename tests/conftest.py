"""Shared test fixtures for Health Intelligence Core tests."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Sequence

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("AZURE_OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("CACHE_DB_PATH", ":memory:")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from hic.domains.health.domain_logic.models import MeasurementRecord  # noqa: E402

# Fixed reference instant: records are laid out on the days before it.
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

def make_record(
    category: str,
    days_ago: float = 0,
    subject_id: str = "subject-1",
    label: str = "",
    now: datetime = NOW,
    **values: float | None,
) -> MeasurementRecord:
    """Build one record ``days_ago`` days before ``now``."""
    return MeasurementRecord(
        subject_id=subject_id,
        category=category,
        timestamp=now - timedelta(days=days_ago),
        values=values,
        label=label,
    )


def daily_series(
    category: str,
    name: str,
    values: Sequence[float | None],
    subject_id: str = "subject-1",
    now: datetime = NOW,
    hour_offset: float = 0,
) -> list[MeasurementRecord]:
    """One record per day for ``values``, oldest first, ending yesterday.

    ``hour_offset`` shifts every timestamp, so two series built with
    different offsets are a few hours apart on each day.
    """
    n = len(values)
    return [
        MeasurementRecord(
            subject_id=subject_id,
            category=category,
            timestamp=now - timedelta(days=n - i) + timedelta(hours=hour_offset),
            values={name: value},
        )
        for i, value in enumerate(values)
    ]


def lab_series(
    label: str,
    values: Sequence[float],
    every_days: int = 7,
    subject_id: str = "subject-1",
    now: datetime = NOW,
) -> list[MeasurementRecord]:
    """Lab results ``every_days`` apart, oldest first."""
    n = len(values)
    return [
        MeasurementRecord(
            subject_id=subject_id,
            category="lab",
            timestamp=now - timedelta(days=(n - i) * every_days),
            values={"value": value},
            label=label,
        )
        for i, value in enumerate(values)
    ]


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def health_db():
    """Create an in-memory HealthDatabase for testing."""
    from hic.core.storage.database import HealthDatabase

    db = HealthDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from hic.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def insight_cache(health_db, field_encryptor):
    """Create an encrypted InsightCache backed by in-memory SQLite."""
    from hic.core.storage.cache import InsightCache

    return InsightCache(health_db, field_encryptor)


@pytest.fixture
def audit_logger(health_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from hic.core.audit.logger import AuditLogger

    return AuditLogger(health_db)
