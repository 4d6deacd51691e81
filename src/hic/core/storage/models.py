"""Data models for the insight cache."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass
class CachedResult:
    """A generated insight payload with its validity window.

    Read-only while valid; once ``expires_at`` has passed the entry is a
    cache miss and the analysis is recomputed.
    """

    subject_id: str
    analysis_type: str
    payload: dict[str, Any]
    generated_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def to_dict(self) -> dict[str, Any]:
        return {
            "payload": self.payload,
            "generated_at": self.generated_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }
