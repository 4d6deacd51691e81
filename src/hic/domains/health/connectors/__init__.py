"""Sample store connectors — abstraction layer for measurement retrieval."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from hic.domains.health.domain_logic.models import MeasurementRecord


@runtime_checkable
class SampleStoreAdapter(Protocol):
    """Abstract interface for time-windowed measurement retrieval.

    Analyses call ``fetch`` without knowing whether records come from a
    wearable export, a database, records the caller already holds, or the
    mock generator. Implementations return records for one category, in
    any order; the analytics sort by timestamp themselves.
    """

    async def fetch(
        self,
        subject_id: str,
        category: str,
        since: datetime,
        until: datetime,
    ) -> list[MeasurementRecord]:
        """Records of ``category`` for ``subject_id`` with since <= timestamp <= until."""
        ...

    @property
    def categories(self) -> frozenset[str]:
        """Categories this store can serve (subset of heart/sleep/activity/lab)."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source: 'memory', 'mock', 'composite', ..."""
        ...
