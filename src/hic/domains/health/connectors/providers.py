"""Concrete SampleStoreAdapter implementations."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from hic.domains.health.connectors.mock_data import get_mock_records
from hic.domains.health.domain_logic.models import CATEGORIES, MeasurementRecord, as_utc


class MockSampleStore:
    """Uses the deterministic mock generators. Always available."""

    async def fetch(
        self,
        subject_id: str,
        category: str,
        since: datetime,
        until: datetime,
    ) -> list[MeasurementRecord]:
        return get_mock_records(subject_id, category, since, until)

    @property
    def categories(self) -> frozenset[str]:
        return frozenset(CATEGORIES)

    @property
    def data_source(self) -> str:
        return "mock"


class InMemorySampleStore:
    """Serves records the caller already holds.

    Only categories that were given records (or named explicitly via
    ``categories``) are reported as available.

    Usage::

        store = InMemorySampleStore(records)
        heart = await store.fetch("subject-1", "heart", since, until)
    """

    def __init__(
        self,
        records: Iterable[MeasurementRecord] = (),
        categories: Iterable[str] | None = None,
    ) -> None:
        self._records: dict[tuple[str, str], list[MeasurementRecord]] = defaultdict(list)
        seen: set[str] = set()
        for record in records:
            self.add(record)
            seen.add(record.category)
        self._categories = frozenset(categories) if categories is not None else frozenset(seen)

    def add(self, record: MeasurementRecord) -> None:
        if record.category not in CATEGORIES:
            raise ValueError(
                f"Unknown category {record.category!r}; expected one of {CATEGORIES}"
            )
        self._records[(record.subject_id, record.category)].append(record)

    async def fetch(
        self,
        subject_id: str,
        category: str,
        since: datetime,
        until: datetime,
    ) -> list[MeasurementRecord]:
        since, until = as_utc(since), as_utc(until)
        return [
            r
            for r in self._records.get((subject_id, category), [])
            if since <= r.timestamp <= until
        ]

    @property
    def categories(self) -> frozenset[str]:
        return self._categories

    @property
    def data_source(self) -> str:
        return "memory"
