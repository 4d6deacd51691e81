"""Composite sample store — merges multiple stores with priority.

Each fetch queries stores in priority order, returning the first non-empty
result. This lets a real store take precedence over held records, with the
mock generator as the fallback.
"""

from __future__ import annotations

import logging
from datetime import datetime

from hic.domains.health.connectors import SampleStoreAdapter
from hic.domains.health.domain_logic.models import MeasurementRecord

logger = logging.getLogger(__name__)


class CompositeSampleStore:
    """Merges multiple SampleStoreAdapters with priority ordering.

    Usage::

        composite = CompositeSampleStore([
            memory_store,  # Highest priority
            MockSampleStore(),  # Fallback
        ])
        heart = await composite.fetch("subject-1", "heart", since, until)
    """

    def __init__(self, stores: list[SampleStoreAdapter]) -> None:
        """Initialize with stores in priority order (highest first).

        Args:
            stores: Ordered list of stores. The first store serving the
                category with a non-empty result wins for each fetch.
        """
        if not stores:
            raise ValueError("At least one store is required")
        self._stores = stores

    async def fetch(
        self,
        subject_id: str,
        category: str,
        since: datetime,
        until: datetime,
    ) -> list[MeasurementRecord]:
        """Return records from the highest-priority store with data."""
        for store in self._stores:
            if category not in store.categories:
                continue
            records = await store.fetch(subject_id, category, since, until)
            if records:
                logger.debug(
                    "%s records for %s served by %s", category, subject_id, store.data_source
                )
                return records
        return []

    @property
    def categories(self) -> frozenset[str]:
        """Union of the categories of every store."""
        return frozenset().union(*(s.categories for s in self._stores))

    @property
    def data_source(self) -> str:
        return "composite(" + " > ".join(s.data_source for s in self._stores) + ")"
