"""Concurrent per-category fetch with partial-failure collection."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from hic.domains.health.connectors import SampleStoreAdapter
from hic.domains.health.domain_logic.models import CATEGORIES, MeasurementRecord

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0


@dataclass
class FetchResult:
    """Records per category plus the categories that failed to load.

    A failed or unrequested category reads as an empty list.
    """

    records: dict[str, list[MeasurementRecord]] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    def get(self, category: str) -> list[MeasurementRecord]:
        return self.records.get(category, [])

    @property
    def counts(self) -> dict[str, int]:
        return {c: len(r) for c, r in self.records.items()}


async def fetch_all(
    store: SampleStoreAdapter,
    subject_id: str,
    since: datetime,
    until: datetime,
    categories: Iterable[str] = CATEGORIES,
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT,
) -> FetchResult:
    """Fetch every requested category concurrently and join the results.

    Each fetch runs under its own timeout. A failing category never aborts
    the others: its error is logged, recorded in ``failures``, and the
    category is treated as empty.
    """
    wanted = [c for c in categories if c in store.categories]
    outcomes = await asyncio.gather(
        *(
            asyncio.wait_for(
                store.fetch(subject_id, category, since, until), timeout=timeout_seconds
            )
            for category in wanted
        ),
        return_exceptions=True,
    )

    result = FetchResult()
    for category, outcome in zip(wanted, outcomes):
        if isinstance(outcome, asyncio.TimeoutError):
            logger.warning(
                "Fetch of %s for %s timed out after %.1fs", category, subject_id, timeout_seconds
            )
            result.failures[category] = f"timeout after {timeout_seconds:g}s"
            result.records[category] = []
        elif isinstance(outcome, Exception):
            logger.error(
                "Fetch of %s for %s failed", category, subject_id, exc_info=outcome
            )
            result.failures[category] = f"{type(outcome).__name__}: {outcome}"
            result.records[category] = []
        elif isinstance(outcome, BaseException):
            # Cancellation and interpreter exits must propagate.
            raise outcome
        else:
            result.records[category] = list(outcome)

    logger.info(
        "Fetched %s for %s (%d failed)",
        result.counts,
        subject_id,
        len(result.failures),
    )
    return result
