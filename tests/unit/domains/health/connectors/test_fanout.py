"""Tests for the concurrent per-category fetch."""

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest
from conftest import NOW, make_record

from hic.domains.health.connectors.fanout import FetchResult, fetch_all
from hic.domains.health.connectors.providers import InMemorySampleStore, MockSampleStore


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


SINCE = NOW - timedelta(days=7)


class FlakyStore:
    """Wraps a store and misbehaves for selected categories."""

    def __init__(self, inner, fail=(), slow=(), cancel=()):
        self.inner = inner
        self.fail = set(fail)
        self.slow = set(slow)
        self.cancel = set(cancel)
        self.calls: list[str] = []

    async def fetch(self, subject_id, category, since, until):
        self.calls.append(category)
        if category in self.fail:
            raise ConnectionError(f"{category} backend unreachable")
        if category in self.slow:
            await asyncio.sleep(5)
        if category in self.cancel:
            raise asyncio.CancelledError()
        return await self.inner.fetch(subject_id, category, since, until)

    @property
    def categories(self):
        return self.inner.categories

    @property
    def data_source(self):
        return "flaky"


class TestFetchAll:
    def test_fetches_every_served_category(self):
        result = _run(fetch_all(MockSampleStore(), "subject-1", SINCE, NOW))
        assert set(result.records) == {"heart", "sleep", "activity", "lab"}
        assert result.failures == {}
        assert result.counts["heart"] == len(result.get("heart"))

    def test_only_requested_and_served_categories(self):
        store = InMemorySampleStore([make_record("heart", days_ago=1, hrv_rmssd=40)])
        result = _run(fetch_all(store, "subject-1", SINCE, NOW, categories=("heart", "sleep")))
        assert set(result.records) == {"heart"}
        assert result.get("sleep") == []

    def test_failure_is_isolated(self):
        store = FlakyStore(MockSampleStore(), fail={"sleep"})
        result = _run(fetch_all(store, "subject-1", SINCE, NOW))
        assert result.failures == {"sleep": "ConnectionError: sleep backend unreachable"}
        assert result.get("sleep") == []
        assert result.counts["sleep"] == 0
        assert result.get("heart")
        assert result.get("activity")

    def test_timeout_is_isolated(self):
        store = FlakyStore(MockSampleStore(), slow={"lab"})
        result = _run(fetch_all(store, "subject-1", SINCE, NOW, timeout_seconds=0.05))
        assert result.failures == {"lab": "timeout after 0.05s"}
        assert result.get("heart")

    def test_fetches_run_concurrently(self):
        store = FlakyStore(MockSampleStore(), slow={"heart", "sleep", "activity", "lab"})

        async def _timed():
            loop = asyncio.get_running_loop()
            start = loop.time()
            await fetch_all(store, "subject-1", SINCE, NOW, timeout_seconds=0.1)
            return loop.time() - start

        # Four sequential timeouts would take at least 0.4s.
        assert _run(_timed()) < 0.35
        assert sorted(store.calls) == ["activity", "heart", "lab", "sleep"]

    def test_cancellation_propagates(self):
        store = FlakyStore(MockSampleStore(), cancel={"heart"})
        with pytest.raises(asyncio.CancelledError):
            _run(fetch_all(store, "subject-1", SINCE, NOW))


def test_fetch_result_defaults():
    result = FetchResult()
    assert result.get("heart") == []
    assert result.counts == {}
