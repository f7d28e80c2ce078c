"""
Unit tests for QueryCache.

Tests cover:
- Single-flight fetching
- Fresh hits, retained errors and retries
- Prefix invalidation and background refetch
- clear() discarding late results
- Subscriptions
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from sdk.bridge_sdk.cache import CacheStatus, QueryCache
from tests.helpers import drain


class TestFetch:
    """Tests for QueryCache.fetch."""

    @pytest.fixture
    def cache(self, settings):
        return QueryCache(settings)

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_call(self, cache):
        """Concurrent callers of one key trigger exactly one remote call."""
        release = asyncio.Event()
        calls = 0

        async def fetcher():
            nonlocal calls
            calls += 1
            await release.wait()
            return ["a"]

        first = asyncio.create_task(cache.fetch(("internships",), fetcher))
        second = asyncio.create_task(cache.fetch(("internships",), fetcher))
        await drain()
        assert cache.is_inflight(("internships",))
        assert cache.get(("internships",)).status is CacheStatus.LOADING

        release.set()
        assert await first == ["a"]
        assert await second == ["a"]
        assert calls == 1

    @pytest.mark.asyncio
    async def test_fresh_value_served_without_refetch(self, cache):
        fetcher = AsyncMock(return_value=[1, 2])

        assert await cache.fetch(("categoryCounts",), fetcher) == [1, 2]
        assert await cache.fetch(("categoryCounts",), fetcher) == [1, 2]

        fetcher.assert_awaited_once()
        entry = cache.get(("categoryCounts",))
        assert entry.status is CacheStatus.SUCCESS
        assert entry.has_value
        assert not entry.stale

    @pytest.mark.asyncio
    async def test_retry_disabled_fails_once_and_retains_error(self, cache):
        """With retry disabled an error is surfaced after one attempt and kept."""
        fetcher = AsyncMock(side_effect=RuntimeError("Unauthorized"))

        with pytest.raises(RuntimeError):
            await cache.fetch(("isAdmin",), fetcher, retry=False)
        with pytest.raises(RuntimeError):
            await cache.fetch(("isAdmin",), fetcher, retry=False)

        assert fetcher.await_count == 1
        entry = cache.get(("isAdmin",))
        assert entry.status is CacheStatus.ERROR
        assert str(entry.error) == "Unauthorized"
        assert entry.settled

    @pytest.mark.asyncio
    async def test_force_retriggers_errored_entry(self, cache):
        fetcher = AsyncMock(side_effect=[RuntimeError("down"), True])

        with pytest.raises(RuntimeError):
            await cache.fetch(("isAdmin",), fetcher, retry=False)
        assert await cache.refetch(("isAdmin",)) is True
        assert cache.get(("isAdmin",)).error is None

    @pytest.mark.asyncio
    async def test_retry_enabled_retries_with_backoff(self, cache):
        """Transient failures are retried up to query_retries times."""
        fetcher = AsyncMock(side_effect=[RuntimeError("1"), RuntimeError("2"), ["ok"]])

        assert await cache.fetch(("internships",), fetcher) == ["ok"]
        assert fetcher.await_count == 3

    @pytest.mark.asyncio
    async def test_retry_gives_up_after_limit(self, cache):
        fetcher = AsyncMock(side_effect=RuntimeError("down"))

        with pytest.raises(RuntimeError):
            await cache.fetch(("internships",), fetcher)
        # One attempt plus query_retries (2)
        assert fetcher.await_count == 3

    @pytest.mark.asyncio
    async def test_errored_entry_with_retry_refetches_on_next_read(self, cache):
        """A failed public read is not stuck in error once retries run out."""
        down = RuntimeError("down")
        fetcher = AsyncMock(side_effect=[down, down, down, ["ok"]])

        with pytest.raises(RuntimeError):
            await cache.fetch(("categoryCounts",), fetcher)
        assert cache.get(("categoryCounts",)).status is CacheStatus.ERROR

        assert await cache.fetch(("categoryCounts",), fetcher) == ["ok"]
        assert fetcher.await_count == 4
        assert cache.get(("categoryCounts",)).error is None

    @pytest.mark.asyncio
    async def test_refetch_without_registration_raises(self, cache):
        with pytest.raises(KeyError):
            await cache.refetch(("unknown",))

    @pytest.mark.asyncio
    async def test_get_returns_snapshot(self, cache):
        await cache.fetch(("k",), AsyncMock(return_value=1))

        snapshot = cache.get(("k",))
        snapshot.value = 99

        assert cache.get(("k",)).value == 1


class TestInvalidate:
    """Tests for prefix invalidation."""

    @pytest.fixture
    def cache(self, settings):
        return QueryCache(settings)

    @pytest.mark.asyncio
    async def test_prefix_covers_parameterized_keys(self, cache):
        await cache.fetch(("internships",), AsyncMock(return_value=[]))
        await cache.fetch(("internships", "category", "Tech"), AsyncMock(return_value=[]))
        await cache.fetch(("currentUserProfile",), AsyncMock(return_value=None))

        stale = cache.invalidate(("internships",))

        assert set(stale) == {("internships",), ("internships", "category", "Tech")}
        assert cache.get(("internships", "category", "Tech")).stale
        assert not cache.get(("currentUserProfile",)).stale

    @pytest.mark.asyncio
    async def test_invalidate_keeps_value_until_refetch(self, cache):
        fetcher = AsyncMock(side_effect=[["old"], ["new"]])
        await cache.fetch(("internships",), fetcher)

        cache.invalidate(("internships",))
        entry = cache.get(("internships",))
        assert entry.value == ["old"]
        assert entry.stale

        assert await cache.fetch(("internships",), fetcher) == ["new"]
        assert not cache.get(("internships",)).stale

    @pytest.mark.asyncio
    async def test_subscribed_entry_refetches_in_background(self, cache):
        fetcher = AsyncMock(side_effect=[["old"], ["new"]])
        await cache.fetch(("internships",), fetcher)
        seen = []
        cache.subscribe(("internships",), lambda entry: seen.append(entry.status))

        cache.invalidate(("internships",))
        await drain()

        assert fetcher.await_count == 2
        assert cache.get(("internships",)).value == ["new"]
        assert seen[-1] is CacheStatus.SUCCESS

    @pytest.mark.asyncio
    async def test_unsubscribed_entry_waits_for_next_read(self, cache):
        fetcher = AsyncMock(return_value=[])
        await cache.fetch(("internships",), fetcher)

        cache.invalidate(("internships",))
        await drain()

        fetcher.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalidation_during_fetch_leaves_entry_stale(self, cache):
        """A result that may predate the write is not treated as fresh."""
        release = asyncio.Event()

        async def fetcher():
            await release.wait()
            return ["before-write"]

        task = asyncio.create_task(cache.fetch(("internships",), fetcher))
        await drain()
        cache.invalidate(("internships",))
        release.set()
        await task

        assert cache.get(("internships",)).stale


class TestClear:
    """Tests for QueryCache.clear."""

    @pytest.fixture
    def cache(self, settings):
        return QueryCache(settings)

    @pytest.mark.asyncio
    async def test_clear_drops_all_entries(self, cache):
        await cache.fetch(("a",), AsyncMock(return_value=1))
        await cache.fetch(("b",), AsyncMock(return_value=2))

        cache.clear()

        assert cache.entries() == {}

    @pytest.mark.asyncio
    async def test_late_result_after_clear_is_not_written(self, cache):
        release = asyncio.Event()

        async def fetcher():
            await release.wait()
            return "previous identity's data"

        task = asyncio.create_task(cache.fetch(("currentUserProfile",), fetcher))
        await drain()
        cache.clear()
        release.set()

        assert await task == "previous identity's data"
        assert cache.get(("currentUserProfile",)) is None

    @pytest.mark.asyncio
    async def test_subscribers_told_entry_went_idle(self, cache):
        await cache.fetch(("a",), AsyncMock(return_value=1))
        seen = []
        cache.subscribe(("a",), seen.append)

        cache.clear()

        assert seen[-1].status is CacheStatus.IDLE
        assert not seen[-1].has_value


class TestSubscription:
    """Tests for cache subscriptions."""

    @pytest.mark.asyncio
    async def test_cancelled_subscription_not_notified(self, settings):
        cache = QueryCache(settings)
        seen = []

        with cache.subscribe(("a",), seen.append):
            await cache.fetch(("a",), AsyncMock(return_value=1))
        count = len(seen)
        await cache.fetch(("a",), AsyncMock(return_value=2), force=True)

        assert count > 0
        assert len(seen) == count
