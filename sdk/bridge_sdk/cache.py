"""
Keyed cache of remote-read results.

This module provides the only shared mutable state in the SDK:
- CacheEntry: status/value/error/staleness for one key
- QueryCache: single-flight fetching, invalidation and subscriber notification

Keys are tuples: (resource, *parameters), e.g. ("internships", "category", "Tech").
Invalidation matches by key prefix, so ("internships",) covers every
per-category list as well.

Invariants:
    - At most one outstanding fetch per key; concurrent callers share it
    - Entry values change only through fetch results; staleness only through invalidate()
    - Observers are notified synchronously after each entry write
    - Results that land after clear() are never written back
    - Entries fetched with retry disabled stay in error until re-triggered;
      errored entries with retry enabled are refetched on the next read

How to change safely:
    - Keep clear() synchronous; sign-out relies on it
    - Never hand out live CacheEntry objects; callers get snapshots
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .config import Settings

logger = logging.getLogger(__name__)

CacheKey = tuple[Any, ...]
Fetcher = Callable[[], Awaitable[Any]]


class CacheStatus(Enum):
    """Lifecycle of a cache entry."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class CacheEntry:
    """State of one cached remote read.

    Attributes:
        key: Cache key
        status: Current lifecycle status
        value: Last successfully fetched value (kept while refetching)
        error: Last fetch error, retained for inspection
        stale: Marked by invalidation, cleared by the next successful fetch
        has_value: Whether value holds a fetched result
        updated_at: Time of the last settled write (epoch seconds)
    """

    key: CacheKey
    status: CacheStatus = CacheStatus.IDLE
    value: Any = None
    error: BaseException | None = None
    stale: bool = False
    has_value: bool = False
    updated_at: float = 0.0
    version: int = field(default=0, repr=False)

    @property
    def settled(self) -> bool:
        """Whether a first result (value or error) is available."""
        return self.has_value or self.error is not None

    @property
    def is_fetching(self) -> bool:
        return self.status is CacheStatus.LOADING


Listener = Callable[[CacheEntry], None]


class Subscription:
    """Observer registration for one key.

    Once cancelled, the listener is never invoked again, so results that
    arrive after a view goes away are dropped instead of applied.
    """

    def __init__(self, cache: QueryCache, key: CacheKey, listener: Listener) -> None:
        self._cache = cache
        self.key = key
        self.listener = listener
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._cache._unsubscribe(self)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *args: Any) -> None:
        self.cancel()


@dataclass(frozen=True)
class _Registration:
    fetcher: Fetcher
    retry: bool


class QueryCache:
    """Single-flight keyed cache with publish/subscribe notification.

    Example:
        >>> cache = QueryCache()
        >>> items = await cache.fetch(("internships",), remote.get_internships)
        >>> cache.invalidate(("internships",))
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._inflight: dict[CacheKey, asyncio.Task[tuple[bool, Any]]] = {}
        self._registrations: dict[CacheKey, _Registration] = {}
        self._subscriptions: dict[CacheKey, list[Subscription]] = {}
        self._background: set[asyncio.Task[Any]] = set()
        self._generation = 0

    # ── Reads ────────────────────────────────────────────────────────────

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Snapshot of the entry for key, or None if never fetched."""
        entry = self._entries.get(key)
        return replace(entry) if entry is not None else None

    def entries(self) -> dict[CacheKey, CacheEntry]:
        """Snapshots of all entries."""
        return {key: replace(entry) for key, entry in self._entries.items()}

    def is_inflight(self, key: CacheKey) -> bool:
        return key in self._inflight

    # ── Fetching ─────────────────────────────────────────────────────────

    async def fetch(
        self,
        key: CacheKey,
        fetcher: Fetcher,
        *,
        retry: bool = True,
        force: bool = False,
    ) -> Any:
        """Return the cached value for key, fetching it when needed.

        A fresh successful entry is returned without a remote call. A fetch
        already in flight for the same key is joined instead of duplicated.
        An entry in error is refetched when retry is enabled. With retry
        disabled the retained error is raised instead, until force=True or an
        invalidation re-triggers the read.

        Args:
            key: Cache key
            fetcher: Zero-argument coroutine function performing the remote read
            retry: Whether failed fetches are retried with backoff
            force: Refetch even if a fresh value or a retained error exists

        Returns:
            The fetched value

        Raises:
            Exception: Whatever the fetcher raised on its final attempt
        """
        self._registrations[key] = _Registration(fetcher, retry)

        task = self._inflight.get(key)
        if task is None:
            entry = self._entries.get(key)
            if entry is not None and not entry.stale and not force:
                if entry.status is CacheStatus.SUCCESS:
                    return entry.value
                if entry.status is CacheStatus.ERROR and entry.error is not None and not retry:
                    raise entry.error
            task = self._start(key)

        ok, result = await asyncio.shield(task)
        if not ok:
            raise result
        return result

    async def refetch(self, key: CacheKey) -> Any:
        """Explicitly re-trigger the registered fetch for key."""
        registration = self._registrations.get(key)
        if registration is None:
            raise KeyError(f"No fetcher registered for {key!r}")
        return await self.fetch(key, registration.fetcher, retry=registration.retry, force=True)

    def _start(self, key: CacheKey) -> asyncio.Task[tuple[bool, Any]]:
        registration = self._registrations[key]
        entry = self._entries.setdefault(key, CacheEntry(key))
        self._write(key, status=CacheStatus.LOADING)
        task = asyncio.get_running_loop().create_task(
            self._run(key, registration, self._generation, entry.version)
        )
        self._inflight[key] = task
        task.add_done_callback(lambda t, k=key: self._finish(k, t))
        return task

    def _finish(self, key: CacheKey, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        entry = self._entries.get(key)
        # Invalidated while in flight: the result may predate the write
        if entry is not None and entry.stale and self._has_listeners(key):
            self._spawn(key)

    async def _run(
        self,
        key: CacheKey,
        registration: _Registration,
        generation: int,
        version: int,
    ) -> tuple[bool, Any]:
        attempts = 1 + (self._settings.query_retries if registration.retry else 0)
        error: Exception | None = None

        for attempt in range(attempts):
            try:
                value = await registration.fetcher()
            except Exception as e:
                error = e
                if attempt + 1 < attempts:
                    delay = self._settings.retry_delay(attempt)
                    logger.debug(f"Fetch {key!r} failed ({e}), retrying in {delay:.2f}s")
                    await asyncio.sleep(delay)
                    if generation != self._generation:
                        break
                    continue
                logger.warning(f"Fetch {key!r} failed: {e}")
                break
            else:
                if generation == self._generation:
                    self._write(
                        key,
                        status=CacheStatus.SUCCESS,
                        value=value,
                        has_value=True,
                        error=None,
                        stale=self._entries[key].version != version,
                        updated_at=time.time(),
                    )
                else:
                    logger.debug(f"Discarding result for {key!r}: cache was cleared")
                return True, value

        assert error is not None
        if generation == self._generation:
            self._write(
                key,
                status=CacheStatus.ERROR,
                error=error,
                stale=self._entries[key].version != version,
                updated_at=time.time(),
            )
        else:
            logger.debug(f"Discarding error for {key!r}: cache was cleared")
        return False, error

    def _spawn(self, key: CacheKey) -> None:
        """Start a background refetch if a loop is running."""
        if key in self._inflight or key not in self._registrations:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return
        task = self._start(key)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ── Invalidation ─────────────────────────────────────────────────────

    def invalidate(self, prefix: CacheKey) -> list[CacheKey]:
        """Mark every entry whose key starts with prefix as stale.

        Entries with active subscribers are refetched in the background.
        Values are never modified in place.

        Returns:
            Keys that were marked stale
        """
        matched = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in matched:
            entry = self._entries[key]
            self._write(key, stale=True, version=entry.version + 1)
            if self._has_listeners(key):
                self._spawn(key)
        if matched:
            logger.debug(f"Invalidated {len(matched)} entries under {prefix!r}")
        return matched

    def clear(self) -> None:
        """Drop every entry synchronously.

        In-flight fetches keep running but their results are discarded.
        Subscribers stay registered and are told their entry went idle.
        """
        self._generation += 1
        keys = list(self._entries)
        self._entries.clear()
        self._inflight.clear()
        self._registrations.clear()
        logger.debug(f"Cache cleared ({len(keys)} entries)")
        for key in keys:
            self._notify(CacheEntry(key))

    # ── Subscription ─────────────────────────────────────────────────────

    def subscribe(self, key: CacheKey, listener: Listener) -> Subscription:
        """Notify listener with an entry snapshot after every write to key."""
        subscription = Subscription(self, key, listener)
        self._subscriptions.setdefault(key, []).append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.key, [])
        if subscription in subs:
            subs.remove(subscription)
        if not subs:
            self._subscriptions.pop(subscription.key, None)

    def _has_listeners(self, key: CacheKey) -> bool:
        return any(sub.active for sub in self._subscriptions.get(key, ()))

    # ── Internal write path ──────────────────────────────────────────────

    def _write(self, key: CacheKey, **changes: Any) -> None:
        entry = self._entries[key]
        for name, value in changes.items():
            setattr(entry, name, value)
        self._notify(entry)

    def _notify(self, entry: CacheEntry) -> None:
        for sub in list(self._subscriptions.get(entry.key, ())):
            if sub.active:
                sub.listener(replace(entry))
