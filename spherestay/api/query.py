"""Cached, de-duplicated GET requests with retry and stale/cache time policy."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from spherestay.api.client import ApiClient, format_query_params, redact
from spherestay.api.errors import ApiError

logger = logging.getLogger(__name__)

DEFAULT_STALE_TIME = 5 * 60
DEFAULT_CACHE_TIME = 10 * 60
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 1.0

QueryKey = tuple[str, tuple[tuple[str, str], ...]]


def query_key(endpoint: str, params: dict | None = None) -> QueryKey:
    """Build an order-independent cache key for a request."""
    return endpoint, tuple(sorted(format_query_params(params).items()))


@dataclass
class QueryResult:
    """Snapshot of a cached query."""

    data: Any = None
    error: ApiError | None = None
    updated_at: float | None = None
    is_stale: bool = True
    is_loading: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.updated_at is not None


@dataclass
class _Entry:
    last_used: float
    cache_time: float
    data: Any = None
    error: ApiError | None = None
    updated_at: float | None = None
    task: asyncio.Task | None = None
    waiters: int = 0

    def snapshot(self, now: float, stale_time: float) -> QueryResult:
        is_stale = self.updated_at is None or now - self.updated_at >= stale_time
        return QueryResult(
            data=self.data,
            error=self.error,
            updated_at=self.updated_at,
            is_stale=is_stale,
            is_loading=self.task is not None,
        )


@dataclass
class QueryCache:
    """In-process query cache keyed by (endpoint, params).

    A fresh entry is answered from memory. A stale or failed one is fetched
    again, and concurrent callers for the same key share a single request.
    A failed refetch keeps the last good data next to the error.
    """

    client: ApiClient
    stale_time: float = DEFAULT_STALE_TIME
    cache_time: float = DEFAULT_CACHE_TIME
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    clock: Callable[[], float] = time.monotonic
    _entries: dict[QueryKey, _Entry] = field(default_factory=dict, init=False, repr=False)

    def should_retry(self, failure_count: int, error: ApiError) -> bool:
        """Retry failures up to `max_retries` times. A 404 is terminal."""
        return error.retryable and failure_count <= self.max_retries

    async def fetch(
        self,
        endpoint: str,
        params: dict | None = None,
        stale_time: float | None = None,
        cache_time: float | None = None,
    ) -> QueryResult:
        """Return the cached result for a GET, fetching it if needed.

        Cancelling the awaiting task cancels the underlying request when no
        other caller is waiting on it; a cancelled request never populates
        the cache.
        """
        stale_time = self.stale_time if stale_time is None else stale_time
        cache_time = self.cache_time if cache_time is None else cache_time
        key = query_key(endpoint, params)
        now = self.clock()

        entry = self._entries.get(key)
        if entry is None:
            entry = _Entry(last_used=now, cache_time=cache_time)
            self._entries[key] = entry
        entry.last_used = now
        entry.cache_time = cache_time

        if entry.error is None and entry.updated_at is not None and now - entry.updated_at < stale_time:
            return entry.snapshot(now, stale_time)

        if entry.task is None:
            entry.task = asyncio.ensure_future(self._run(entry, endpoint, params))
        task = entry.task

        entry.waiters += 1
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if entry.waiters == 1 and not task.done():
                task.cancel()
            raise
        finally:
            entry.waiters -= 1

        return entry.snapshot(self.clock(), stale_time)

    def peek(self, endpoint: str, params: dict | None = None) -> QueryResult | None:
        """Return the cached result without fetching, or None if absent."""
        entry = self._entries.get(query_key(endpoint, params))
        if entry is None:
            return None
        return entry.snapshot(self.clock(), self.stale_time)

    async def _run(self, entry: _Entry, endpoint: str, params: dict | None):
        try:
            data = await self._fetch_with_retry(endpoint, params)
        except ApiError as e:
            entry.error = e
        else:
            entry.data = data
            entry.error = None
            entry.updated_at = self.clock()
        finally:
            entry.task = None

    async def _fetch_with_retry(self, endpoint: str, params: dict | None) -> Any:
        failure_count = 0
        while True:
            logger.info(f"Requesting {self.client.base_url}{endpoint} params={redact(params or {})}")
            try:
                return await self.client.get(endpoint, params=params)
            except ApiError as e:
                failure_count += 1
                if not self.should_retry(failure_count, e):
                    logger.error(
                        f"Query failed for {endpoint}: {e.kind.value} "
                        f"(status={e.status}, attempts={failure_count})"
                    )
                    raise
                logger.warning(
                    f"Retrying {endpoint} after {e.kind.value} error "
                    f"({failure_count}/{self.max_retries})"
                )
                await asyncio.sleep(self.retry_delay)

    def invalidate(self, endpoint: str | None = None) -> int:
        """Drop cached entries for an endpoint, or all entries.

        Returns the number of entries removed.
        """
        keys = [k for k in self._entries if endpoint is None or k[0] == endpoint]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def prune(self) -> int:
        """Evict idle entries unused for longer than their cache time."""
        now = self.clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.task is None and entry.waiters == 0 and now - entry.last_used > entry.cache_time
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Pruned {len(expired)} idle query cache entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
