"""
wiwebb_data.cache.query_cache

Keyed request cache with staleness windows.

Responsibilities:
- Serve fresh entries from memory, serve stale entries while refetching in the
  background, and de-duplicate concurrent fetches of the same key.
- Retry failed fetches once (never client errors) with capped exponential backoff.
- Invalidate by key prefix, purge everything on sign-out, and run auto-refetch loops.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any

from wiwebb_data.api.errors import ApiError, is_client_error, normalize_error
from wiwebb_data.api.query_keys import QueryKey, matches
from wiwebb_data.observability.logging import get_logger

log = get_logger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
ErrorHook = Callable[[QueryKey, ApiError], None]
MutationErrorHook = Callable[[ApiError], None]


@dataclass(frozen=True, slots=True)
class QueryPolicy:
    stale_time: float = 300.0
    refetch_interval: float | None = None
    retry: int = 1
    retry_base_delay_s: float = 1.0
    max_retry_delay_s: float = 30.0

    def retry_delay(self, attempt: int) -> float:
        return min(self.retry_base_delay_s * (2**attempt), self.max_retry_delay_s)


@dataclass(slots=True)
class CacheEntry:
    policy: QueryPolicy
    fetcher: Fetcher
    value: Any = None
    has_value: bool = False
    updated_at: float = 0.0
    invalidated: bool = False
    inflight: asyncio.Task[Any] | None = None
    poller: asyncio.Task[None] | None = None

    def is_stale(self, now: float) -> bool:
        return self.invalidated or now - self.updated_at >= self.policy.stale_time


@dataclass(frozen=True, slots=True)
class Peek:
    hit: bool
    value: Any = None
    stale: bool = False


class QueryCache:
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_error: ErrorHook | None = None,
        on_mutation_error: MutationErrorHook | None = None,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._on_error = on_error
        self._on_mutation_error = on_mutation_error
        self._entries: dict[QueryKey, CacheEntry] = {}
        self._tasks: set[asyncio.Task[Any]] = set()
        # Bumped by clear(); fetches started under an older generation never write back.
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    # --- reads -------------------------------------------------------------------------

    async def fetch(self, key: QueryKey, fetcher: Fetcher, policy: QueryPolicy | None = None) -> Any:
        policy = policy or QueryPolicy()
        entry = self._entries.get(key)
        if entry is not None and entry.has_value:
            entry.fetcher = fetcher
            entry.policy = policy
            if entry.is_stale(self._clock()):
                self._start(key, entry)
            return entry.value

        if entry is None:
            entry = CacheEntry(policy=policy, fetcher=fetcher)
            self._entries[key] = entry
        # Concurrent callers share the same task; shielding keeps one caller's
        # cancellation from failing the others.
        return await asyncio.shield(self._start(key, entry))

    def peek(self, key: QueryKey) -> Peek:
        entry = self._entries.get(key)
        if entry is None or not entry.has_value:
            return Peek(hit=False)
        return Peek(hit=True, value=entry.value, stale=entry.is_stale(self._clock()))

    # --- invalidation ------------------------------------------------------------------

    def invalidate(self, prefix: QueryKey, *, refetch: bool = True) -> int:
        count = 0
        for key, entry in list(self._entries.items()):
            if not matches(key, prefix):
                continue
            entry.invalidated = True
            count += 1
            if refetch and entry.has_value:
                self._start(key, entry)
        if count:
            log.debug("query_cache.invalidated", prefix=repr(prefix), entries=count)
        return count

    def remove(self, prefix: QueryKey) -> int:
        doomed = [key for key in self._entries if matches(key, prefix)]
        for key in doomed:
            entry = self._entries.pop(key)
            if entry.poller is not None:
                entry.poller.cancel()
        return len(doomed)

    async def mutate(self, fn: Callable[[], Awaitable[Any]], *, invalidates: Iterable[QueryKey] = ()) -> Any:
        """Run a mutation; on success invalidate the given key families before returning."""

        try:
            result = await fn()
        except ApiError as e:
            if self._on_mutation_error is not None:
                self._on_mutation_error(e)
            raise
        for prefix in invalidates:
            self.invalidate(prefix)
        return result

    def clear(self) -> None:
        """
        Drop every entry and stop auto-refetch loops. Synchronous: after this returns,
        every key is a miss, including keys whose fetch is still in flight.
        """

        self._generation += 1
        for entry in self._entries.values():
            if entry.poller is not None:
                entry.poller.cancel()
        dropped = len(self._entries)
        self._entries.clear()
        log.info("query_cache.cleared", entries=dropped, generation=self._generation)

    # --- lifecycle ---------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for every in-flight fetch to settle (pollers are left running)."""

        pending = [
            e.inflight for e in self._entries.values() if e.inflight is not None and not e.inflight.done()
        ]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        self.clear()
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # --- internals ---------------------------------------------------------------------

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._reap)
        return task

    def _reap(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        # Retrieve the exception so background failures are never reported as unhandled;
        # awaiting callers still receive it.
        error = task.exception()
        if error is not None:
            log.debug("query_cache.task_failed", error=repr(error))

    def _start(self, key: QueryKey, entry: CacheEntry) -> asyncio.Task[Any]:
        if entry.inflight is not None and not entry.inflight.done():
            return entry.inflight
        task = self._spawn(self._run(key, entry, self._generation))
        entry.inflight = task
        return task

    async def _run(self, key: QueryKey, entry: CacheEntry, generation: int) -> Any:
        try:
            value = await self._fetch_with_retry(entry.fetcher, entry.policy)
        except ApiError as e:
            if self._on_error is not None and generation == self._generation:
                self._on_error(key, e)
            raise
        if generation == self._generation and self._entries.get(key) is entry:
            entry.value = value
            entry.has_value = True
            entry.updated_at = self._clock()
            entry.invalidated = False
            if entry.policy.refetch_interval and entry.poller is None:
                entry.poller = self._spawn(self._poll(key, entry, generation))
        else:
            log.debug("query_cache.stale_write_dropped", query_key=repr(key))
        return value

    async def _fetch_with_retry(self, fetcher: Fetcher, policy: QueryPolicy) -> Any:
        attempt = 0
        while True:
            try:
                return await fetcher()
            except Exception as exc:  # noqa: BLE001
                error = normalize_error(exc)
                if attempt >= policy.retry or is_client_error(error):
                    if error is exc:
                        raise
                    raise error from exc
                delay = policy.retry_delay(attempt)
                attempt += 1
                log.debug("query_cache.retry", attempt=attempt, delay_s=delay, kind=str(error.kind))
                await self._sleep(delay)

    async def _poll(self, key: QueryKey, entry: CacheEntry, generation: int) -> None:
        interval = entry.policy.refetch_interval
        if not interval:
            return
        while True:
            await self._sleep(interval)
            if generation != self._generation or self._entries.get(key) is not entry:
                return
            try:
                await asyncio.shield(self._start(key, entry))
            except ApiError as e:
                # The previous value stays in place; the next tick tries again.
                log.warning("query_cache.refetch_failed", query_key=repr(key), kind=str(e.kind))


# --- Module Notes -----------------------------------------------------------
# Superseded fetches are not cancelled. A fetch that finishes after `clear()` still
# resolves for whoever awaited it, but its value is never written into the cache.
