"""
Stale-while-revalidate cache for upstream calls.

Every live upstream request goes through SWRCache.get(). Payloads are
stored as JSON in the cache table, so a restart keeps the last known
good value. Two refresh policies are supported:

  - "blocking": a stale or missing entry is refreshed inline; if the
    fetch fails the stale value (or None) is returned instead.
  - "background": a missing entry is fetched inline to seed the cache;
    a stale entry is returned immediately while a detached task
    refreshes it.

A failed fetch never removes an existing entry, and a cold key whose
fetch fails resolves to None rather than raising.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from status_history.store import IncidentStore

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Awaitable[Any]]

BLOCKING = "blocking"
BACKGROUND = "background"


def _now_ms() -> int:
    return int(time.time() * 1000)


class SWRCache:
    """
    Keyed cache fronting asynchronous fetch functions.

    Attributes:
        store: Store holding the cache table.
        ttl: Freshness window in seconds.
        policy: "blocking" or "background".
    """

    def __init__(
        self,
        store: IncidentStore,
        ttl: float = 60.0,
        policy: str = BLOCKING,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if policy not in (BLOCKING, BACKGROUND):
            raise ValueError(f"unknown cache policy: {policy!r}")
        self.store = store
        self.ttl = ttl
        self.policy = policy
        self._clock = clock

        # key -> in-flight background refresh
        self._refreshing: Dict[str, asyncio.Task] = {}
        # strong references so detached tasks are not collected mid-flight
        self._tasks: Set[asyncio.Task] = set()

    async def get(self, key: str, fetch_fn: FetchFn) -> Optional[Any]:
        """Return the best available value for key, or None if there is none."""
        entry = self.store.get_cache_entry(key)
        stale: Optional[Any] = None

        if entry is not None:
            value, fetched_at = entry
            stale = json.loads(value)
            if self._clock() - fetched_at < self.ttl * 1000:
                logger.debug("Cache hit for %s", key)
                return stale

            if self.policy == BACKGROUND:
                self._spawn_refresh(key, fetch_fn)
                return stale

        return await self._refresh(key, fetch_fn, fallback=stale)

    async def _refresh(self, key: str, fetch_fn: FetchFn, fallback: Optional[Any]) -> Optional[Any]:
        """Fetch, persist and return fresh data; return fallback on fetch failure."""
        try:
            data = await fetch_fn()
        except Exception as exc:
            if fallback is None:
                logger.warning("Fetch for %s failed and nothing is cached: %s", key, exc)
            else:
                logger.warning("Fetch for %s failed, serving stale data: %s", key, exc)
            return fallback

        self.store.put_cache_entry(key, json.dumps(data), self._clock())
        return data

    def _spawn_refresh(self, key: str, fetch_fn: FetchFn) -> None:
        """Start a detached refresh for key unless one is already running."""
        running = self._refreshing.get(key)
        if running is not None and not running.done():
            return

        task = asyncio.create_task(self._background_refresh(key, fetch_fn), name=f"refresh-{key}")
        self._refreshing[key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_refresh(self, key: str, fetch_fn: FetchFn) -> None:
        try:
            await self._refresh(key, fetch_fn, fallback=None)
        except Exception:
            logger.exception("Background refresh for %s failed", key)
        finally:
            if self._refreshing.get(key) is asyncio.current_task():
                del self._refreshing[key]

    async def drain(self) -> None:
        """Wait for all pending background refreshes to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
