from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, Generic, Hashable, Optional, Set, TypeVar

from src.app.domain.models import CacheEntry

log = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL = timedelta(days=7)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class RecordCache(Generic[T]):
    """
    Process-local cache of fully assembled records keyed by id.

    Entries older than the TTL are reported as missing but stay in the map
    until the next set() for the same key. prefetch() loads a key in the
    background and never runs two loads of the same key at once. A load that
    finishes after the key was set or invalidated is discarded.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _now_utc,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[T]] = {}
        self._in_flight: Set[Hashable] = set()
        self._tasks: Set[asyncio.Task[None]] = set()
        # write counter; a prefetch only stores its result if the key was
        # not written after it started
        self._version = 0
        self._written: Dict[Hashable, int] = {}
        self._cleared_at = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self.ttl:
            log.debug("record_cache.stale key=%s", key)
            return None
        return entry.data

    def _mark_written(self, key: Hashable) -> None:
        self._version += 1
        self._written[key] = self._version

    def _written_since(self, key: Hashable, version: int) -> bool:
        return self._written.get(key, self._cleared_at) > version

    def set(self, key: Hashable, value: T) -> None:
        self._mark_written(key)
        self._entries[key] = CacheEntry(data=value, timestamp=self._clock())

    def invalidate(self, key: Hashable) -> None:
        self._mark_written(key)
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._version += 1
        self._cleared_at = self._version
        self._written.clear()
        self._entries.clear()

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    def prefetch(self, key: Hashable, fetch_fn: Callable[[], Awaitable[T]]) -> None:
        if key in self._in_flight:
            log.debug("record_cache.prefetch_skipped key=%s", key)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warning("record_cache.prefetch_without_loop key=%s", key)
            return

        self._in_flight.add(key)
        task = loop.create_task(self._run_prefetch(key, fetch_fn, self._version), name=f"prefetch-{key}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_prefetch(
        self, key: Hashable, fetch_fn: Callable[[], Awaitable[T]], started: int
    ) -> None:
        try:
            value = await fetch_fn()
            if self._written_since(key, started):
                log.debug("record_cache.prefetch_superseded key=%s", key)
                return
            self.set(key, value)
            log.debug("record_cache.prefetched key=%s", key)
        except Exception as exc:
            log.warning("record_cache.prefetch_failed key=%s error=%s", key, exc)
        finally:
            self._in_flight.discard(key)

    async def drain(self) -> None:
        """Wait for every prefetch started so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
