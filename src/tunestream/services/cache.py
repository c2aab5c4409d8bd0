"""In-memory, time-windowed cache for provider responses."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from rich.console import Console

from tunestream.models.video import Video

DEFAULT_CACHE_DURATION_MINUTES = 24 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60.0
TRENDING_REFRESH_HOURS = (0, 12)
TRENDING_REFRESH_WINDOW_MINUTES = 5

Clock = Callable[[], datetime]
T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """Cached payload and the moment it was recorded."""

    payload: T
    recorded_at: datetime


class CacheTable(Generic[T]):
    """Keyed entries sharing the owning cache's clock and duration."""

    def __init__(self, cache: "ResponseCache") -> None:
        self._cache = cache
        self._entries: Dict[str, CacheEntry[T]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def save(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(payload=value, recorded_at=self._cache.now())

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._cache.is_fresh(entry):
            return entry.payload
        del self._entries[key]
        return None

    def evict_expired(self) -> int:
        expired = [key for key, entry in self._entries.items() if not self._cache.is_fresh(entry)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()


class CacheSlot(Generic[T]):
    """Single unkeyed entry."""

    def __init__(self, cache: "ResponseCache") -> None:
        self._cache = cache
        self._entry: Optional[CacheEntry[T]] = None

    def __len__(self) -> int:
        return 0 if self._entry is None else 1

    def save(self, value: T) -> None:
        self._entry = CacheEntry(payload=value, recorded_at=self._cache.now())

    def get(self) -> Optional[T]:
        if self._entry is not None and self._cache.is_fresh(self._entry):
            return self._entry.payload
        self._entry = None
        return None

    def evict_expired(self) -> int:
        if self._entry is not None and not self._cache.is_fresh(self._entry):
            self._entry = None
            return 1
        return 0

    def clear(self) -> None:
        self._entry = None


def normalize_query(query: str) -> str:
    return query.strip().lower()


def _copied(videos: Optional[List[Video]]) -> Optional[List[Video]]:
    return None if videos is None else list(videos)


def should_refresh_trending(moment: datetime) -> bool:
    """Return ``True`` during the first minutes after midnight and noon."""

    return moment.hour in TRENDING_REFRESH_HOURS and moment.minute < TRENDING_REFRESH_WINDOW_MINUTES


class ResponseCache:
    """Search, video-detail and trending caches sharing one expiry duration.

    An entry is served only while ``now - recorded_at < cache_duration``; stale entries
    are dropped when read and by :meth:`cleanup`. The trending slot is additionally
    cleared by :meth:`sweep` when the sweep happens to run inside one of the twice-daily
    refresh windows.
    """

    def __init__(
        self,
        *,
        cache_duration_minutes: float = DEFAULT_CACHE_DURATION_MINUTES,
        clock: Optional[Clock] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._console = console or Console()
        self._duration = timedelta(minutes=cache_duration_minutes)
        self._search: CacheTable[List[Video]] = CacheTable(self)
        self._videos: CacheTable[Video] = CacheTable(self)
        self._trending: CacheSlot[List[Video]] = CacheSlot(self)

    @property
    def cache_duration(self) -> timedelta:
        return self._duration

    def set_cache_duration(self, minutes: float) -> None:
        """Change the expiry duration used by every later freshness check."""

        self._duration = timedelta(minutes=minutes)

    def now(self) -> datetime:
        return self._clock()

    def is_fresh(self, entry: CacheEntry[object]) -> bool:
        return self.now() - entry.recorded_at < self._duration

    # ------------------------------------------------------------------ #
    # Tables                                                             #
    # ------------------------------------------------------------------ #
    def save_search_results(self, query: str, results: List[Video]) -> None:
        self._search.save(normalize_query(query), list(results))

    def get_search_results(self, query: str) -> Optional[List[Video]]:
        return _copied(self._search.get(normalize_query(query)))

    def save_video_details(self, video_id: str, video: Video) -> None:
        self._videos.save(video_id, video)

    def get_video_details(self, video_id: str) -> Optional[Video]:
        return self._videos.get(video_id)

    def save_trending(self, videos: List[Video]) -> None:
        self._trending.save(list(videos))

    def get_trending(self) -> Optional[List[Video]]:
        return _copied(self._trending.get())

    def clear_trending(self) -> None:
        self._trending.clear()

    # ------------------------------------------------------------------ #
    # Maintenance                                                        #
    # ------------------------------------------------------------------ #
    def cleanup(self) -> int:
        """Evict every expired entry and return how many were removed."""

        return self._search.evict_expired() + self._videos.evict_expired() + self._trending.evict_expired()

    def sweep(self) -> Tuple[int, bool]:
        """Run the periodic maintenance pass.

        Returns the number of expired entries evicted and whether the trending slot was
        force-cleared for the scheduled refresh.
        """

        evicted = self.cleanup()
        refreshed = False
        if should_refresh_trending(self.now()):
            if len(self._trending):
                self._console.log("Scheduled trending refresh: clearing cached trending videos")
            self.clear_trending()
            refreshed = True
        return evicted, refreshed

    def clear(self) -> None:
        self._search.clear()
        self._videos.clear()
        self._trending.clear()

    def stats(self) -> Dict[str, int]:
        """Return the number of stored entries per table."""

        return {"search": len(self._search), "videos": len(self._videos), "trending": len(self._trending)}


class CacheSweeper:
    """Background task running :meth:`ResponseCache.sweep` at a fixed interval."""

    def __init__(
        self,
        cache: ResponseCache,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        console: Optional[Console] = None,
    ) -> None:
        self._cache = cache
        self._interval = interval_seconds
        self._console = console or Console()
        self._task: Optional[asyncio.Task[None]] = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop; repeated calls are ignored."""

        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="tunestream-cache-sweeper")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""

        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.run_once()

    def run_once(self) -> None:
        self.runs += 1
        try:
            evicted, _ = self._cache.sweep()
        except Exception as exc:  # the loop must outlive a failed pass
            self._console.log(f"[red]Cache sweep failed:[/red] {exc}")
            return
        if evicted:
            self._console.log(f"Cache sweep evicted {evicted} expired entries")


__all__ = [
    "CacheEntry",
    "CacheSlot",
    "CacheSweeper",
    "CacheTable",
    "DEFAULT_CACHE_DURATION_MINUTES",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "ResponseCache",
    "normalize_query",
    "should_refresh_trending",
]
