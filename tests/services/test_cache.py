"""Tests for the response cache and its background sweeper."""

from __future__ import annotations

import asyncio
from datetime import datetime

import pytest
from rich.console import Console

from tests.helpers import FakeClock
from tunestream.models.video import Video
from tunestream.services.cache import CacheSweeper, ResponseCache, should_refresh_trending


def make_video(video_id: str = "dQw4w9WgXcQ") -> Video:
    return Video(id=video_id, title="Never Gonna Give You Up", channel_title="Rick Astley", duration="3:33")


class TestExpiry:
    def test_entry_is_served_until_duration_elapses(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.save_video_details("dQw4w9WgXcQ", make_video())

        clock.advance(minutes=60, milliseconds=-1)
        assert cache.get_video_details("dQw4w9WgXcQ") == make_video()

        clock.advance(milliseconds=2)
        assert cache.get_video_details("dQw4w9WgXcQ") is None
        assert cache.stats()["videos"] == 0

    def test_entry_expires_exactly_at_duration(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.save_trending([make_video()])

        clock.advance(minutes=60)

        assert cache.get_trending() is None

    def test_search_keys_are_normalized(self, cache: ResponseCache) -> None:
        cache.save_search_results("  Jazz Piano ", [make_video()])

        assert cache.get_search_results("jazz piano") == [make_video()]
        assert cache.get_search_results("JAZZ PIANO") == [make_video()]
        assert cache.stats()["search"] == 1

    def test_missing_keys_return_none(self, cache: ResponseCache) -> None:
        assert cache.get_search_results("nothing") is None
        assert cache.get_video_details("nothing") is None
        assert cache.get_trending() is None

    def test_set_cache_duration_applies_to_existing_entries(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.save_search_results("rock", [make_video()])
        clock.advance(minutes=10)

        cache.set_cache_duration(5)

        assert cache.get_search_results("rock") is None

    def test_set_cache_duration_does_not_restamp_entries(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.save_search_results("rock", [make_video()])
        clock.advance(minutes=50)

        cache.set_cache_duration(120)
        clock.advance(minutes=60)
        assert cache.get_search_results("rock") == [make_video()]

        clock.advance(minutes=10)
        assert cache.get_search_results("rock") is None

    def test_saved_lists_are_copied(self, cache: ResponseCache) -> None:
        results = [make_video()]
        cache.save_search_results("pop", results)
        results.append(make_video("aaaaaaaaaaa"))

        assert len(cache.get_search_results("pop") or []) == 1

    def test_returned_lists_do_not_alias_entries(self, cache: ResponseCache) -> None:
        cache.save_search_results("pop", [make_video()])
        cache.save_trending([make_video()])

        hit = cache.get_search_results("pop") or []
        hit.clear()
        trending = cache.get_trending() or []
        trending.append(make_video("aaaaaaaaaaa"))

        assert cache.get_search_results("pop") == [make_video()]
        assert cache.get_trending() == [make_video()]


class TestCleanup:
    def test_cleanup_evicts_only_expired_entries(self, cache: ResponseCache, clock: FakeClock) -> None:
        cache.save_search_results("old", [make_video()])
        cache.save_video_details("old-video", make_video())
        cache.save_trending([make_video()])
        clock.advance(minutes=45)
        cache.save_search_results("new", [make_video()])
        clock.advance(minutes=20)

        evicted = cache.cleanup()

        assert evicted == 3
        assert cache.stats() == {"search": 1, "videos": 0, "trending": 0}

    def test_clear_empties_every_table(self, cache: ResponseCache) -> None:
        cache.save_search_results("rock", [make_video()])
        cache.save_video_details("dQw4w9WgXcQ", make_video())
        cache.save_trending([make_video()])

        cache.clear()

        assert cache.stats() == {"search": 0, "videos": 0, "trending": 0}

    def test_sweep_clears_trending_inside_refresh_window(self, console: Console) -> None:
        clock = FakeClock(datetime(2024, 5, 17, 11, 58))
        cache = ResponseCache(cache_duration_minutes=24 * 60, clock=clock, console=console)
        cache.save_trending([make_video()])
        cache.save_video_details("dQw4w9WgXcQ", make_video())

        clock.set(datetime(2024, 5, 17, 12, 3))
        evicted, refreshed = cache.sweep()

        assert (evicted, refreshed) == (0, True)
        assert cache.get_trending() is None
        assert cache.get_video_details("dQw4w9WgXcQ") is not None

    def test_sweep_outside_window_keeps_trending(self, console: Console) -> None:
        clock = FakeClock(datetime(2024, 5, 17, 12, 5))
        cache = ResponseCache(clock=clock, console=console)
        cache.save_trending([make_video()])

        _, refreshed = cache.sweep()

        assert refreshed is False
        assert cache.get_trending() == [make_video()]


@pytest.mark.parametrize(
    ("hour", "minute", "expected"),
    [
        (0, 0, True),
        (0, 4, True),
        (0, 5, False),
        (12, 0, True),
        (12, 4, True),
        (12, 5, False),
        (11, 59, False),
        (23, 59, False),
        (6, 2, False),
    ],
)
def test_trending_refresh_windows(hour: int, minute: int, expected: bool) -> None:
    assert should_refresh_trending(datetime(2024, 1, 1, hour, minute)) is expected


class TestCacheSweeper:
    async def test_runs_periodically_until_stopped(self, cache: ResponseCache, console: Console) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=0.01, console=console)

        sweeper.start()
        await asyncio.sleep(0.1)
        await sweeper.stop()
        runs = sweeper.runs
        await asyncio.sleep(0.05)

        assert runs >= 2
        assert sweeper.runs == runs
        assert not sweeper.running

    async def test_start_is_idempotent(self, cache: ResponseCache, console: Console) -> None:
        sweeper = CacheSweeper(cache, interval_seconds=60, console=console)

        sweeper.start()
        first_task = sweeper._task
        sweeper.start()

        assert sweeper._task is first_task
        await sweeper.stop()

    async def test_stop_without_start(self, cache: ResponseCache, console: Console) -> None:
        await CacheSweeper(cache, console=console).stop()

    async def test_failed_sweep_does_not_stop_the_loop(self, console: Console) -> None:
        class BrokenCache(ResponseCache):
            def sweep(self):  # type: ignore[override]
                raise RuntimeError("disk on fire")

        sweeper = CacheSweeper(BrokenCache(console=console), interval_seconds=0.01, console=console)

        sweeper.start()
        await asyncio.sleep(0.08)

        assert sweeper.running
        assert sweeper.runs >= 2
        await sweeper.stop()

    def test_run_once_evicts_expired_entries(self, cache: ResponseCache, clock: FakeClock, console: Console) -> None:
        cache.save_search_results("stale", [make_video()])
        clock.advance(hours=2)

        CacheSweeper(cache, console=console).run_once()

        assert cache.stats()["search"] == 0
