"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import httpx
import pytest
from rich.console import Console

from tests.helpers import FakeClock, FakeYouTube
from tunestream.config.settings import ProviderConfig
from tunestream.services.cache import ResponseCache
from tunestream.services.credentials import CredentialPool
from tunestream.services.fetch import ResilientFetchClient
from tunestream.services.provider import YouTubeProvider
from tunestream.services.recent_searches import RecentSearchesLog


@pytest.fixture
def console() -> Console:
    return Console(quiet=True)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def youtube() -> FakeYouTube:
    return FakeYouTube()


@pytest.fixture
async def http_client(youtube: FakeYouTube) -> AsyncIterator[httpx.AsyncClient]:
    client = youtube.client()
    yield client
    await client.aclose()


@pytest.fixture
def pool(console: Console) -> CredentialPool:
    return CredentialPool(["key-one-AAAA", "key-two-BBBB"], console=console)


@pytest.fixture
def fetch_client(pool: CredentialPool, http_client: httpx.AsyncClient, console: Console) -> ResilientFetchClient:
    return ResilientFetchClient(pool, client=http_client, console=console)


@pytest.fixture
def cache(clock: FakeClock, console: Console) -> ResponseCache:
    return ResponseCache(cache_duration_minutes=60, clock=clock, console=console)


@pytest.fixture
def recent_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "recent_searches.json"


@pytest.fixture
def recent_searches(recent_path: Path, console: Console) -> RecentSearchesLog:
    return RecentSearchesLog(recent_path, console=console)


@pytest.fixture
def provider(
    fetch_client: ResilientFetchClient,
    cache: ResponseCache,
    recent_searches: RecentSearchesLog,
    console: Console,
) -> YouTubeProvider:
    return YouTubeProvider(fetch_client, cache, recent_searches, config=ProviderConfig(), console=console)
