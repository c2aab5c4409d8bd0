"""Process-wide wiring of the provider core.

:func:`create_backend` builds exactly one credential pool, fetch client, response
cache, recent searches log and provider adapter, and hands them to the caller as a
:class:`ProviderBackend`. The cache sweeper runs while the backend is open and is
cancelled, together with the HTTP client, on shutdown.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import httpx
from rich.console import Console

from tunestream.config.settings import Settings, get_settings
from tunestream.services import SupportsAclose
from tunestream.services.cache import CacheSweeper, Clock, ResponseCache
from tunestream.services.credentials import CredentialPool
from tunestream.services.fetch import ResilientFetchClient
from tunestream.services.provider import YouTubeProvider
from tunestream.services.recent_searches import RecentSearchesLog


class ProviderBackend:
    """Handle on the single set of provider-core services used by the route layer."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        console: Optional[Console] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        recent_searches: Optional[RecentSearchesLog] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.console = console or Console()

        self.pool = CredentialPool(self.settings.api_keys(), console=self.console)
        self.fetch_client = ResilientFetchClient(
            self.pool,
            client=http_client,
            timeout=self.settings.request_timeout_seconds,
            console=self.console,
        )
        self.cache = ResponseCache(
            cache_duration_minutes=self.settings.cache_duration_minutes,
            clock=clock,
            console=self.console,
        )
        self.recent_searches = recent_searches or RecentSearchesLog(
            self.settings.recent_searches_path, console=self.console
        )
        self.provider = YouTubeProvider(
            self.fetch_client,
            self.cache,
            self.recent_searches,
            config=self.settings.provider,
            console=self.console,
        )
        self.sweeper = CacheSweeper(
            self.cache,
            interval_seconds=self.settings.cache_sweep_interval_seconds,
            console=self.console,
        )
        self._closables: List[SupportsAclose] = [self.fetch_client]

    async def start(self) -> None:
        """Start background maintenance; requires a running event loop."""

        self.sweeper.start()

    async def aclose(self) -> None:
        """Stop background tasks and release network resources."""

        await self.sweeper.stop()
        for resource in self._closables:
            await resource.aclose()


@asynccontextmanager
async def create_backend(
    *,
    settings: Optional[Settings] = None,
    console: Optional[Console] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AsyncIterator[ProviderBackend]:
    """Yield a started :class:`ProviderBackend` and shut it down on exit."""

    backend = ProviderBackend(
        settings=settings,
        console=console,
        http_client=http_client,
        recent_searches=get_recent_searches(console) if settings is None else None,
    )
    await backend.start()
    try:
        yield backend
    finally:
        await backend.aclose()


_recent_searches: Optional[RecentSearchesLog] = None


def get_recent_searches(console: Optional[Console] = None) -> RecentSearchesLog:
    """Return the process-wide recent searches log, loading it on first access.

    ``console`` is only used when the log is first built.
    """

    global _recent_searches
    if _recent_searches is None:
        settings = get_settings()
        _recent_searches = RecentSearchesLog(settings.recent_searches_path, console=console)
    return _recent_searches


__all__ = ["ProviderBackend", "create_backend", "get_recent_searches"]
