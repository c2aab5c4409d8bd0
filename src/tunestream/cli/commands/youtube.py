"""CLI commands for querying YouTube through the provider core."""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncContextManager, Awaitable, Callable, List, Optional, Sequence, TypeVar

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from tunestream.app import ProviderBackend, create_backend
from tunestream.models.video import Video
from tunestream.services.credentials import NoCredentialsError, mask_credential
from tunestream.services.fetch import ProviderError, QuotaExhaustedError
from tunestream.services.provider import InvalidQueryError, error_response
from tunestream.services.recent_searches import DEFAULT_RECENT_LIMIT, MAX_RECENT_SEARCHES
from tunestream.utils.validation import InvalidPlaylistError, InvalidYouTubeURLError

BackendFactory = Callable[[], AsyncContextManager[ProviderBackend]]
ResultT = TypeVar("ResultT")

VERIFY_QUERY = "test"


class ProviderExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    NOT_FOUND = 2
    NETWORK_ERROR = 3
    QUOTA_EXCEEDED = 4
    PROVIDER_ERROR = 5
    CONFIG_ERROR = 6


def _exit_code_for(exc: Exception) -> int:
    if isinstance(exc, QuotaExhaustedError):
        return ProviderExitCode.QUOTA_EXCEEDED
    if isinstance(exc, ProviderError):
        return ProviderExitCode.PROVIDER_ERROR
    if isinstance(exc, (InvalidQueryError, InvalidPlaylistError, InvalidYouTubeURLError)):
        return ProviderExitCode.INVALID_INPUT
    return ProviderExitCode.NETWORK_ERROR


def _video_payload(video: Video) -> dict[str, Any]:
    return video.model_dump(mode="json")


def _video_table(title: str, videos: Sequence[Video]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Channel")
    table.add_column("Duration", justify="right")
    table.add_column("ID", style="dim")
    for index, video in enumerate(videos, start=1):
        table.add_row(str(index), video.title, video.channel_title, video.duration or "-", video.id)
    return table


def register(app: typer.Typer, console: Console, backend_factory: Optional[BackendFactory] = None) -> None:
    """Register CLI commands for searching and browsing YouTube."""

    def open_backend() -> AsyncContextManager[ProviderBackend]:
        if backend_factory is not None:
            return backend_factory()
        return create_backend(console=console)

    def run(operation: Callable[[ProviderBackend], Awaitable[ResultT]], *, json_output: bool = False) -> ResultT:
        async def _runner() -> ResultT:
            async with open_backend() as backend:
                return await operation(backend)

        try:
            return asyncio.run(_runner())
        except (ValidationError, NoCredentialsError) as exc:
            console.print(f"[red]Configuration error:[/red] {exc}")
            raise typer.Exit(code=ProviderExitCode.CONFIG_ERROR) from exc
        except (ProviderError, InvalidQueryError, InvalidPlaylistError, InvalidYouTubeURLError, httpx.HTTPError) as exc:
            status, payload = error_response(exc)
            if json_output:
                typer.echo(json.dumps({"status": status, **payload}, ensure_ascii=False, indent=2))
            else:
                console.print(f"[red]Error ({status}):[/red] {payload['message']}")
            raise typer.Exit(code=_exit_code_for(exc)) from exc

    def emit_videos(title: str, videos: Sequence[Video], json_output: bool) -> None:
        if json_output:
            typer.echo(json.dumps([_video_payload(video) for video in videos], ensure_ascii=False, indent=2))
            return
        if not videos:
            console.print("[yellow]No results.[/yellow]")
            return
        console.print(_video_table(title, videos))

    @app.command("search")
    def search(
        query: str = typer.Argument(..., help="Search terms"),
        json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    ) -> None:
        """Search YouTube for videos."""

        videos = run(lambda backend: backend.provider.search(query), json_output=json_output)
        emit_videos(f"Results for '{query}'", videos, json_output)

    @app.command("video")
    def video(
        video_id: str = typer.Argument(..., help="Video ID or YouTube URL"),
        json_output: bool = typer.Option(False, "--json", help="Output the video as JSON"),
    ) -> None:
        """Show details of a single video."""

        result = run(lambda backend: backend.provider.get_video_details(video_id), json_output=json_output)
        if result is None:
            if json_output:
                typer.echo(json.dumps(None))
            else:
                console.print(f"[yellow]Video not found:[/yellow] {video_id}")
            raise typer.Exit(code=ProviderExitCode.NOT_FOUND)
        emit_videos(result.title, [result], json_output)

    @app.command("trending")
    def trending(
        json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    ) -> None:
        """List trending music videos."""

        videos = run(lambda backend: backend.provider.get_trending(), json_output=json_output)
        emit_videos("Trending music", videos, json_output)

    @app.command("playlist")
    def playlist(
        playlist: str = typer.Argument(..., help="Playlist ID or playlist URL"),
        json_output: bool = typer.Option(False, "--json", help="Output results as JSON"),
    ) -> None:
        """List every video of a YouTube playlist."""

        videos = run(lambda backend: backend.provider.get_playlist_items(playlist), json_output=json_output)
        emit_videos(f"Playlist {playlist}", videos, json_output)

    @app.command("recent")
    def recent(
        limit: int = typer.Option(
            DEFAULT_RECENT_LIMIT, "--limit", min=1, max=MAX_RECENT_SEARCHES, help="Number of queries to show"
        ),
        json_output: bool = typer.Option(False, "--json", help="Output queries as JSON"),
    ) -> None:
        """Show the most recent search queries."""

        async def _recent(backend: ProviderBackend) -> List[str]:
            return backend.recent_searches.get_recent(limit)

        queries = run(_recent, json_output=json_output)
        if json_output:
            typer.echo(json.dumps(queries, ensure_ascii=False, indent=2))
            return
        if not queries:
            console.print("[yellow]No recent searches.[/yellow]")
            return
        for query in queries:
            console.print(f"- {query}")

    @app.command("keys")
    def keys(
        verify: bool = typer.Option(False, "--verify", help="Probe every key with a search request"),
    ) -> None:
        """Show API key pool status, optionally verifying each key."""

        async def _probe(backend: ProviderBackend) -> List[tuple[str, str]]:
            rows: List[tuple[str, str]] = []
            pool = backend.pool
            for key in pool.keys():
                status = pool.status(key)
                label = status.value if status is not None else "unknown"
                if verify:
                    label = await _verify_key(backend, key)
                rows.append((mask_credential(key), label))
            return rows

        rows = run(_probe)
        table = Table(title="YouTube API keys")
        table.add_column("Slot", justify="right")
        table.add_column("Key")
        table.add_column("Status")
        for slot, (masked, label) in enumerate(rows, start=1):
            style = "green" if label in {"active", "ok"} else "red"
            table.add_row(str(slot), masked, f"[{style}]{label}[/{style}]")
        console.print(table)

        failed = sum(1 for _, label in rows if label not in {"active", "ok"})
        if verify and failed:
            raise typer.Exit(code=ProviderExitCode.PROVIDER_ERROR)


async def _verify_key(backend: ProviderBackend, key: str) -> str:
    """Issue a one-result search with ``key`` and report the outcome."""

    fetch_client = backend.fetch_client
    try:
        response = await fetch_client.fetch_with_rotation(
            backend.settings.provider.endpoint("search"),
            {"part": "snippet", "q": VERIFY_QUERY, "type": "video", "maxResults": 1, "key": key},
            has_credential=True,
        )
    except httpx.HTTPError as exc:
        return f"unreachable: {exc.__class__.__name__}"
    if response.is_success:
        return "ok"
    if fetch_client.is_quota_failure(response):
        return "quota exceeded"
    return f"error {response.status_code}"


__all__ = ["ProviderExitCode", "register"]
