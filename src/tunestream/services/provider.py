"""YouTube provider adapter combining the response cache, key rotation and payload parsing."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Set, Tuple, Type, TypeVar

import httpx
from pydantic import ValidationError
from rich.console import Console

from tunestream.config.settings import ProviderConfig
from tunestream.models.base import ProviderPayloadModel
from tunestream.models.video import Video
from tunestream.models.youtube import (
    PlaylistItemListResponse,
    PlaylistListResponse,
    ProviderErrorBody,
    SearchListResponse,
    VideoItem,
    VideoListResponse,
)
from tunestream.services.cache import ResponseCache
from tunestream.services.fetch import (
    ProviderError,
    ProviderRequestError,
    QuotaExhaustedError,
    QueryParams,
    ResilientFetchClient,
)
from tunestream.services.recent_searches import RecentSearchesLog
from tunestream.utils.validation import (
    InvalidPlaylistError,
    InvalidYouTubeURLError,
    extract_playlist_id,
    extract_video_id,
)

DETAIL_BATCH_SIZE = 50
VIDEO_PARTS = "snippet,contentDetails"
NOT_A_PLAYLIST_STATUSES = (400, 404)

PayloadT = TypeVar("PayloadT", bound=ProviderPayloadModel)

_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


class InvalidQueryError(ValueError):
    """Raised when a search query is empty."""


def parse_duration(value: Optional[str]) -> str:
    """Convert an ISO-8601 duration such as ``PT1H2M3S`` to ``1:02:03``.

    Hours are only shown when non-zero (``PT3M33S`` becomes ``3:33``); day components
    are folded into the hours. Unparseable input yields ``0:00``.
    """

    match = _DURATION_PATTERN.fullmatch(value.strip()) if value else None
    if match is None:
        return "0:00"

    days, hours, minutes, seconds = (
        int(match.group(name) or 0) for name in ("days", "hours", "minutes", "seconds")
    )
    hours += days * 24
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def video_from_item(item: VideoItem) -> Video:
    """Build a :class:`Video` from a ``videos.list`` item."""

    raw_duration = item.content_details.duration if item.content_details is not None else None
    return Video(
        id=item.id,
        title=item.snippet.title,
        thumbnail=item.snippet.thumbnails.best_url(),
        channel_title=item.snippet.channel_title,
        duration=parse_duration(raw_duration) if raw_duration else None,
    )


def error_response(exc: Exception) -> Tuple[int, Dict[str, str]]:
    """Translate a provider-layer exception into an HTTP status and JSON body."""

    if isinstance(exc, QuotaExhaustedError):
        return exc.status_code, {
            "message": "YouTube API quota exceeded. Please try again later.",
            "error": exc.error_code,
        }
    if isinstance(exc, ProviderError):
        return exc.status_code, {"message": str(exc), "error": exc.error_code}
    if isinstance(exc, (InvalidPlaylistError, InvalidYouTubeURLError, InvalidQueryError)):
        return 400, {"message": str(exc), "error": "INVALID_INPUT"}
    if isinstance(exc, httpx.HTTPError):
        return 503, {"message": "YouTube API is unreachable. Please try again later.", "error": "PROVIDER_UNAVAILABLE"}
    return 500, {"message": "Unexpected error while contacting YouTube.", "error": "INTERNAL_ERROR"}


class YouTubeProvider:
    """Entry point used by the route layer for search, video, trending and playlist lookups.

    Each lookup consults :class:`ResponseCache` first and only calls the provider on a
    miss. Every video returned by a detail request is also stored in the video-detail
    cache. Searches are always recorded in the recent searches log, cached or not.
    """

    def __init__(
        self,
        fetch_client: ResilientFetchClient,
        cache: ResponseCache,
        recent_searches: RecentSearchesLog,
        *,
        config: Optional[ProviderConfig] = None,
        console: Optional[Console] = None,
    ) -> None:
        self._fetch = fetch_client
        self._cache = cache
        self._recent_searches = recent_searches
        self._config = config or ProviderConfig()
        self._console = console or Console()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    async def search(self, query: str) -> List[Video]:
        """Return videos matching ``query``.

        Parameters
        ----------
        query:
            Free-text search string; matching ignores case and surrounding whitespace.

        Returns
        -------
        list[Video]
            Matching videos, possibly empty.

        Raises
        ------
        InvalidQueryError
            If ``query`` is blank.
        QuotaExhaustedError
            If every API key is out of quota.
        ProviderRequestError
            If the provider rejects either request.
        """

        if not query.strip():
            raise InvalidQueryError("Search query must not be empty.")

        self._recent_searches.add_search(query)

        cached = self._cache.get_search_results(query)
        if cached is not None:
            self._console.log(f"Using cached search results for {query!r}")
            return cached

        listing = await self._get_json(
            "search",
            {
                "part": "snippet",
                "type": "video",
                "maxResults": self._config.search_max_results,
                "q": query,
            },
            SearchListResponse,
        )
        video_ids = listing.video_ids()
        if not video_ids:
            return []

        videos = await self._fetch_video_batch(video_ids)
        self._cache.save_search_results(query, videos)
        return videos

    async def get_video_details(self, video_id: str) -> Optional[Video]:
        """Return a single video, or ``None`` if YouTube has no video with that ID."""

        canonical_id = extract_video_id(video_id)
        cached = self._cache.get_video_details(canonical_id)
        if cached is not None:
            self._console.log(f"Using cached details for video {canonical_id}")
            return cached

        listing = await self._get_json("videos", {"part": VIDEO_PARTS, "id": canonical_id}, VideoListResponse)
        if not listing.items:
            return None

        video = video_from_item(listing.items[0])
        self._cache.save_video_details(canonical_id, video)
        return video

    async def get_trending(self) -> List[Video]:
        """Return the most popular videos of the configured music category."""

        cached = self._cache.get_trending()
        if cached is not None:
            self._console.log("Using cached trending videos")
            return cached

        trending = self._config.trending
        params: Dict[str, str | int] = {
            "part": VIDEO_PARTS,
            "chart": "mostPopular",
            "videoCategoryId": trending.category_id,
            "maxResults": trending.max_results,
        }
        if trending.region_code:
            params["regionCode"] = trending.region_code

        listing = await self._get_json("videos", params, VideoListResponse)
        videos = self._remember(video_from_item(item) for item in listing.items)
        self._cache.save_trending(videos)
        return videos

    async def is_valid_playlist(self, playlist_id: str) -> bool:
        """Return ``True`` when ``playlist_id`` resolves to an existing playlist."""

        response = await self._fetch.fetch_with_rotation(
            self._config.endpoint("playlists"),
            {"part": "snippet", "id": playlist_id, "maxResults": 1},
        )
        if response.status_code in NOT_A_PLAYLIST_STATUSES:
            return False
        listing = self._parse(response, "playlists", PlaylistListResponse)
        return bool(listing.items)

    async def get_playlist_items(self, playlist_source_id: str) -> List[Video]:
        """Return every video of a playlist, following continuation tokens.

        Parameters
        ----------
        playlist_source_id:
            Playlist ID or a YouTube URL carrying a ``list`` parameter.

        Raises
        ------
        InvalidPlaylistError
            If the input is not a playlist reference or YouTube does not know the playlist.
        """

        playlist_id = extract_playlist_id(playlist_source_id)
        if not await self.is_valid_playlist(playlist_id):
            raise InvalidPlaylistError(
                f"{playlist_id!r} does not match a YouTube playlist. "
                "Make sure you supplied the URL of a playlist and not of a single video."
            )

        videos: List[Video] = []
        seen_tokens: Set[str] = set()
        page_token: Optional[str] = None
        while True:
            params: Dict[str, str | int] = {
                "part": "snippet",
                "maxResults": self._config.playlist_page_size,
                "playlistId": playlist_id,
            }
            if page_token:
                params["pageToken"] = page_token

            page = await self._get_json("playlistItems", params, PlaylistItemListResponse)
            video_ids = page.video_ids()
            if video_ids:
                videos.extend(await self._fetch_video_batch(video_ids))

            page_token = page.next_page_token
            if not page_token:
                break
            if page_token in seen_tokens:
                self._console.log(f"[yellow]Playlist {playlist_id} repeated page token; stopping pagination[/yellow]")
                break
            seen_tokens.add(page_token)

        self._console.log(f"Fetched {len(videos)} videos from playlist {playlist_id}")
        return videos

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #
    async def _fetch_video_batch(self, video_ids: List[str]) -> List[Video]:
        videos: List[Video] = []
        for start in range(0, len(video_ids), DETAIL_BATCH_SIZE):
            chunk = video_ids[start : start + DETAIL_BATCH_SIZE]
            listing = await self._get_json("videos", {"part": VIDEO_PARTS, "id": ",".join(chunk)}, VideoListResponse)
            videos.extend(video_from_item(item) for item in listing.items)
        return self._remember(videos)

    def _remember(self, videos: Iterable[Video]) -> List[Video]:
        collected = list(videos)
        for video in collected:
            self._cache.save_video_details(video.id, video)
        return collected

    async def _get_json(self, resource: str, params: QueryParams, model: Type[PayloadT]) -> PayloadT:
        response = await self._fetch.fetch_with_rotation(self._config.endpoint(resource), params)
        return self._parse(response, resource, model)

    def _parse(self, response: httpx.Response, resource: str, model: Type[PayloadT]) -> PayloadT:
        self._raise_for_status(response, resource)
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProviderRequestError(
                f"YouTube API {resource} returned a malformed payload.", upstream_status=response.status_code
            ) from exc

    def _raise_for_status(self, response: httpx.Response, resource: str) -> None:
        if response.is_success:
            return
        if self._fetch.is_quota_failure(response):
            raise QuotaExhaustedError()

        detail = response.reason_phrase
        try:
            message = ProviderErrorBody.model_validate(response.json()).message
        except (ValueError, ValidationError):
            message = ""
        if message:
            detail = message
        raise ProviderRequestError(
            f"YouTube API {resource} error ({response.status_code}): {detail}",
            upstream_status=response.status_code,
        )


__all__ = [
    "InvalidQueryError",
    "YouTubeProvider",
    "error_response",
    "parse_duration",
    "video_from_item",
]
