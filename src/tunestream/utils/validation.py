"""Validation helpers for YouTube URLs and identifiers."""

from __future__ import annotations

import re
from urllib.parse import ParseResult, parse_qs, urlparse


class InvalidYouTubeURLError(ValueError):
    """Raised when a provided URL is not a valid YouTube video link."""


class InvalidPlaylistError(ValueError):
    """Raised when input does not identify a YouTube playlist."""


_VIDEO_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{11}$")
_PLAYLIST_ID_PATTERN = re.compile(r"^[0-9A-Za-z_-]{2,64}$")
_YOUTUBE_HOSTS = ("youtube.com", "youtu.be")


def _is_youtube_host(netloc: str) -> bool:
    host = netloc.lower().split(":", 1)[0]
    return any(host == domain or host.endswith(f".{domain}") for domain in _YOUTUBE_HOSTS)


def _looks_like_url(value: str) -> bool:
    return "://" in value or any(domain in value.lower() for domain in _YOUTUBE_HOSTS)


def _parse(value: str) -> ParseResult:
    return urlparse(value if "://" in value else f"https://{value}")


def extract_video_id(url: str) -> str:
    """Extract and validate a YouTube video ID from a URL or raw ID string."""

    stripped = url.strip()
    if _VIDEO_ID_PATTERN.fullmatch(stripped):
        return stripped

    try:
        parsed = _parse(stripped)
    except ValueError as exc:
        raise InvalidYouTubeURLError(f"Invalid YouTube URL or video ID: {url!r}") from exc
    host = parsed.netloc.lower().split(":", 1)[0]
    if host in ("youtu.be", "www.youtu.be"):
        candidate = parsed.path.lstrip("/")
        if _VIDEO_ID_PATTERN.fullmatch(candidate):
            return candidate

    if _is_youtube_host(host):
        # Handle standard watch URLs as well as embed and shorts formats.
        if parsed.path == "/watch":
            candidate_list = parse_qs(parsed.query).get("v", [])
            if candidate_list and _VIDEO_ID_PATTERN.fullmatch(candidate_list[0]):
                return candidate_list[0]
        else:
            path_match = re.search(r"/(?:embed|shorts|live)/([0-9A-Za-z_-]{11})", parsed.path)
            if path_match:
                return path_match.group(1)

    raise InvalidYouTubeURLError(f"Invalid YouTube URL or video ID: {url!r}")


def extract_playlist_id(value: str) -> str:
    """Return the playlist ID from a playlist URL or a raw playlist ID.

    URLs must carry a ``list`` query parameter. A bare 11-character ID is a single
    video, not a playlist, and is rejected.
    """

    stripped = value.strip()
    if not stripped:
        raise InvalidPlaylistError("Playlist ID is empty.")

    if _looks_like_url(stripped):
        try:
            parsed = _parse(stripped)
        except ValueError as exc:
            raise InvalidPlaylistError(f"The supplied URL is not valid: {value!r}") from exc
        if not _is_youtube_host(parsed.netloc):
            raise InvalidPlaylistError(f"The supplied URL is not a YouTube URL: {value!r}")
        candidates = parse_qs(parsed.query).get("list", [])
        if not candidates or not _PLAYLIST_ID_PATTERN.fullmatch(candidates[0]):
            raise InvalidPlaylistError(
                "The supplied URL does not contain a playlist ID (missing 'list' parameter). "
                "Use the URL of a playlist, not of a single video."
            )
        return candidates[0]

    if _VIDEO_ID_PATTERN.fullmatch(stripped):
        raise InvalidPlaylistError(
            f"{stripped!r} looks like a single video ID. Provide a playlist ID or playlist URL instead."
        )
    if not _PLAYLIST_ID_PATTERN.fullmatch(stripped):
        raise InvalidPlaylistError(f"Invalid YouTube playlist ID: {value!r}")
    return stripped


__all__ = [
    "InvalidPlaylistError",
    "InvalidYouTubeURLError",
    "extract_playlist_id",
    "extract_video_id",
]
