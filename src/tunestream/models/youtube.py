"""Pydantic models mirroring the YouTube Data API v3 response payloads.

Only the fields the provider adapter reads are declared; everything else in a
response is ignored. Field aliases keep the provider's camelCase names out of
the rest of the package.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from tunestream.models.base import ProviderPayloadModel


class Thumbnail(ProviderPayloadModel):
    url: str = ""


class Thumbnails(ProviderPayloadModel):
    default: Optional[Thumbnail] = None
    medium: Optional[Thumbnail] = None
    high: Optional[Thumbnail] = None

    def best_url(self) -> str:
        """Return the highest resolution thumbnail URL available."""

        for candidate in (self.high, self.medium, self.default):
            if candidate is not None and candidate.url:
                return candidate.url
        return ""


class ResourceId(ProviderPayloadModel):
    kind: Optional[str] = None
    video_id: Optional[str] = Field(default=None, alias="videoId")
    channel_id: Optional[str] = Field(default=None, alias="channelId")
    playlist_id: Optional[str] = Field(default=None, alias="playlistId")


class Snippet(ProviderPayloadModel):
    title: str = ""
    channel_title: str = Field(default="", alias="channelTitle")
    thumbnails: Thumbnails = Field(default_factory=Thumbnails)
    resource_id: Optional[ResourceId] = Field(default=None, alias="resourceId")


class ContentDetails(ProviderPayloadModel):
    duration: Optional[str] = None
    video_id: Optional[str] = Field(default=None, alias="videoId")


class SearchItem(ProviderPayloadModel):
    """Entry of a ``search.list`` response; ``id`` identifies videos, channels or playlists."""

    id: ResourceId = Field(default_factory=ResourceId)
    snippet: Optional[Snippet] = None


class SearchListResponse(ProviderPayloadModel):
    items: List[SearchItem] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")

    def video_ids(self) -> List[str]:
        """Return ids of the video results, dropping channels and playlists."""

        return [item.id.video_id for item in self.items if item.id.video_id]


class VideoItem(ProviderPayloadModel):
    id: str
    snippet: Snippet = Field(default_factory=Snippet)
    content_details: Optional[ContentDetails] = Field(default=None, alias="contentDetails")


class VideoListResponse(ProviderPayloadModel):
    items: List[VideoItem] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")


class PlaylistItem(ProviderPayloadModel):
    snippet: Optional[Snippet] = None
    content_details: Optional[ContentDetails] = Field(default=None, alias="contentDetails")

    @property
    def video_id(self) -> Optional[str]:
        if self.snippet is not None and self.snippet.resource_id is not None:
            if self.snippet.resource_id.video_id:
                return self.snippet.resource_id.video_id
        if self.content_details is not None:
            return self.content_details.video_id
        return None


class PlaylistItemListResponse(ProviderPayloadModel):
    items: List[PlaylistItem] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")

    def video_ids(self) -> List[str]:
        return [video_id for video_id in (item.video_id for item in self.items) if video_id]


class PlaylistResource(ProviderPayloadModel):
    id: str
    snippet: Optional[Snippet] = None


class PlaylistListResponse(ProviderPayloadModel):
    items: List[PlaylistResource] = Field(default_factory=list)


class ErrorReason(ProviderPayloadModel):
    reason: str = ""
    message: str = ""


class ErrorDetail(ProviderPayloadModel):
    code: Optional[int] = None
    message: str = ""
    errors: List[ErrorReason] = Field(default_factory=list)


class ProviderErrorBody(ProviderPayloadModel):
    """Error envelope returned by the API on non-2xx responses."""

    error: Optional[ErrorDetail] = None

    @property
    def message(self) -> str:
        return self.error.message if self.error is not None else ""

    @property
    def reasons(self) -> List[str]:
        if self.error is None:
            return []
        return [entry.reason for entry in self.error.errors if entry.reason]


__all__ = [
    "ContentDetails",
    "ErrorDetail",
    "ErrorReason",
    "PlaylistItem",
    "PlaylistItemListResponse",
    "PlaylistListResponse",
    "PlaylistResource",
    "ProviderErrorBody",
    "ResourceId",
    "SearchItem",
    "SearchListResponse",
    "Snippet",
    "Thumbnail",
    "Thumbnails",
    "VideoItem",
    "VideoListResponse",
]
